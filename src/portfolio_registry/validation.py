"""Validation rules for portfolio allocations.

All percentages are expressed in basis points, where 10000 represents 100%.
The functions here are pure: they either return normally or raise the
matching :class:`PortfolioError` subclass.
"""

from typing import Sequence

from portfolio_registry.utils.exceptions import (
    InvalidPercentageError,
    InvalidTokenError,
    NotAuthorizedError,
)

BASIS_POINTS = 10000
MAX_PERCENTAGE_SET_SIZE = 10

# Sums are bounded as unsigned 128-bit integers
UINT128_MAX = 2**128 - 1


def validate_percentage(percentage: int) -> None:
    """Validate a single target percentage.

    Args:
        percentage: Allocation in basis points

    Raises:
        InvalidPercentageError: If the value is not an integer in [0, 10000]
    """
    if isinstance(percentage, bool) or not isinstance(percentage, int):
        raise InvalidPercentageError(
            f"percentage must be an integer, got {percentage!r}"
        )
    if percentage < 0 or percentage > BASIS_POINTS:
        raise InvalidPercentageError(
            f"percentage must be between 0 and {BASIS_POINTS}, got {percentage}"
        )


def validate_percentage_set(percentages: Sequence[int]) -> None:
    """Validate a full allocation.

    Every element must be a valid percentage and the elements must sum to
    exactly 10000. Validation stops at the first invalid element.

    Args:
        percentages: Allocations in basis points, at most 10 entries

    Raises:
        InvalidPercentageError: If the set is too long, an element is out of
            range, or the sum is not 10000

    Example:
        >>> validate_percentage_set([5000, 5000])
        >>> validate_percentage_set([6000, 5000])
        Traceback (most recent call last):
        ...
        InvalidPercentageError: percentages must sum to 10000, got 11000
    """
    if len(percentages) > MAX_PERCENTAGE_SET_SIZE:
        raise InvalidPercentageError(
            f"at most {MAX_PERCENTAGE_SET_SIZE} percentages allowed, "
            f"got {len(percentages)}"
        )

    total = 0
    for percentage in percentages:
        validate_percentage(percentage)
        total += percentage
        if total > UINT128_MAX:
            raise InvalidPercentageError("percentage sum overflow")

    if total != BASIS_POINTS:
        raise InvalidPercentageError(
            f"percentages must sum to {BASIS_POINTS}, got {total}"
        )


def validate_token_address(token_address: str) -> None:
    """Validate a token identity before it is written to an asset slot.

    Raises:
        InvalidTokenError: If the identity is not a non-empty, trimmed string
    """
    if not isinstance(token_address, str) or not token_address:
        raise InvalidTokenError(f"invalid token address: {token_address!r}")
    if token_address != token_address.strip():
        raise InvalidTokenError(
            f"token address has surrounding whitespace: {token_address!r}"
        )


def validate_identity(identity: str) -> None:
    """Reject callers without a usable identity.

    Raises:
        NotAuthorizedError: If the identity is empty or not a string
    """
    if not isinstance(identity, str) or not identity.strip():
        raise NotAuthorizedError("caller identity is required")
