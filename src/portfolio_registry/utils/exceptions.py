"""Custom exceptions for the portfolio registry.

This module defines the exception hierarchy for the application. Every
portfolio failure kind is its own class and carries a stable ``code`` so
callers can branch on the kind without string matching.
"""


class RegistryError(Exception):
    """Base exception for all portfolio registry errors.

    All custom exceptions in the application should inherit from this class.
    """

    pass


class ConfigurationError(RegistryError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Missing required configuration keys
        - Token limits outside the supported range
        - Configuration file not found
    """

    pass


class StorageError(RegistryError):
    """Raised when database operations fail.

    Examples:
        - Database connection failed
        - SQL query failed
        - Data integrity constraint violated
    """

    pass


class PortfolioError(RegistryError):
    """Base exception for portfolio layer errors.

    Parent class for all portfolio-related exceptions.
    """

    code = "PortfolioError"


class LengthMismatchError(PortfolioError):
    """Raised when token and percentage lists differ in length."""

    code = "LengthMismatch"


class MaxTokensExceededError(PortfolioError):
    """Raised when a portfolio is created with more than the maximum tokens."""

    code = "MaxTokensExceeded"


class InvalidPortfolioError(PortfolioError):
    """Raised when a portfolio is missing, inactive or too small.

    Examples:
        - Creating a portfolio with fewer than two tokens
        - Updating or rebalancing an unknown portfolio id
        - Rebalancing an inactive portfolio
    """

    code = "InvalidPortfolio"


class InvalidPercentageError(PortfolioError):
    """Raised when a percentage is out of range or a set does not sum to 100%.

    Examples:
        - Target percentage above 10000 basis points
        - Percentages [6000, 5000] summing to 11000
    """

    code = "InvalidPercentage"


class InvalidTokenError(PortfolioError):
    """Raised when a token identity cannot be stored in an asset slot."""

    code = "InvalidToken"


class InvalidTokenIdError(PortfolioError):
    """Raised when a slot index does not address an existing asset slot."""

    code = "InvalidTokenId"


class NotAuthorizedError(PortfolioError):
    """Raised when the caller is not allowed to perform an operation.

    Examples:
        - Updating a portfolio owned by someone else
        - Transferring registry ownership without being the owner
    """

    code = "NotAuthorized"


class UserStorageFailedError(PortfolioError):
    """Raised when an owner's portfolio index is already at capacity."""

    code = "UserStorageFailed"
