"""Portfolio registry command line tool.

Examples:
    # Create a 60/40 portfolio for alice
    portfolio-registry create --caller alice TOKEN-A=6000 TOKEN-B=4000

    # Change slot 0 of portfolio 1 to 55%
    portfolio-registry update 1 0 5500 --caller alice

    # Advance the logical clock and check staleness
    portfolio-registry tick 150
    portfolio-registry status 1

    # Record a rebalance checkpoint
    portfolio-registry rebalance 1 --caller alice
"""

import sys
from typing import List, Optional, Tuple

import click

from portfolio_registry.api.registry_api import RegistryAPI
from portfolio_registry.utils.config import load_registry_config
from portfolio_registry.utils.exceptions import PortfolioError, RegistryError
from portfolio_registry.utils.logging import setup_logging_from_config


def parse_allocations(pairs: tuple) -> Tuple[List[str], List[int]]:
    """Parse ``TOKEN=BPS`` strings into token and percentage lists.

    Args:
        pairs: Tuple of "token=basis_points" strings

    Returns:
        (tokens, percentages) in argument order

    Raises:
        click.BadParameter: If a pair is malformed
    """
    tokens: List[str] = []
    percentages: List[int] = []
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"'{pair}', expected 'token=basis_points'")

        token, value = pair.rsplit("=", 1)
        try:
            percentages.append(int(value))
        except ValueError:
            raise click.BadParameter(f"'{value}' is not an integer number of basis points")
        tokens.append(token)

    return tokens, percentages


def _fail(error: RegistryError) -> None:
    code = error.code if isinstance(error, PortfolioError) else type(error).__name__
    click.echo(f"✗ Error [{code}]: {error}", err=True)
    sys.exit(1)


@click.group()
@click.option("--config", "config_path", type=click.Path(), help="YAML configuration file")
@click.option("--db", "db_path", type=str, help="SQLite database path (overrides config)")
@click.option("--log-level", type=str, help="Logging level (overrides config)")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], db_path: Optional[str], log_level: Optional[str]):
    """Portfolio Registry Tool"""
    config = load_registry_config(config_path)
    if db_path:
        config.set("database.path", db_path)
    if log_level:
        config.set("logging.level", log_level)

    setup_logging_from_config(config)

    try:
        api = RegistryAPI.from_config(config)
    except RegistryError as e:
        _fail(e)
    ctx.obj = api
    ctx.call_on_close(api.close)


@cli.command()
@click.argument("allocations", nargs=-1, required=True)
@click.option("--caller", required=True, help="Identity creating the portfolio")
@click.pass_obj
def create(api: RegistryAPI, allocations: tuple, caller: str):
    """Create a portfolio.

    ALLOCATIONS: token=basis_points pairs summing to 10000

    \b
    Example:
        portfolio-registry create --caller alice TOKEN-A=5000 TOKEN-B=5000
    """
    tokens, percentages = parse_allocations(allocations)
    try:
        portfolio_id = api.manager.create_portfolio(caller, tokens, percentages)
    except RegistryError as e:
        _fail(e)
    click.echo(f"✓ Portfolio {portfolio_id} created for {caller}")


@cli.command()
@click.argument("portfolio_id", type=int)
@click.argument("slot", type=int)
@click.argument("percentage", type=int)
@click.option("--caller", required=True, help="Portfolio owner identity")
@click.pass_obj
def update(api: RegistryAPI, portfolio_id: int, slot: int, percentage: int, caller: str):
    """Set the target percentage of one slot."""
    try:
        api.manager.update_allocation(caller, portfolio_id, slot, percentage)
    except RegistryError as e:
        _fail(e)
    click.echo(f"✓ Portfolio {portfolio_id} slot {slot} set to {percentage} bps")


@cli.command()
@click.argument("portfolio_id", type=int)
@click.option("--caller", required=True, help="Portfolio owner identity")
@click.pass_obj
def rebalance(api: RegistryAPI, portfolio_id: int, caller: str):
    """Record a rebalance checkpoint."""
    try:
        api.manager.rebalance(caller, portfolio_id)
    except RegistryError as e:
        _fail(e)
    click.echo(f"✓ Portfolio {portfolio_id} rebalanced at block {api.clock.now()}")


@cli.command()
@click.argument("portfolio_id", type=int)
@click.pass_obj
def show(api: RegistryAPI, portfolio_id: int):
    """Show a portfolio header and its allocation."""
    portfolio = api.manager.get_portfolio(portfolio_id)
    if portfolio is None:
        click.echo(f"Portfolio {portfolio_id} not found")
        sys.exit(1)

    click.echo("=" * 60)
    click.echo(f"PORTFOLIO {portfolio_id}")
    click.echo("=" * 60)
    click.echo(f"Owner:           {portfolio.owner}")
    click.echo(f"Created at:      {portfolio.created_at}")
    click.echo(f"Last rebalanced: {portfolio.last_rebalanced}")
    click.echo(f"Total value:     {portfolio.total_value}")
    click.echo(f"Active:          {portfolio.active}")
    click.echo(f"Tokens:          {portfolio.token_count}")
    click.echo()
    click.echo(api.manager.allocation_frame(portfolio_id).to_string())


@cli.command(name="list")
@click.argument("owner")
@click.pass_obj
def list_portfolios(api: RegistryAPI, owner: str):
    """List the portfolios of OWNER."""
    summary = api.list_user_portfolios(owner)
    if summary.empty:
        click.echo(f"No portfolios for {owner}")
        return
    click.echo(summary.to_string())


@cli.command()
@click.argument("portfolio_id", type=int)
@click.pass_obj
def status(api: RegistryAPI, portfolio_id: int):
    """Report whether a portfolio is due for rebalancing."""
    try:
        result = api.manager.calculate_rebalance_amounts(portfolio_id)
    except RegistryError as e:
        _fail(e)
    flag = "yes" if result.needs_rebalance else "no"
    click.echo(
        f"Portfolio {result.portfolio_id}: total value {result.total_value}, "
        f"needs rebalance: {flag}"
    )


@cli.command()
@click.argument("blocks", type=int, default=1)
@click.pass_obj
def tick(api: RegistryAPI, blocks: int):
    """Advance the logical clock by BLOCKS."""
    try:
        height = api.clock.advance(blocks)
    except ValueError as e:
        raise click.BadParameter(str(e))
    click.echo(f"Block height: {height}")


@cli.command(name="init-owner")
@click.argument("new_owner")
@click.option("--caller", required=True, help="Current registry owner")
@click.pass_obj
def init_owner(api: RegistryAPI, new_owner: str, caller: str):
    """Transfer registry ownership to NEW_OWNER."""
    try:
        api.admin.initialize(caller, new_owner)
    except RegistryError as e:
        _fail(e)
    click.echo(f"✓ Registry owner is now {new_owner}")


@cli.command()
@click.pass_obj
def info(api: RegistryAPI):
    """Show registry owner, fee, portfolio counter and block height."""
    for key, value in api.registry_info().items():
        click.echo(f"{key:18s} {value}")


if __name__ == "__main__":
    cli()
