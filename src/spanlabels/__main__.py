"""
spanlabels CLI entry point.

Usage:
    spanlabels validate INPUT... [--policy FILE] [--retry-lenient] [-f json]
    spanlabels evaluate PREDICTED GOLD [--by-role]
    spanlabels taxonomy [--policy FILE]
"""

import click

from spanlabels.cli.commands import evaluate, taxonomy, validate
from spanlabels.config import get_settings
from spanlabels.exceptions import ConfigurationError
from spanlabels.logging import setup_logging


@click.group()
@click.version_option(package_name="spanlabels")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Path to spanlabels.yaml")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
              default=None, help="Override configured log level")
@click.option("--log-json", is_flag=True, help="Emit JSON log records")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None, log_json: bool):
    """spanlabels - validate model-labeled spans against their source text"""
    try:
        settings = get_settings(config_path)
    except ConfigurationError as e:
        raise click.ClickException(e.message) from e

    setup_logging(
        level=log_level or settings.logging.level,
        json_format=log_json or settings.logging.format == "json",
        log_file=settings.logging.file,
    )
    ctx.obj = settings


cli.add_command(validate)
cli.add_command(evaluate)
cli.add_command(taxonomy)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
