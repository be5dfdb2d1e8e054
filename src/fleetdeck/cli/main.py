"""Entry point for the ``fleetdeck`` command line."""

from __future__ import annotations

import click

from fleetdeck import __version__
from fleetdeck.cli.commands.preview import render_preview_command
from fleetdeck.cli.commands.tasks import TASK_COMMANDS
from fleetdeck.cli.models import CliOptions
from fleetdeck.lib.logging_config import setup_logging


@click.group(name="fleetdeck")
@click.version_option(__version__, prog_name="fleetdeck")
@click.option(
    "--tag",
    type=str,
    default=None,
    help="Version tag to deploy (default: <git sha>-<timestamp>)",
)
@click.option(
    "--project",
    type=str,
    default=None,
    help="Google Cloud project ID",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML config file (default: fleetdeck.yaml in the project root)",
)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Project root containing the site Dockerfile",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print commands instead of executing them",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose debug logging",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress progress output",
)
@click.pass_context
def main(
    ctx: click.Context,
    tag: str | None,
    project: str | None,
    config_file: str | None,
    root: str | None,
    dry_run: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """Build container images and roll them out to managed instance groups.

    Example:

        fleetdeck deploy --tag abc1234-1700000000000

        fleetdeck --project my-project update-status

        fleetdeck --dry-run packager-deploy
    """
    setup_logging(verbose=verbose, quiet=quiet)
    ctx.obj = CliOptions(
        tag=tag,
        project=project,
        config_file=config_file,
        root=root,
        dry_run=dry_run,
        verbose=verbose,
        quiet=quiet,
    )


for _command in TASK_COMMANDS:
    main.add_command(_command)
main.add_command(render_preview_command)


if __name__ == "__main__":  # pragma: no cover
    main()
