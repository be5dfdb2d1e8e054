"""CLI commands for the deployment tasks.

Every command maps to one task of :class:`DeploymentPipeline`. ``deploy`` and
``packager-deploy`` are the composite rollouts for the site and the packager.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable, Generator
from contextlib import contextmanager
from typing import TypeVar

import click

from fleetdeck.cli.models import CliOptions
from fleetdeck.config.loader import load_deployment_config
from fleetdeck.deploy.builder import BuildResult
from fleetdeck.deploy.pipeline import DeploymentPipeline
from fleetdeck.deploy.runner import BaseRunner, CommandRunner, DryRunRunner
from fleetdeck.lib.errors import (
    CommandError,
    ConfigError,
    DeploymentError,
    TagAlreadyDeployedError,
)
from fleetdeck.lib.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SITE = "site"
PACKAGER = "packager"

# Exit codes
EXIT_CONFIG_ERROR = 2
EXIT_DEPLOYMENT_ERROR = 3
EXIT_TAG_DEPLOYED = 4


@contextmanager
def handle_deployment_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in task commands.

    Exit codes:
        2: Configuration error
        3: Deployment or external command error
        4: Version tag already deployed
    """
    try:
        yield
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except TagAlreadyDeployedError as e:
        logger.error(f"Tag verification failed: {e}")
        click.secho(f"Error: tag {e.tag} was already deployed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(EXIT_TAG_DEPLOYED)
    except CommandError as e:
        logger.error(f"Command failed: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(EXIT_DEPLOYMENT_ERROR)
    except DeploymentError as e:
        logger.error(f"Deployment error: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(EXIT_DEPLOYMENT_ERROR)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_DEPLOYMENT_ERROR)


def _create_runner(options: CliOptions) -> BaseRunner:
    return DryRunRunner() if options.dry_run else CommandRunner()


def _load_pipeline(options: CliOptions, service: str) -> DeploymentPipeline:
    """Build the configuration and the pipeline for one service."""
    config = load_deployment_config(
        tag=options.tag,
        project=options.project,
        config_file=options.config_file,
        root=options.root,
    )
    service_config = config.site if service == SITE else config.packager
    return DeploymentPipeline(
        config,
        service_config,
        _create_runner(options),
        dry_run=options.dry_run,
    )


def _run_task(
    options: CliOptions,
    service: str,
    task: Callable[[DeploymentPipeline], Awaitable[T]],
) -> tuple[DeploymentPipeline, T]:
    pipeline = _load_pipeline(options, service)
    return pipeline, asyncio.run(task(pipeline))


def _display_configuration(pipeline: DeploymentPipeline, options: CliOptions) -> None:
    if options.quiet:
        return
    click.echo()
    click.secho("Deploy Configuration:", bold=True)
    click.echo(f"  Service:   {pipeline.name}")
    click.echo(f"  Project:   {pipeline.config.gcloud.project}")
    click.echo(f"  Tag:       {pipeline.config.tag}")
    click.echo(f"  Image:     {pipeline.image.current}")
    click.echo(f"  Template:  {pipeline.template}")
    for group in pipeline.groups:
        click.echo(f"  Group:     {group.name} ({group.zone})")
    click.echo()


def _display_success(options: CliOptions, title: str, details: str = "") -> None:
    if options.quiet:
        return
    click.secho(title, fg="green", bold=True)
    if details:
        click.echo(f"  {details}")


def _display_rollout_started(pipeline: DeploymentPipeline, options: CliOptions) -> None:
    if options.quiet:
        click.echo(pipeline.template)
        return
    click.echo()
    click.secho("Rolling update started!", fg="green", bold=True)
    click.echo(f"  Template:  {pipeline.template}")
    click.echo("  This can take a few minutes.")
    click.echo()
    click.secho("  Next steps:", bold=True)
    click.echo("    Check status:  fleetdeck update-status  (isStable: true when done)")
    click.echo("    Stop update:   fleetdeck update-stop")
    click.echo()


def _display_build_success(result: BuildResult | None, options: CliOptions) -> None:
    if result is None:
        return
    if options.quiet:
        click.echo(result.full_name)
        return

    if options.verbose and result.log_lines:
        click.secho("Build Output:", bold=True)
        for line in result.log_lines:
            if line.strip():
                click.echo(f"  {line}")
        click.echo()

    click.secho("Build Successful!", fg="green", bold=True)
    click.echo(f"  Image:    {result.full_name}")
    click.echo(f"  ID:       {result.image_id[:19]}...")
    click.echo()
    click.secho("  Next steps:", bold=True)
    click.echo(f"    Run locally:  fleetdeck --tag {result.tag} image-run-local")
    click.echo()


@click.command("verify-tag")
@click.pass_obj
def verify_tag(options: CliOptions) -> None:
    """Verify the version tag hasn't already been deployed."""
    with handle_deployment_errors():
        pipeline, _ = _run_task(options, SITE, lambda p: p.verify_tag())
        _display_success(
            options, "Tag verified", f"{pipeline.config.tag} has not been deployed"
        )


@click.command("gcloud-setup")
@click.pass_obj
def gcloud_setup(options: CliOptions) -> None:
    """Initialize the Google Cloud project. Needs to be run only once."""
    with handle_deployment_errors():
        pipeline, _ = _run_task(options, SITE, lambda p: p.gcloud_setup())
        _display_success(
            options, "Google Cloud configured", pipeline.config.gcloud.project
        )


@click.command("image-build")
@click.pass_obj
def image_build(options: CliOptions) -> None:
    """Build the site image locally for testing."""
    with handle_deployment_errors():
        _, result = _run_task(options, SITE, lambda p: p.image_build())
        _display_build_success(result, options)


@click.command("image-run-local")
@click.pass_obj
def image_run_local(options: CliOptions) -> None:
    """Start the locally built site image on http://localhost:8082."""
    with handle_deployment_errors():
        _, container_id = _run_task(options, SITE, lambda p: p.image_run_local())
        if container_id is None:
            return
        if options.quiet:
            click.echo(container_id)
            return
        _display_success(
            options, "Container started", f"{container_id[:12]} on localhost:8082"
        )


@click.command("image-upload")
@click.pass_obj
def image_upload(options: CliOptions) -> None:
    """Build the site image with Cloud Build and publish it."""
    with handle_deployment_errors():
        pipeline, _ = _run_task(options, SITE, lambda p: p.image_upload())
        _display_success(options, "Image uploaded", pipeline.image.current)


@click.command("image-list")
@click.pass_obj
def image_list(options: CliOptions) -> None:
    """List all published tags of the site image."""
    with handle_deployment_errors():
        _run_task(options, SITE, lambda p: p.image_list())


@click.command("instance-template-create")
@click.pass_obj
def instance_template_create(options: CliOptions) -> None:
    """Create a VM instance template for the current site image."""
    with handle_deployment_errors():
        pipeline, _ = _run_task(
            options, SITE, lambda p: p.instance_template_create()
        )
        _display_success(options, "Instance template created", pipeline.template)


@click.command("update-start")
@click.pass_obj
def update_start(options: CliOptions) -> None:
    """Start a rolling update of all site instance groups."""
    with handle_deployment_errors():
        pipeline, _ = _run_task(options, SITE, lambda p: p.update_start())
        _display_rollout_started(pipeline, options)


@click.command("update-status")
@click.pass_obj
def update_status(options: CliOptions) -> None:
    """Show the rolling update status of all site instance groups."""
    with handle_deployment_errors():
        pipeline, results = _run_task(options, SITE, lambda p: p.update_status())
        for group, result in zip(pipeline.groups, results):
            if not options.quiet:
                click.secho(f"{group.name} ({group.zone})", bold=True)
            click.echo(result.stdout.rstrip("\n"))


@click.command("update-stop")
@click.pass_obj
def update_stop(options: CliOptions) -> None:
    """Stop an active rolling update on all site instance groups.

    Already updated instances are not reverted. Run update-start again so
    that all instances use the same template.
    """
    with handle_deployment_errors():
        _run_task(options, SITE, lambda p: p.update_stop())
        _display_success(
            options,
            "Rolling update stopped",
            "Run `fleetdeck update-start` to reconcile the fleet.",
        )


@click.command("deploy")
@click.pass_obj
def deploy(options: CliOptions) -> None:
    """Verify, upload, create a template and start a rolling update."""
    with handle_deployment_errors():
        pipeline = _load_pipeline(options, SITE)
        _display_configuration(pipeline, options)
        asyncio.run(pipeline.deploy())
        _display_rollout_started(pipeline, options)


@click.command("packager-image-upload")
@click.pass_obj
def packager_image_upload(options: CliOptions) -> None:
    """Build the packager image with Cloud Build and publish it."""
    with handle_deployment_errors():
        pipeline, _ = _run_task(options, PACKAGER, lambda p: p.image_upload())
        _display_success(options, "Packager image uploaded", pipeline.image.current)


@click.command("packager-instance-template-create")
@click.pass_obj
def packager_instance_template_create(options: CliOptions) -> None:
    """Create a VM instance template for the current packager image."""
    with handle_deployment_errors():
        pipeline, _ = _run_task(
            options, PACKAGER, lambda p: p.instance_template_create()
        )
        _display_success(
            options, "Packager instance template created", pipeline.template
        )


@click.command("packager-update-start")
@click.pass_obj
def packager_update_start(options: CliOptions) -> None:
    """Start a rolling update of the packager instance groups."""
    with handle_deployment_errors():
        pipeline, _ = _run_task(options, PACKAGER, lambda p: p.update_start())
        _display_rollout_started(pipeline, options)


@click.command("packager-deploy")
@click.pass_obj
def packager_deploy(options: CliOptions) -> None:
    """Upload, create a template and start a rolling update of the packager."""
    with handle_deployment_errors():
        pipeline = _load_pipeline(options, PACKAGER)
        _display_configuration(pipeline, options)
        asyncio.run(pipeline.deploy())
        _display_rollout_started(pipeline, options)


@click.command("show-config")
@click.pass_obj
def show_config(options: CliOptions) -> None:
    """Show the resolved deployment configuration."""
    with handle_deployment_errors():
        site = _load_pipeline(options, SITE)
        if options.quiet:
            click.echo(site.image.current)
            return
        packager = DeploymentPipeline(
            site.config, site.config.packager, site.runner, dry_run=True
        )
        for pipeline in (site, packager):
            _display_configuration(pipeline, options)


TASK_COMMANDS: list[click.Command] = [
    verify_tag,
    gcloud_setup,
    image_build,
    image_run_local,
    image_upload,
    image_list,
    instance_template_create,
    update_start,
    update_status,
    update_stop,
    deploy,
    packager_image_upload,
    packager_instance_template_create,
    packager_update_start,
    packager_deploy,
    show_config,
]
