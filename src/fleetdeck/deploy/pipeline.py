"""Deployment tasks for one service.

A :class:`DeploymentPipeline` binds the process-wide :class:`DeploymentConfig`
to one service (the site or the packager) and exposes every deployment task
as a coroutine. The composite :meth:`DeploymentPipeline.deploy` runs the
tasks in their fixed order and aborts on the first failure.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable

from fleetdeck.config.defaults import LOCAL_RUN_CONTAINER_PORT, LOCAL_RUN_HOST_PORT
from fleetdeck.deploy import commands
from fleetdeck.deploy.builder import BuildResult, ContainerBuilder, get_oci_labels
from fleetdeck.deploy.runner import BaseRunner, CommandResult
from fleetdeck.lib.errors import TagAlreadyDeployedError
from fleetdeck.lib.logging_config import get_logger
from fleetdeck.models.deployment import (
    DeploymentConfig,
    ImageRef,
    InstanceGroup,
    ServiceConfig,
)

logger = get_logger(__name__)

# Output of `list-tags --format=value(tags)`: tags separated by commas/whitespace
_TAG_SEPARATOR = re.compile(r"[,;\s]+")


def parse_tags(output: str) -> set[str]:
    """Parse the tag list printed by ``gcloud container images list-tags``."""
    return {tag for tag in _TAG_SEPARATOR.split(output) if tag}


class DeploymentPipeline:
    """Deployment tasks for a single service.

    Attributes:
        config: Process-wide deployment configuration
        service: Service this pipeline deploys
        runner: Executes external commands
        dry_run: Route local Docker work through the runner instead of the SDK
    """

    def __init__(
        self,
        config: DeploymentConfig,
        service: ServiceConfig,
        runner: BaseRunner,
        *,
        dry_run: bool = False,
        builder_factory: Callable[[], ContainerBuilder] = ContainerBuilder,
    ) -> None:
        self.config = config
        self.service = service
        self.runner = runner
        self.dry_run = dry_run
        self._builder_factory = builder_factory
        self._builder: ContainerBuilder | None = None

    @property
    def name(self) -> str:
        return self.service.prefix

    @property
    def image(self) -> ImageRef:
        return self.config.image(self.service)

    @property
    def template(self) -> str:
        return self.config.template_name(self.service)

    @property
    def groups(self) -> tuple[InstanceGroup, ...]:
        return self.service.instance.groups

    def _get_builder(self) -> ContainerBuilder:
        if self._builder is None:
            self._builder = self._builder_factory()
        return self._builder

    async def verify_tag(self) -> None:
        """Fail if the configured tag was already published for this image.

        Raises:
            TagAlreadyDeployedError: If the registry already has the tag
            CommandError: If the registry query fails
        """
        logger.info(f"Verifying build tag {self.config.tag}")
        result = await self.runner.run(
            commands.list_tags(self.image.name, tags_only=True),
            capture=True,
            operation="verify_tag",
        )
        if self.config.tag in parse_tags(result.stdout):
            raise TagAlreadyDeployedError(tag=self.config.tag, image=self.image.name)

    async def gcloud_setup(self) -> None:
        """Initialize the Google Cloud project. Needs to be run only once."""
        gcloud = self.config.gcloud
        await self.runner.run(commands.configure_docker(), operation="gcloud_setup")
        await self.runner.run(
            commands.set_config("compute/region", gcloud.region),
            operation="gcloud_setup",
        )
        await self.runner.run(
            commands.set_config("compute/zone", gcloud.zone),
            operation="gcloud_setup",
        )

    async def image_build(self) -> BuildResult | None:
        """Build the service image locally for testing.

        Returns:
            BuildResult, or None in a dry run
        """
        if self.dry_run:
            await self.runner.run(
                commands.docker_build(self.image.current),
                cwd=self.service.working_dir,
                operation="image_build",
            )
            return None

        builder = self._get_builder()
        return await asyncio.to_thread(
            builder.build,
            build_context=self.service.working_dir or ".",
            image_name=self.image.name,
            tag=self.config.tag,
            labels=get_oci_labels(self.service.prefix, self.config.tag),
        )

    async def image_run_local(self) -> str | None:
        """Start the locally built image in the background.

        Returns:
            Container ID, or None in a dry run
        """
        if self.dry_run:
            await self.runner.run(
                commands.docker_run(
                    self.image.current, LOCAL_RUN_HOST_PORT, LOCAL_RUN_CONTAINER_PORT
                ),
                operation="image_run_local",
            )
            return None

        builder = self._get_builder()
        container = await asyncio.to_thread(
            builder.run,
            self.image.current,
            host_port=LOCAL_RUN_HOST_PORT,
            container_port=LOCAL_RUN_CONTAINER_PORT,
        )
        return str(container.id)

    async def image_upload(self) -> CommandResult:
        """Build the image with Cloud Build and publish it to the registry."""
        return await self.runner.run(
            commands.builds_submit(self.image.current),
            cwd=self.service.working_dir,
            operation="image_upload",
        )

    async def image_list(self) -> CommandResult:
        """List all published tags of the service image."""
        return await self.runner.run(
            commands.list_tags(self.image.name), operation="image_list"
        )

    async def instance_template_create(self) -> CommandResult:
        """Create a new VM instance template for the current image."""
        instance = self.service.instance
        return await self.runner.run(
            commands.create_instance_template(
                self.template,
                self.image.current,
                instance.machine,
                network_tags=instance.network_tags,
                scopes=instance.scopes,
            ),
            cwd=self.service.working_dir,
            operation="instance_template_create",
        )

    async def update_start(self) -> list[CommandResult]:
        """Start a rolling update of every instance group to the new template.

        The update requests are issued concurrently and this returns once
        they are accepted. The rollout itself keeps going; check it with
        :meth:`update_status`.
        """
        results = await self._for_each_group(
            "update_start",
            lambda group: self.runner.run(
                commands.start_rolling_update(
                    group, self.template, self.service.rollout
                ),
                cwd=self.service.working_dir,
                operation="update_start",
            ),
        )
        logger.info(
            "Rolling update started, this can take a few minutes. "
            "Run `fleetdeck update-status` to check progress; "
            "`isStable: true` once the update has finished."
        )
        return results

    async def update_status(self) -> list[CommandResult]:
        """Describe every instance group to check rolling update progress."""
        return await self._for_each_group(
            "update_status",
            lambda group: self.runner.run(
                commands.describe_group(group),
                capture=True,
                operation="update_status",
            ),
        )

    async def update_stop(self) -> list[CommandResult]:
        """Stop an active rolling update on every instance group.

        Already updated instances are not reverted; follow up with
        :meth:`update_start` so all instances share one template.
        """
        return await self._for_each_group(
            "update_stop",
            lambda group: self.runner.run(
                commands.stop_rolling_update(group),
                operation="update_stop",
            ),
        )

    async def deploy(self) -> list[str]:
        """Run the full rollout: verify, upload, template, update.

        Verification is skipped for services with ``verify_before_deploy``
        disabled. The first failing step aborts the remaining ones.

        Returns:
            Names of the executed steps, in order
        """
        steps: list[tuple[str, Callable[[], Awaitable[object]]]] = []
        if self.service.verify_before_deploy:
            steps.append(("verify_tag", self.verify_tag))
        steps.extend(
            [
                ("image_upload", self.image_upload),
                ("instance_template_create", self.instance_template_create),
                ("update_start", self.update_start),
            ]
        )

        executed: list[str] = []
        for step_name, step in steps:
            logger.info(f"[{self.name}] {step_name}")
            await step()
            executed.append(step_name)
        return executed

    async def _for_each_group(
        self,
        operation: str,
        call: Callable[[InstanceGroup], Awaitable[CommandResult]],
    ) -> list[CommandResult]:
        """Run ``call`` for all groups concurrently.

        A failing group does not cancel the others. Once every call has
        settled the first failure is re-raised.
        """
        outcomes = await asyncio.gather(
            *(call(group) for group in self.groups), return_exceptions=True
        )

        results: list[CommandResult] = []
        first_error: BaseException | None = None
        for group, outcome in zip(self.groups, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"{operation} failed for {group.name}: {outcome}")
                first_error = first_error or outcome
            else:
                results.append(outcome)

        if first_error is not None:
            raise first_error
        return results
