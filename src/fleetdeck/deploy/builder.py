"""Version tagging and local container builds.

Images are tagged by the current git commit plus a millisecond timestamp,
which makes every build easy to identify and reproduce. Local builds and test
runs go through the Docker SDK; registry builds are delegated to Cloud Build
(see :mod:`fleetdeck.deploy.commands`).
"""

from __future__ import annotations

import subprocess  # nosec B404
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import docker
from docker.errors import APIError, BuildError, DockerException, ImageNotFound

from fleetdeck.lib.errors import DeploymentError, DockerNotAvailableError
from fleetdeck.lib.logging_config import get_logger

if TYPE_CHECKING:
    from docker.models.containers import Container
    from docker.models.images import Image

logger = get_logger(__name__)


@dataclass
class BuildResult:
    """Result of a local container image build.

    Attributes:
        image_id: The SHA256 ID of the built image
        image_name: The repository/image name
        tag: The image tag
        full_name: Full image reference (name:tag)
        log_lines: Build log output lines
    """

    image_id: str
    image_name: str
    tag: str
    full_name: str
    log_lines: list[str] = field(default_factory=list)

    @classmethod
    def from_image(
        cls,
        image: Image,
        image_name: str,
        tag: str,
        log_lines: list[str] | None = None,
    ) -> BuildResult:
        """Create BuildResult from a Docker image object."""
        return cls(
            image_id=image.id or "",
            image_name=image_name,
            tag=tag,
            full_name=f"{image_name}:{tag}",
            log_lines=log_lines or [],
        )


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def get_git_version(cwd: Path | None = None) -> str:
    """Return the short SHA of the current git commit.

    Args:
        cwd: Directory inside the repository (defaults to the process cwd)

    Raises:
        DeploymentError: If git is missing or cwd is not a git repository
    """
    try:
        result = subprocess.run(  # noqa: S603  # nosec B603 B607
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            capture_output=True,
            text=True,
            cwd=cwd,
        )
    except OSError as exc:
        raise DeploymentError(
            operation="tag_generation",
            message=f"Failed to run git: {exc}",
        ) from exc

    if result.returncode != 0:
        raise DeploymentError(
            operation="tag_generation",
            message="Failed to get git SHA: not a git repository",
        )
    return result.stdout.strip()


def generate_tag(
    tag: str | None = None,
    *,
    timestamp: int | None = None,
    cwd: Path | None = None,
) -> str:
    """Return the version tag for this rollout.

    Args:
        tag: Explicit tag; returned unchanged when given
        timestamp: Milliseconds since the epoch (defaults to now)
        cwd: Directory inside the git repository

    Returns:
        ``tag`` or ``<git-short-sha>-<timestamp>``

    Raises:
        DeploymentError: If the tag must be derived and git fails

    Example:
        >>> generate_tag("v1.0.0")
        'v1.0.0'
    """
    if tag:
        return tag

    if timestamp is None:
        timestamp = _now_ms()

    return f"{get_git_version(cwd)}-{timestamp}"


def get_oci_labels(prefix: str, version: str) -> dict[str, str]:
    """Generate OCI-compliant labels for a locally built image.

    Example:
        >>> labels = get_oci_labels("amp-dev", "abc1234-1700000000000")
        >>> labels["org.opencontainers.image.title"]
        'amp-dev'
    """
    return {
        "org.opencontainers.image.title": prefix,
        "org.opencontainers.image.version": version,
        "org.opencontainers.image.created": datetime.now(timezone.utc).isoformat(),
        "io.fleetdeck.managed": "true",
    }


class ContainerBuilder:
    """Builds and runs service images against the local Docker daemon.

    Example:
        >>> builder = ContainerBuilder()
        >>> result = builder.build(
        ...     build_context=".",
        ...     image_name="gcr.io/my-project/amp-dev",
        ...     tag="abc1234-1700000000000",
        ... )
        >>> print(result.full_name)
        'gcr.io/my-project/amp-dev:abc1234-1700000000000'
    """

    def __init__(self) -> None:
        """Connect to the Docker daemon using the environment configuration.

        Raises:
            DockerNotAvailableError: If Docker daemon is not available
        """
        try:
            self.client = docker.from_env()  # type: ignore[attr-defined]
        except DockerException as e:
            raise DockerNotAvailableError(operation="init") from e

    def build(
        self,
        build_context: str | Path,
        image_name: str,
        tag: str,
        labels: dict[str, str] | None = None,
        dockerfile: str = "Dockerfile",
        **build_kwargs: Any,
    ) -> BuildResult:
        """Build an image from the given context.

        Args:
            build_context: Path to the build context directory
            image_name: Repository/image name for the built image
            tag: Tag for the built image
            labels: Optional OCI labels to apply
            dockerfile: Path to Dockerfile relative to context
            **build_kwargs: Additional arguments passed to Docker build

        Returns:
            BuildResult with image details and build logs

        Raises:
            DeploymentError: If build context doesn't exist or build fails
        """
        context_path = Path(build_context)
        if not context_path.exists():
            raise DeploymentError(
                operation="image_build",
                message=f"Build context not found: {build_context}",
            )

        full_tag = f"{image_name}:{tag}"
        logger.info(f"Building {full_tag} from {context_path}")

        try:
            image, build_logs = self.client.images.build(
                path=str(context_path),
                tag=full_tag,
                dockerfile=dockerfile,
                labels=labels or {},
                rm=True,
                **build_kwargs,
            )
        except BuildError as e:
            raise DeploymentError(
                operation="image_build",
                message=f"Docker build failed: {e.msg}",
            ) from e
        except DockerException as e:
            raise DeploymentError(
                operation="image_build",
                message=f"Docker error during build: {e}",
            ) from e

        log_lines: list[str] = []
        for log_entry in build_logs:
            if not isinstance(log_entry, dict):
                continue
            stream_val = log_entry.get("stream")
            if isinstance(stream_val, str):
                log_lines.append(stream_val.rstrip("\n"))
            elif "error" in log_entry:
                log_lines.append(f"ERROR: {log_entry['error']}")

        return BuildResult.from_image(
            image=image,
            image_name=image_name,
            tag=tag,
            log_lines=log_lines,
        )

    def run(
        self,
        image: str,
        *,
        host_port: int,
        container_port: int,
    ) -> Container:
        """Start a detached container publishing one port.

        Args:
            image: Full image reference to run
            host_port: Port on the host
            container_port: Port inside the container

        Returns:
            The started container

        Raises:
            DeploymentError: If the image is missing or the daemon refuses
        """
        logger.info(f"Starting {image} on localhost:{host_port}")
        try:
            return self.client.containers.run(
                image,
                detach=True,
                ports={f"{container_port}/tcp": host_port},
            )
        except ImageNotFound as e:
            raise DeploymentError(
                operation="image_run_local",
                message=f"Image {image} not found locally. Run `image-build` first.",
            ) from e
        except APIError as e:
            raise DeploymentError(
                operation="image_run_local",
                message=f"Docker error starting container: {e}",
            ) from e
