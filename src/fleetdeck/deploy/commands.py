"""Argument builders for the external ``gcloud`` and ``docker`` commands.

Every function returns an argv list; nothing here executes anything. The
grammars of both CLIs are fixed external contracts.
"""

from __future__ import annotations

from fleetdeck.models.deployment import InstanceGroup, RolloutPolicy

GCLOUD = "gcloud"
DOCKER = "docker"


def configure_docker() -> list[str]:
    """Register gcloud as a Docker credential helper."""
    return [GCLOUD, "auth", "configure-docker"]


def set_config(key: str, value: str) -> list[str]:
    """``gcloud config set <key> <value>``."""
    return [GCLOUD, "config", "set", key, value]


def list_tags(image_name: str, *, tags_only: bool = False) -> list[str]:
    """List the tags published for an image.

    With ``tags_only`` the output is one line per digest holding its
    comma-separated tags, which is what tag verification parses.
    """
    command = [GCLOUD, "container", "images", "list-tags", image_name]
    if tags_only:
        command.append("--format=value(tags)")
    return command


def builds_submit(image_ref: str) -> list[str]:
    """Build remotely with Cloud Build and publish ``image_ref``."""
    return [GCLOUD, "builds", "submit", "--tag", image_ref, "."]


def docker_build(image_ref: str) -> list[str]:
    """Build ``image_ref`` locally from the current directory."""
    return [DOCKER, "build", "--tag", image_ref, "."]


def docker_run(image_ref: str, host_port: int, container_port: int) -> list[str]:
    """Run ``image_ref`` detached, publishing one port."""
    return [DOCKER, "run", "-d", "-p", f"{host_port}:{container_port}", image_ref]


def create_instance_template(
    template: str,
    image_ref: str,
    machine: str,
    network_tags: tuple[str, ...] = (),
    scopes: tuple[str, ...] = (),
) -> list[str]:
    """Create a container-based instance template.

    ``--tags`` and ``--scopes`` are only passed when non-empty.
    """
    command = [
        GCLOUD,
        "compute",
        "instance-templates",
        "create-with-container",
        template,
        "--container-image",
        image_ref,
        "--machine-type",
        machine,
    ]
    if network_tags:
        command.extend(["--tags", ",".join(network_tags)])
    if scopes:
        command.extend(["--scopes", ",".join(scopes)])
    return command


def start_rolling_update(
    group: InstanceGroup, template: str, policy: RolloutPolicy
) -> list[str]:
    """Start a rolling update of ``group`` to ``template``."""
    return [
        GCLOUD,
        "beta",
        "compute",
        "instance-groups",
        "managed",
        "rolling-action",
        "start-update",
        group.name,
        "--version",
        f"template={template}",
        f"--zone={group.zone}",
        "--min-ready",
        policy.min_ready,
        "--max-surge",
        str(policy.max_surge),
        "--max-unavailable",
        str(policy.max_unavailable),
    ]


def describe_group(group: InstanceGroup) -> list[str]:
    """Describe a managed instance group, including its update status."""
    return [
        GCLOUD,
        "beta",
        "compute",
        "instance-groups",
        "managed",
        "describe",
        group.name,
        f"--zone={group.zone}",
    ]


def stop_rolling_update(group: InstanceGroup) -> list[str]:
    """Stop the proactive part of an active rolling update.

    Already updated instances are not reverted.
    """
    return [
        GCLOUD,
        "compute",
        "instance-groups",
        "managed",
        "rolling-action",
        "stop-proactive-update",
        group.name,
        f"--zone={group.zone}",
    ]
