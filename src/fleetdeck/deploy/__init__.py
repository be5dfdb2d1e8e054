"""FleetDeck deployment engine.

This package builds versioned container images, creates instance templates
and rolls them out across managed instance groups.
"""

from fleetdeck.deploy.builder import (
    BuildResult,
    ContainerBuilder,
    generate_tag,
    get_oci_labels,
)
from fleetdeck.deploy.pipeline import DeploymentPipeline
from fleetdeck.deploy.runner import CommandRunner, DryRunRunner

__all__ = [
    "BuildResult",
    "CommandRunner",
    "ContainerBuilder",
    "DeploymentPipeline",
    "DryRunRunner",
    "generate_tag",
    "get_oci_labels",
]
