"""FleetDeck - Build container images and roll them out to VM fleets.

FleetDeck sequences the ``gcloud`` and ``docker`` invocations that publish a
versioned container image, create an instance template from it and roll it
out across managed instance groups. It also renders the code-preview widget
used by the documentation pages.

Main features:
- Version tags derived from the git revision plus a timestamp
- Pre-flight check that a tag was never published before
- Concurrent rolling updates across instance groups
- Dry-run mode printing every command
"""

from fleetdeck.lib.errors import (
    ConfigError,
    DeploymentError,
    FleetDeckError,
    TagAlreadyDeployedError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigError",
    "DeploymentError",
    "FleetDeckError",
    "TagAlreadyDeployedError",
]
