"""Default deployment configuration for FleetDeck."""

from typing import Any

PREFIX = "amp-dev"
PACKAGER_PREFIX = f"{PREFIX}-packager"

# Google Cloud defaults
DEFAULT_PROJECT_ID = "amp-dev-230314"
DEFAULT_REGION = "us-east1"
DEFAULT_ZONE = "us-east1-c"
DEFAULT_REGISTRY_HOST = "gcr.io"

# Default config file looked up in the working directory
DEFAULT_CONFIG_FILE = "fleetdeck.yaml"

# Port mapping for `image-run-local`: host port -> container port
LOCAL_RUN_HOST_PORT = 8082
LOCAL_RUN_CONTAINER_PORT = 80

SITE_DEFAULTS: dict[str, Any] = {
    "prefix": PREFIX,
    "working_dir": None,
    "instance": {
        "groups": [
            {"name": f"ig-{PREFIX}-europe", "zone": "europe-west2-c"},
            {"name": f"ig-{PREFIX}-zone2", "zone": "us-east1-b"},
        ],
        "count": 2,
        "machine": "n1-standard-2",
        "network_tags": ["http-server", "https-server"],
        "scopes": ["default", "datastore"],
    },
    "rollout": {
        "min_ready": "4m",
        "max_surge": 1,
        "max_unavailable": 1,
    },
    "verify_before_deploy": True,
}

PACKAGER_DEFAULTS: dict[str, Any] = {
    "prefix": PACKAGER_PREFIX,
    # Relative to the project root
    "working_dir": "packager",
    "instance": {
        "groups": [
            {"name": f"ig-{PACKAGER_PREFIX}", "zone": "us-east1-b"},
        ],
        "count": 1,
        "machine": "n1-standard-1",
        "network_tags": [],
        "scopes": [],
    },
    "rollout": {
        "min_ready": "1m",
        "max_surge": 1,
        "max_unavailable": 1,
    },
    "verify_before_deploy": False,
}

GCLOUD_DEFAULTS: dict[str, str] = {
    "project": DEFAULT_PROJECT_ID,
    "region": DEFAULT_REGION,
    "zone": DEFAULT_ZONE,
    "registry_host": DEFAULT_REGISTRY_HOST,
}
