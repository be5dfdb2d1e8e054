"""Configuration loading and validation for FleetDeck deployments.

Main components:
- load_deployment_config: Build the immutable DeploymentConfig at startup
- Environment variable substitution (${VAR_NAME} pattern) in YAML files
- Default configuration values
"""

from fleetdeck.config.env_loader import get_env_var, load_env_file, substitute_env_vars
from fleetdeck.config.loader import load_deployment_config

__all__ = [
    "load_deployment_config",
    "substitute_env_vars",
    "get_env_var",
    "load_env_file",
]
