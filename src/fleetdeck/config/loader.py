"""Configuration loader for FleetDeck deployments.

Builds the immutable :class:`DeploymentConfig` once at process start.

Configuration precedence (highest to lowest):
1. Commandline overrides (``--tag``, ``--project``)
2. Environment variables (``FLEETDECK_*``, including a project ``.env`` file)
3. YAML config file (``--config`` or ``fleetdeck.yaml`` in the project root)
4. Built-in defaults from :mod:`fleetdeck.config.defaults`
"""

from __future__ import annotations

import copy
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from fleetdeck.config.defaults import (
    DEFAULT_CONFIG_FILE,
    GCLOUD_DEFAULTS,
    PACKAGER_DEFAULTS,
    SITE_DEFAULTS,
)
from fleetdeck.config.env_loader import get_env_var, load_env_file, substitute_env_vars
from fleetdeck.config.validator import to_config_error
from fleetdeck.lib.errors import ConfigError
from fleetdeck.lib.logging_config import get_logger
from fleetdeck.models.deployment import DeploymentConfig

logger = get_logger(__name__)

# Environment variable names
ENV_TAG = "FLEETDECK_TAG"
ENV_PROJECT = "FLEETDECK_PROJECT"
ENV_ROOT = "FLEETDECK_ROOT"


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> None:
    """Deep merge override dict into base dict (in-place).

    For nested dicts, merging is recursive. For other types (lists included),
    override completely replaces base.
    """
    for key, override_value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(override_value, Mapping)
        ):
            _deep_merge(base[key], override_value)
        else:
            base[key] = override_value


def _read_yaml_file(path: Path, env: Mapping[str, str]) -> dict[str, Any]:
    """Read a YAML config file with ``${VAR}`` substitution.

    Raises:
        ConfigError: If the file is unreadable, malformed or not a mapping
    """
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            "config_file", f"Failed to read config file {path}: {exc}"
        ) from exc

    try:
        content = yaml.safe_load(substitute_env_vars(raw_text, env))
    except yaml.YAMLError as exc:
        raise ConfigError(
            "config_file", f"Failed to parse YAML file {path}: {exc}"
        ) from exc

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(
            "config_file", f"Config file {path} must contain a mapping at top level"
        )
    return content


def _resolve_working_dir(service: dict[str, Any], root: Path) -> None:
    """Make a service's working directory absolute, relative to the root."""
    working_dir = service.get("working_dir")
    if working_dir is None:
        service["working_dir"] = root
        return
    path = Path(working_dir)
    service["working_dir"] = path if path.is_absolute() else root / path


def _build_environment(root: Path, env: Mapping[str, str] | None) -> dict[str, str]:
    """Combine a project ``.env`` file with the process environment."""
    merged = load_env_file(root / ".env")
    merged.update(os.environ if env is None else env)
    return merged


def load_deployment_config(
    *,
    tag: str | None = None,
    project: str | None = None,
    config_file: str | Path | None = None,
    root: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    timestamp: int | None = None,
) -> DeploymentConfig:
    """Build the deployment configuration for this process.

    Args:
        tag: Explicit version tag (skips tag generation)
        project: Google Cloud project ID override
        config_file: YAML config file; ``fleetdeck.yaml`` in root when omitted
        root: Project root containing the site Dockerfile
        env: Environment mapping (defaults to ``os.environ``)
        timestamp: Millisecond timestamp used when generating the tag

    Returns:
        Validated, frozen DeploymentConfig

    Raises:
        ConfigError: If configuration is invalid
        DeploymentError: If a tag must be generated and git is unavailable
    """
    from fleetdeck.deploy.builder import generate_tag

    if root is None:
        root = get_env_var(ENV_ROOT, env) or Path.cwd()
    root_path = Path(root).resolve()
    environment = _build_environment(root_path, env)

    data: dict[str, Any] = {
        "gcloud": copy.deepcopy(GCLOUD_DEFAULTS),
        "site": copy.deepcopy(SITE_DEFAULTS),
        "packager": copy.deepcopy(PACKAGER_DEFAULTS),
    }
    source = "defaults"

    if config_file is not None:
        config_path = Path(config_file)
        if not config_path.is_file():
            raise ConfigError(
                "config_file", f"Configuration file not found at {config_path}"
            )
    else:
        config_path = root_path / DEFAULT_CONFIG_FILE

    if config_path.is_file():
        logger.debug(f"Loading deployment config from {config_path}")
        _deep_merge(data, _read_yaml_file(config_path, environment))
        source = str(config_path)

    if not isinstance(data.get("gcloud"), dict):
        raise ConfigError("gcloud", f"'gcloud' in {source} must be a mapping")

    env_project = get_env_var(ENV_PROJECT, environment)
    if env_project:
        data["gcloud"]["project"] = env_project
    if project:
        data["gcloud"]["project"] = project

    for service_key in ("site", "packager"):
        if isinstance(data.get(service_key), dict):
            _resolve_working_dir(data[service_key], root_path)

    explicit_tag = tag or get_env_var(ENV_TAG, environment) or data.get("tag")
    data["tag"] = generate_tag(
        explicit_tag, timestamp=timestamp, cwd=root_path
    )

    try:
        config = DeploymentConfig.model_validate(data)
    except PydanticValidationError as exc:
        raise to_config_error(exc, source) from exc

    logger.debug(
        f"Deployment config ready: project={config.gcloud.project} tag={config.tag}"
    )
    return config
