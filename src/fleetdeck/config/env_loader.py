"""Environment variable helpers for FleetDeck configuration."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values

from fleetdeck.lib.errors import ConfigError

# ${VAR_NAME} references inside YAML config files
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def get_env_var(
    name: str, env: Mapping[str, str] | None = None, default: str | None = None
) -> str | None:
    """Return an environment variable, treating empty values as unset."""
    source = os.environ if env is None else env
    value = source.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def substitute_env_vars(text: str, env: Mapping[str, str] | None = None) -> str:
    """Replace ``${VAR_NAME}`` references with environment values.

    Args:
        text: Raw text, usually a YAML document
        env: Variables to substitute from (defaults to ``os.environ``)

    Returns:
        Text with every reference substituted

    Raises:
        ConfigError: If a referenced variable is not set
    """
    source = os.environ if env is None else env

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in source:
            raise ConfigError(
                name,
                f"Environment variable '{name}' is referenced but not set",
            )
        return source[name]

    return ENV_VAR_PATTERN.sub(_replace, text)


def load_env_file(path: Path) -> dict[str, str]:
    """Read a ``.env`` file into a dictionary without touching ``os.environ``.

    Missing files yield an empty dictionary.
    """
    if not path.is_file():
        return {}
    values = dotenv_values(path)
    return {key: value for key, value in values.items() if value is not None}
