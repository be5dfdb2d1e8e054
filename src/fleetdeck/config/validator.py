"""Validation utilities for FleetDeck configuration."""

from pydantic import ValidationError as PydanticValidationError

from fleetdeck.lib.errors import ConfigError


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten a Pydantic ValidationError into one message per field.

    Value errors raised by our own validators already name the offending
    value, so only type errors get the received input appended.

    Args:
        exc: Pydantic ValidationError exception

    Returns:
        List of human-readable messages, never empty
    """
    messages: list[str] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        field_path = ".".join(str(part) for part in loc) if loc else "config"
        msg = error.get("msg", "Unknown error")

        if error.get("type", "").endswith("_type") and "input" in error:
            messages.append(f"{field_path}: {msg} (received: {error['input']!r})")
        else:
            messages.append(f"{field_path}: {msg}")

    return messages or ["Validation failed with unknown error"]


def to_config_error(exc: PydanticValidationError, source: str) -> ConfigError:
    """Convert a Pydantic ValidationError into a ConfigError.

    Args:
        exc: Validation failure
        source: Where the offending values came from (file path or "defaults")

    Returns:
        ConfigError whose field is the first failing location
    """
    errors = exc.errors()
    first_loc = errors[0].get("loc", ()) if errors else ()
    field = ".".join(str(part) for part in first_loc) or "config"
    details = "\n  ".join(flatten_pydantic_errors(exc))
    return ConfigError(field, f"Invalid configuration from {source}:\n  {details}")
