"""CLI command rendering code-preview fragments.

Reads preview descriptors from a YAML (or JSON) file and prints the rendered
HTML, one fragment per descriptor. Useful to check the markup a page will
embed without running the site generator.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import ValidationError as PydanticValidationError

from fleetdeck.config.validator import to_config_error
from fleetdeck.lib.errors import ConfigError
from fleetdeck.lib.logging_config import get_logger
from fleetdeck.models.preview import PageContext, PreviewDescriptor
from fleetdeck.preview.renderer import render_preview

logger = get_logger(__name__)


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError("preview", f"Failed to read {path}: {exc}") from exc


def load_descriptors(path: Path) -> list[PreviewDescriptor]:
    """Load one descriptor (a mapping) or several (a list) from a file.

    Descriptors without an explicit index get their position in the file.
    """
    content = _read_yaml(path)
    if content is None:
        return []
    entries = content if isinstance(content, list) else [content]

    descriptors: list[PreviewDescriptor] = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(
                f"preview[{position}]", "Each preview descriptor must be a mapping"
            )
        entry.setdefault("index", position)
        try:
            descriptors.append(PreviewDescriptor.model_validate(entry))
        except PydanticValidationError as exc:
            raise to_config_error(exc, str(path)) from exc
    return descriptors


def load_page_context(path: Path | None) -> PageContext:
    """Load icons and base URLs for rendering; translation stays identity."""
    if path is None:
        return PageContext()
    content = _read_yaml(path) or {}
    if not isinstance(content, dict):
        raise ConfigError("context", f"{path} must contain a mapping")
    try:
        return PageContext(
            icons=content.get("icons", {}),
            base_urls=content.get("base_urls", {}),
        )
    except PydanticValidationError as exc:
        raise to_config_error(exc, str(path)) from exc


@click.command("render-preview")
@click.argument(
    "descriptor_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--context",
    "context_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with 'icons' and 'base_urls' for the page",
)
def render_preview_command(descriptor_file: Path, context_file: Path | None) -> None:
    """Render code-preview fragments described in DESCRIPTOR_FILE."""
    try:
        descriptors = load_descriptors(descriptor_file)
        context = load_page_context(context_file)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)

    for descriptor in descriptors:
        fragment = render_preview(descriptor, context)
        if fragment:
            click.echo(fragment)
