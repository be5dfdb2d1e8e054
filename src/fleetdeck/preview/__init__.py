"""Server-side rendering of the code-preview widget."""

from fleetdeck.preview.renderer import build_playground_url, render_preview

__all__ = ["build_playground_url", "render_preview"]
