"""Models for the code-preview widget.

A ``PreviewDescriptor`` is supplied per render by the page generator. The
``PageContext`` carries read-only ambient data shared by every widget on a
page.
"""

from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PreviewMode(str, Enum):
    """Rendering modes for the code preview."""

    NONE = "none"
    INLINE = "inline"
    TOP_FRAME = "top-frame"
    SIDE_FRAME = "side-frame"


class Orientation(str, Enum):
    """Preview frame orientations."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


def _identity(text: str) -> str:
    return text


class PreviewDescriptor(BaseModel):
    """Per-widget preview settings.

    Attributes:
        mode: Rendering mode
        url: URL loaded by the preview frame
        orientation: Initial frame orientation
        index: Position of the widget on the page, namespaces client state
        playground: Whether to offer an "open in playground" link
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: PreviewMode = Field(default=PreviewMode.NONE, description="Render mode")
    url: str = Field(default="", description="Preview frame URL")
    orientation: Orientation = Field(
        default=Orientation.PORTRAIT, description="Initial orientation"
    )
    index: int = Field(default=0, ge=0, description="Widget index on the page")
    playground: bool = Field(default=False, description="Offer a playground link")

    @property
    def state_id(self) -> str:
        """Client state key for this widget."""
        return f"preview{self.index}"

    @property
    def frame_id(self) -> str:
        """DOM id of this widget's iframe."""
        return f"preview-frame-{self.index}"


class PageContext(BaseModel):
    """Ambient page context consumed read-only by the preview fragment.

    Attributes:
        icons: Inline SVG markup keyed by icon name
        base_urls: Base URLs keyed by purpose (``playground``)
        translate: Localization function applied to UI strings
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    icons: dict[str, str] = Field(default_factory=dict)
    base_urls: dict[str, str] = Field(default_factory=dict)
    translate: Callable[[str], str] = Field(default=_identity)
