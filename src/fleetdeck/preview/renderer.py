"""Server-side rendering of the code-preview widget.

The widget shows a live preview next to a code sample. Interactivity
(orientation toggle, visibility, frame reload) is bound to per-widget client
state through ``amp-bind``; nothing is mutated after render. The state key is
namespaced by the widget index so several widgets can share one page.
"""

from __future__ import annotations

from urllib.parse import quote, urldefrag

from jinja2 import Environment, StrictUndefined
from markupsafe import Markup

from fleetdeck.models.preview import (
    Orientation,
    PageContext,
    PreviewDescriptor,
    PreviewMode,
)

# Jinja2 template for the preview fragment
PREVIEW_TEMPLATE = """\
{%- macro src_binding() -%}
{{ reload_url | tojson }} + {{ state_id }}.reloads
{%- if fragment %} + {{ fragment | tojson }}{% endif %}
{%- endmacro -%}
{%- if mode != "none" -%}
<div class="fd-code-preview -{{ mode }}" data-preview-index="{{ preview.index }}">
  <amp-state id="{{ state_id }}">
    <script type="application/json">{{ initial_state | tojson }}</script>
  </amp-state>
{%- if mode == "inline" %}
  <div class="fd-code-preview-inline" [hidden]="!{{ state_id }}.visible">
    <iframe id="{{ frame_id }}" class="fd-code-preview-frame"
            src="{{ preview.url }}"
            [src]='{{ src_binding() }}'
            title="{{ _('Preview') }}"
            sandbox="allow-scripts allow-same-origin allow-forms"
            loading="lazy"></iframe>
  </div>
{%- elif mode == "top-frame" %}
  <div class="fd-code-preview-top-frame">
    <div class="fd-code-preview-toolbar">
      <button class="fd-code-preview-toggle"
              on="tap:AMP.setState({ {{ state_id }}: { visible: !{{ state_id }}.visible } })"
              aria-label="{{ _('Toggle preview') }}">{{ icon("eye") }}</button>
      {{ reload_button() }}
    </div>
    <div class="fd-code-preview-frame-container" [hidden]="!{{ state_id }}.visible">
      <iframe id="{{ frame_id }}" class="fd-code-preview-frame"
              src="{{ preview.url }}"
              [src]='{{ src_binding() }}'
              title="{{ _('Preview') }}"
              sandbox="allow-scripts allow-same-origin allow-forms"></iframe>
    </div>
  </div>
{%- elif mode == "side-frame" %}
  <div class="fd-code-preview-side-frame -{{ preview.orientation.value }}"
       [class]="'fd-code-preview-side-frame -' + {{ state_id }}.orientation">
    <div class="fd-code-preview-toolbar">
{%- for orientation in orientations %}
      <button class="fd-code-preview-orientation -{{ orientation }}"
              on="tap:AMP.setState({ {{ state_id }}: { orientation: '{{ orientation }}' } })"
              aria-label="{{ _(orientation | capitalize) }}">{{ icon(orientation) }}</button>
{%- endfor %}
      {{ reload_button() }}
    </div>
    <iframe id="{{ frame_id }}" class="fd-code-preview-frame"
            src="{{ preview.url }}"
            [src]='{{ src_binding() }}'
            title="{{ _('Preview') }}"
            sandbox="allow-scripts allow-same-origin allow-forms"></iframe>
  </div>
{%- endif %}
{%- if playground_url %}
  <a class="fd-code-preview-playground" href="{{ playground_url }}"
     target="_blank" rel="noopener">{{ icon("playground") }} {{ _('Open in playground') }}</a>
{%- endif %}
</div>
{%- endif -%}
"""

_RELOAD_BUTTON = """\
<button class="fd-code-preview-reload"
              on="tap:AMP.setState({ {{ state_id }}: { reloads: {{ state_id }}.reloads + 1 } })"
              aria-label="{{ _('Reload') }}">{{ icon("reload") }}</button>"""

_environment = Environment(
    autoescape=True,
    undefined=StrictUndefined,
    keep_trailing_newline=False,
)
_template = _environment.from_string(PREVIEW_TEMPLATE)
_reload_template = _environment.from_string(_RELOAD_BUTTON)

# Query parameter carrying the frame's reload counter
RELOAD_PARAM = "fd_reload"


def build_playground_url(context: PageContext, url: str) -> str | None:
    """Return the playground link for a preview URL, or None if unavailable."""
    base = context.base_urls.get("playground")
    if not base or not url:
        return None
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}url={quote(url, safe='')}"


def _reload_url(url: str) -> tuple[str, str]:
    """Split a preview URL into a counter-ready prefix and its fragment."""
    base, fragment = urldefrag(url)
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{RELOAD_PARAM}=", f"#{fragment}" if fragment else ""


def render_preview(
    preview: PreviewDescriptor, context: PageContext | None = None
) -> str:
    """Render the code-preview fragment for one widget.

    Args:
        preview: Per-widget descriptor, validated by the caller
        context: Ambient page context (icons, base URLs, translate)

    Returns:
        HTML markup; an empty string for mode ``none``

    Example:
        >>> render_preview(PreviewDescriptor(mode="none"))
        ''
    """
    context = context or PageContext()

    def icon(name: str) -> Markup:
        # Icons are trusted inline SVG from the page's icon registry
        return Markup(context.icons.get(name, ""))  # nosec B704  # noqa: S704

    reload_url, fragment = _reload_url(preview.url)
    variables = {
        "preview": preview,
        "mode": preview.mode.value,
        "state_id": preview.state_id,
        "frame_id": preview.frame_id,
        "_": context.translate,
        "icon": icon,
        "reload_url": reload_url,
        "fragment": fragment,
    }

    def reload_button() -> Markup:
        return Markup(_reload_template.render(**variables))  # nosec B704  # noqa: S704

    playground_url = None
    if preview.playground and preview.mode != PreviewMode.NONE:
        playground_url = build_playground_url(context, preview.url)

    return _template.render(
        **variables,
        initial_state={
            "orientation": preview.orientation.value,
            "visible": True,
            "reloads": 0,
        },
        orientations=[orientation.value for orientation in Orientation],
        playground_url=playground_url,
        reload_button=reload_button,
    )
