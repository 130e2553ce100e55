"""
SVG placeholder image rendering.
"""

from html import escape

PLACEHOLDER_BACKGROUND = "#e0e0e0"
PLACEHOLDER_TEXT_COLOR = "#666"

_SVG_TEMPLATE = (
    '<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">'
    '<rect width="100%" height="100%" fill="{background}"/>'
    '<text x="50%" y="50%" font-family="Arial" font-size="16" text-anchor="middle" '
    'dominant-baseline="middle" fill="{color}">{label}</text>'
    "</svg>"
)


def render_placeholder_svg(width: str, height: str) -> str:
    """
    Render a neutral placeholder of the given dimensions.

    Dimensions are used verbatim (no numeric validation) but XML-escaped.
    """
    w = escape(str(width), quote=True)
    h = escape(str(height), quote=True)
    return _SVG_TEMPLATE.format(
        width=w,
        height=h,
        background=PLACEHOLDER_BACKGROUND,
        color=PLACEHOLDER_TEXT_COLOR,
        label=f"{w}x{h}",
    )
