"""
Placeholder image endpoint.
"""

from fastapi import APIRouter
from fastapi.responses import Response

from ..core.placeholder import render_placeholder_svg

router = APIRouter()


@router.get(
    "/placeholder/{width}/{height}",
    response_class=Response,
    responses={200: {"content": {"image/svg+xml": {}}}},
    summary="SVG placeholder image",
)
async def placeholder(width: str, height: str) -> Response:
    """Grey SVG of the requested size labelled with its dimensions."""
    return Response(content=render_placeholder_svg(width, height), media_type="image/svg+xml")
