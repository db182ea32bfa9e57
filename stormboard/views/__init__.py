"""Views over a board: connector routing and diagram export."""

from .export import format_board_as_mermaid, format_board_as_plantuml
from .routing import route_connection, rounded_path_d
from .svg import COLORS, Style, SVGCanvas, render_board_svg

__all__ = [
    "format_board_as_mermaid",
    "format_board_as_plantuml",
    "route_connection",
    "rounded_path_d",
    "COLORS",
    "Style",
    "SVGCanvas",
    "render_board_svg",
]
