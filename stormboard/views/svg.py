"""
SVG document export for a board.

Produces SVG text only: aggregate outlines, routed connection arrows and the
cards themselves, each filled with its type color.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import List, Optional

from ..core.board import Board
from .routing import rounded_path_d

COLORS = {
    "bg": "#ffffff",
    "text": "#1f2328",
    "outline": "#57606a",
    "muted": "#8c959f",
    "aggregate": "#fff8c5",
    "connection": "#424a53",
}


@dataclass
class Style:
    fill: str = "none"
    stroke: str = "none"
    stroke_width: float = 1.0
    stroke_dasharray: Optional[str] = None
    opacity: float = 1.0
    font_size: int = 14
    font_family: str = "system-ui, -apple-system, sans-serif"
    font_weight: str = "normal"
    text_anchor: str = "start"


class SVGCanvas:
    """
    Lightweight SVG generator.
    """

    def __init__(self, width: float = 800, height: float = 600):
        self.width = width
        self.height = height
        self.elements: List[str] = []
        self.defs: List[str] = []
        self._add_markers()

    def _add_markers(self):
        """Add the arrow marker used by connections."""
        self.defs.append(
            """
        <marker id="arrow" viewBox="0 -5 10 10" refX="8" refY="0"
                markerWidth="6" markerHeight="6" orient="auto">
            <path d="M0,-5L10,0L0,5" fill="{}" />
        </marker>
        """.format(COLORS["connection"])
        )

    def add_rect(self, x: float, y: float, w: float, h: float, rx: float = 0, style: Style | None = None):
        """Draw a rectangle."""
        attrs = self._style_to_attrs(style or Style())
        self.elements.append(f'<rect x="{x}" y="{y}" width="{w}" height="{h}" rx="{rx}" {attrs} />')

    def add_text(self, x: float, y: float, text: str, style: Style | None = None):
        """Draw text."""
        attrs = self._style_to_attrs(style or Style())
        self.elements.append(f'<text x="{x}" y="{y}" {attrs}>{html.escape(str(text))}</text>')

    def add_text_lines(
        self,
        x: float,
        y: float,
        lines: List[str],
        style: Style | None = None,
        line_height: Optional[float] = None,
    ):
        """Draw multiline text using tspans (SVG does not render \n in <text>)."""
        if not lines:
            return
        s = style or Style()
        attrs = self._style_to_attrs(s)
        lh = line_height if line_height is not None else (s.font_size * 1.25)
        tspans = []
        for i, line in enumerate(lines):
            dy = 0 if i == 0 else lh
            tspans.append(f'<tspan x="{x}" dy="{dy}">{html.escape(str(line))}</tspan>')
        self.elements.append(f'<text x="{x}" y="{y}" {attrs}>{"".join(tspans)}</text>')

    def add_path(self, d: str, style: Style | None = None, marker_end: str | None = None):
        """Draw a path."""
        attrs = self._style_to_attrs(style or Style())
        marker_attr = f'marker-end="url(#{marker_end})"' if marker_end else ""
        self.elements.append(f'<path d="{d}" {attrs} {marker_attr} />')

    def _style_to_attrs(self, style: Style) -> str:
        attrs = [
            f'fill="{style.fill}"',
            f'stroke="{style.stroke}"',
            f'stroke-width="{style.stroke_width}"',
            f'opacity="{style.opacity}"',
            f'font-family="{style.font_family}"',
            f'font-size="{style.font_size}px"',
            f'font-weight="{style.font_weight}"',
            f'text-anchor="{style.text_anchor}"',
        ]
        if style.stroke_dasharray:
            attrs.append(f'stroke-dasharray="{style.stroke_dasharray}"')
        return " ".join(attrs)

    def render(self) -> str:
        """Generate full SVG string."""
        defs_block = f"<defs>{''.join(self.defs)}</defs>" if self.defs else ""
        content = "\n".join(self.elements)

        return f"""<?xml version="1.0" encoding="UTF-8" standalone="no"?>
<svg width="{self.width}" height="{self.height}" viewBox="0 0 {self.width} {self.height}"
     xmlns="http://www.w3.org/2000/svg">
    <rect width="100%" height="100%" fill="{COLORS["bg"]}" />
    {defs_block}
    {content}
</svg>"""


def render_board_svg(board: Board, *, padding: float = 40.0) -> str:
    """Render the board as an SVG document string."""
    layout = board.settings.layout
    cards = board.cards()
    rects = {c.id: board.bounds_for(c.position, c.name) for c in cards}

    width = max([r.right for r in rects.values()] + [800 - padding]) + padding
    height = max([r.bottom for r in rects.values()] + [600 - padding]) + padding
    canvas = SVGCanvas(width, height)

    card_map = board.card_map()
    for agg in board.aggregates():
        b = agg.bounds(card_map, board.settings.aggregate_bounds_padding)
        if b is None:
            continue
        # Member positions are top-left anchors; extend to cover the cards.
        right = max(rects[cid].right for cid in agg.card_ids if cid in rects) + board.settings.aggregate_bounds_padding
        bottom = max(rects[cid].bottom for cid in agg.card_ids if cid in rects) + board.settings.aggregate_bounds_padding
        canvas.add_rect(
            b.min_x,
            b.min_y,
            right - b.min_x,
            bottom - b.min_y,
            rx=14,
            style=Style(fill=COLORS["aggregate"], stroke=COLORS["muted"], stroke_dasharray="6 4", opacity=0.6),
        )
        canvas.add_text(
            b.min_x + 10,
            b.min_y + 18,
            agg.name,
            style=Style(fill=COLORS["muted"], font_size=12, font_weight="bold"),
        )

    for pts in board.routes().values():
        canvas.add_path(
            rounded_path_d(pts, radius=8.0),
            style=Style(stroke=COLORS["connection"], stroke_width=1.5),
            marker_end="arrow",
        )

    for card in cards:
        r = rects[card.id]
        canvas.add_rect(r.x, r.y, r.w, r.h, rx=6, style=Style(fill=card.color, stroke=COLORS["outline"]))
        canvas.add_text_lines(
            r.x + layout.padding,
            r.y + layout.padding + layout.font_size,
            card.name.split("\n"),
            style=Style(fill=COLORS["text"], font_size=int(layout.font_size)),
            line_height=layout.font_size * layout.line_height,
        )

    return canvas.render()
