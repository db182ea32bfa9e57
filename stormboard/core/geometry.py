from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from ..config import DEFAULT_SETTINGS, CardLayout
from .models import Position

Point = Tuple[float, float]


@dataclass(frozen=True)
class CardSize:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_edges(cls, left: float, top: float, right: float, bottom: float) -> "Rect":
        return cls(left, top, right - left, bottom - top)

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def cx(self) -> float:
        return self.x + self.w / 2

    @property
    def cy(self) -> float:
        return self.y + self.h / 2

    @property
    def center(self) -> Point:
        return (self.cx, self.cy)

    def inflate(self, delta: float) -> "Rect":
        return Rect(self.x - delta, self.y - delta, self.w + 2 * delta, self.h + 2 * delta)


def _is_wide(ch: str) -> bool:
    return ord(ch) > 0xFF


def text_units(text: str) -> int:
    """Width of a line in character units; wide-script characters count double."""
    return max(1, sum(2 if _is_wide(ch) else 1 for ch in text))


def estimate_card_size(text: str, layout: CardLayout | None = None) -> CardSize:
    """Estimate the rendered card size for `text`.

    Pure function of the text and the layout constants, so two cards with the
    same name always have the same size.
    """
    lay = layout or DEFAULT_SETTINGS.layout
    px = lay.px_per_unit
    min_inner = lay.min_width - lay.padding * 2
    max_inner = lay.max_width - lay.padding * 2

    lines = text.split("\n")
    widest = max(text_units(line) for line in lines)
    inner_width = min(max_inner, max(min_inner, widest * px))

    units_per_line = max(1, math.floor(inner_width / px))
    line_count = max(1, sum(max(1, math.ceil(text_units(line) / units_per_line)) for line in lines))
    content_height = math.ceil(line_count * lay.font_size * lay.line_height)

    return CardSize(
        width=math.ceil(inner_width + lay.padding * 2),
        height=max(lay.min_height, content_height + lay.padding * 2),
    )


def bounds_of(position: Position, size: CardSize) -> Rect:
    return Rect(position.x, position.y, size.width, size.height)


def card_bounds(position: Position, name: str, layout: CardLayout | None = None) -> Rect:
    """Rectangle of a card recomputed from its live name and position."""
    return bounds_of(position, estimate_card_size(name, layout))


def intersects(a: Rect, b: Rect) -> bool:
    """Separating-axis test. Rectangles that only share an edge do not intersect."""
    separated = a.right <= b.left or a.left >= b.right or a.bottom <= b.top or a.top >= b.bottom
    return not separated
