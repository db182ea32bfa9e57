"""Placement assist built on top of the overlap guard.

Not part of the guard's contract: callers that want "put it near here" search
rings of offsets around the requested spot and take the first free slot.
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

from ..errors import ValidationError
from .board import Board
from .models import Position


def ring_offsets(ring: int) -> Iterator[Tuple[int, int]]:
    """Grid offsets on the perimeter of the square ring at distance `ring`.

    Ring 0 is the origin. Offsets are yielded row by row, top to bottom.
    """
    if ring == 0:
        yield (0, 0)
        return
    for dy in range(-ring, ring + 1):
        for dx in range(-ring, ring + 1):
            if max(abs(dx), abs(dy)) == ring:
                yield (dx, dy)


def find_free_position(
    board: Board,
    x: float,
    y: float,
    name: str,
    *,
    step: Optional[float] = None,
    max_rings: Optional[int] = None,
) -> Position:
    """Nearest conflict-free position for a card named `name` around (x, y).

    Falls back to the requested position when no free slot exists within
    `max_rings` rings; the caller's add then reports the conflict.
    """
    step = board.settings.placement_step if step is None else step
    max_rings = board.settings.placement_rings if max_rings is None else max_rings
    if step <= 0:
        raise ValidationError("Placement step must be positive")

    origin = Position(x, y)
    extent = board.settings.board_extent
    for ring in range(0, max_rings + 1):
        for dx, dy in ring_offsets(ring):
            cx = x + dx * step
            cy = y + dy * step
            if cx < 0 or cy < 0 or cx > extent or cy > extent:
                continue
            candidate = Position(cx, cy)
            if not board.has_conflict(candidate, name):
                return candidate
    return origin
