"""Orthogonal connector routing between cards.

Cards are sparse rectangles, so instead of a grid search the router scores a
handful of canonical shapes (two L routes and four Z detours around the pair)
and keeps the shortest one that clears every other card.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from ..core.geometry import Point, Rect

logger = logging.getLogger(__name__)

DEFAULT_MARGIN = 24.0
# Obstacles are inflated by this fraction of the margin.
OBSTACLE_MARGIN_RATIO = 0.2


def exit_point(src: Rect, dst: Rect) -> Point:
    """Midpoint of the edge of `src` that faces `dst` along the dominant axis."""
    dx = dst.cx - src.cx
    dy = dst.cy - src.cy
    if abs(dx) >= abs(dy):
        return (src.right if dx >= 0 else src.left, src.cy)
    return (src.cx, src.bottom if dy >= 0 else src.top)


def segment_intersects_rect(p1: Point, p2: Point, r: Rect) -> bool:
    """Axis-aligned segment intersection with a rectangle (inclusive borders).

    Non-orthogonal segments never intersect here; `is_orthogonal` rejects them
    separately.
    """
    x1, y1 = p1
    x2, y2 = p2

    if x1 == x2:
        x = x1
        if x < r.left or x > r.right:
            return False
        lo, hi = (y1, y2) if y1 <= y2 else (y2, y1)
        return not (hi < r.top or lo > r.bottom)

    if y1 == y2:
        y = y1
        if y < r.top or y > r.bottom:
            return False
        lo, hi = (x1, x2) if x1 <= x2 else (x2, x1)
        return not (hi < r.left or lo > r.right)

    return False


def is_orthogonal(pts: List[Point]) -> bool:
    return all(a[0] == b[0] or a[1] == b[1] for a, b in zip(pts, pts[1:]))


def polyline_intersects_any_rect(pts: List[Point], rects: Iterable[Rect]) -> bool:
    rs = list(rects)
    for i in range(len(pts) - 1):
        a, b = pts[i], pts[i + 1]
        for r in rs:
            if segment_intersects_rect(a, b, r):
                return True
    return False


def candidate_routes(start: Point, end: Point, src: Rect, dst: Rect, margin: float) -> List[List[Point]]:
    """Direct L routes first, then Z detours around the pair's bounding box."""
    (sx, sy), (ex, ey) = start, end
    min_y = min(src.top, dst.top) - margin
    max_y = max(src.bottom, dst.bottom) + margin
    min_x = min(src.left, dst.left) - margin
    max_x = max(src.right, dst.right) + margin

    return [
        [start, (ex, sy), end],
        [start, (sx, ey), end],
        [start, (sx, min_y), (ex, min_y), end],
        [start, (sx, max_y), (ex, max_y), end],
        [start, (min_x, sy), (min_x, ey), end],
        [start, (max_x, sy), (max_x, ey), end],
    ]


def route_length(pts: List[Point]) -> float:
    """Manhattan length of a polyline."""
    return sum(abs(b[0] - a[0]) + abs(b[1] - a[1]) for a, b in zip(pts, pts[1:]))


def is_route_clear(pts: List[Point], obstacles: Iterable[Rect], margin: float) -> bool:
    if not is_orthogonal(pts):
        return False
    blocked = [r.inflate(margin * OBSTACLE_MARGIN_RATIO) for r in obstacles]
    return not polyline_intersects_any_rect(pts, blocked)


def simplify_route(pts: List[Point]) -> List[Point]:
    """Drop interior points that sit on a straight run; endpoints are kept."""
    if len(pts) <= 2:
        return list(pts)

    out: List[Point] = [pts[0]]
    for i in range(1, len(pts) - 1):
        px, py = out[-1]
        cx, cy = pts[i]
        nx, ny = pts[i + 1]
        if (px == cx == nx) or (py == cy == ny):
            continue
        out.append(pts[i])
    out.append(pts[-1])
    return out


def route_connection(
    src: Rect,
    dst: Rect,
    obstacles: Iterable[Rect],
    *,
    margin: float = DEFAULT_MARGIN,
) -> List[Point]:
    """Route an orthogonal polyline from `src` to `dst`.

    `obstacles` may include `src` and `dst`; they are skipped. Always returns a
    path: when no candidate clears the obstacles, the shortest of all
    candidates is used.
    """
    start = exit_point(src, dst)
    end = exit_point(dst, src)
    others = [r for r in obstacles if r != src and r != dst]

    candidates = candidate_routes(start, end, src, dst, margin)
    valid = [c for c in candidates if is_route_clear(c, others, margin)]
    if not valid:
        logger.warning("No obstacle-free route between %s and %s; using shortest candidate", src, dst)
        valid = candidates

    best = valid[0]
    for c in valid[1:]:
        if route_length(c) < route_length(best):
            best = c
    return simplify_route(best)


def rounded_path_d(pts: List[Point], radius: float = 10.0) -> str:
    """Create an SVG path string from an orthogonal polyline with rounded corners."""
    if not pts:
        return ""
    if len(pts) == 1:
        x, y = pts[0]
        return f"M {x} {y}"

    def clamp(v: float, lo: float, hi: float) -> float:
        return max(lo, min(hi, v))

    d: List[str] = []
    x0, y0 = pts[0]
    d.append(f"M {x0} {y0}")

    for i in range(1, len(pts) - 1):
        x1, y1 = pts[i]
        x2, y2 = pts[i + 1]
        xp, yp = pts[i - 1]

        in_dx = 0 if x1 == xp else (1 if x1 > xp else -1)
        in_dy = 0 if y1 == yp else (1 if y1 > yp else -1)
        out_dx = 0 if x2 == x1 else (1 if x2 > x1 else -1)
        out_dy = 0 if y2 == y1 else (1 if y2 > y1 else -1)

        if (in_dx, in_dy) == (out_dx, out_dy):
            d.append(f"L {x1} {y1}")
            continue

        # Shorten the corner by radius on both legs, without overshooting.
        cut_in_x = x1 - in_dx * radius
        cut_in_y = y1 - in_dy * radius
        cut_out_x = x1 + out_dx * radius
        cut_out_y = y1 + out_dy * radius

        if in_dx != 0:
            cut_in_x = clamp(cut_in_x, min(xp, x1), max(xp, x1))
            cut_in_y = y1
        if in_dy != 0:
            cut_in_y = clamp(cut_in_y, min(yp, y1), max(yp, y1))
            cut_in_x = x1

        if out_dx != 0:
            cut_out_x = clamp(cut_out_x, min(x1, x2), max(x1, x2))
            cut_out_y = y1
        if out_dy != 0:
            cut_out_y = clamp(cut_out_y, min(y1, y2), max(y1, y2))
            cut_out_x = x1

        d.append(f"L {cut_in_x} {cut_in_y}")
        d.append(f"Q {x1} {y1} {cut_out_x} {cut_out_y}")

    xN, yN = pts[-1]
    d.append(f"L {xN} {yN}")
    return " ".join(d)
