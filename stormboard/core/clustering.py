"""Proximity clustering of cards into aggregates.

Connected components over an implicit graph: two cards are adjacent when their
centers are within the clustering radius. Expansion is transitive through the
worklist, so a chain of nearby cards forms one cluster even when its ends are
far apart.
"""

from __future__ import annotations

import math
from collections import deque
from typing import Callable, Dict, List, Sequence, Set

from .geometry import Point
from .models import Card


def detect_clusters(
    cards: Sequence[Card],
    radius: float,
    center_of: Callable[[Card], Point],
) -> List[List[str]]:
    """Partition `cards` into clusters of card ids.

    Cards are visited in the given order, so a stable input order yields a
    stable partition and stable cluster numbering. Every card lands in exactly
    one cluster; isolated cards form singletons.
    """
    centers: Dict[str, Point] = {c.id: center_of(c) for c in cards}
    visited: Set[str] = set()
    clusters: List[List[str]] = []

    for seed in cards:
        if seed.id in visited:
            continue

        cluster: List[str] = []
        queue: deque[str] = deque([seed.id])
        visited.add(seed.id)

        while queue:
            current = queue.popleft()
            cluster.append(current)
            cx, cy = centers[current]

            for other in cards:
                if other.id in visited:
                    continue
                ox, oy = centers[other.id]
                if math.hypot(cx - ox, cy - oy) <= radius:
                    visited.add(other.id)
                    queue.append(other.id)

        clusters.append(cluster)

    return clusters
