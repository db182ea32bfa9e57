"""Board aggregate root.

Owns the cards, the latest aggregate detection result and the connections of
one modeling session, and enforces the board invariants on every mutation:

- no two card rectangles overlap (touching edges are fine)
- every card position lies within the board extent
- every connection references cards that are on the board
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..config import BoardSettings, get_settings
from ..errors import ConflictError, NotFoundError, OutOfBoundsError, ValidationError
from .clustering import detect_clusters
from .flow import FlowReport, validate_flow
from .geometry import Point, Rect, card_bounds, intersects
from .models import Aggregate, Card, CardType, Connection, Position, new_id, validate_card_name

logger = logging.getLogger(__name__)


class Board:
    def __init__(self, board_id: str | None = None, settings: BoardSettings | None = None):
        self.id = board_id or new_id()
        self.settings = settings or get_settings()
        self._cards: Dict[str, Card] = {}
        self._aggregates: List[Aggregate] = []
        self._connections: List[Connection] = []
        self._connection_keys: set[str] = set()

    def __repr__(self) -> str:
        return f"Board({self.id}, cards={len(self._cards)}, aggregates={len(self._aggregates)})"

    # --- Queries ---

    @property
    def card_count(self) -> int:
        return len(self._cards)

    def get_card(self, card_id: str) -> Optional[Card]:
        return self._cards.get(card_id)

    def require_card(self, card_id: str) -> Card:
        card = self._cards.get(card_id)
        if card is None:
            raise NotFoundError(f"Card not found on board: {card_id}")
        return card

    def cards(self) -> List[Card]:
        """All cards in insertion order."""
        return list(self._cards.values())

    def card_map(self) -> Mapping[str, Card]:
        return dict(self._cards)

    def cards_by_type(self, card_type: "str | CardType") -> List[Card]:
        t = CardType.parse(card_type)
        return [c for c in self._cards.values() if c.type is t]

    def cards_in_flow_order(self) -> List[Card]:
        """Cards sorted left to right; ties by y, then insertion order."""
        return sorted(self._cards.values(), key=lambda c: (c.position.x, c.position.y))

    def aggregates(self) -> List[Aggregate]:
        return list(self._aggregates)

    def get_aggregate(self, aggregate_id: str) -> Optional[Aggregate]:
        for agg in self._aggregates:
            if agg.id == aggregate_id:
                return agg
        return None

    def connections(self) -> List[Connection]:
        return list(self._connections)

    # --- Geometry ---

    def bounds_for(self, position: Position, name: str) -> Rect:
        return card_bounds(position, name, self.settings.layout)

    def card_rect(self, card_id: str) -> Rect:
        card = self.require_card(card_id)
        return self.bounds_for(card.position, card.name)

    def has_conflict(self, position: Position, name: str, exclude_id: str | None = None) -> bool:
        """Whether a card named `name` at `position` would overlap any other card.

        Rectangles are recomputed from each card's live name and position.
        """
        candidate = self.bounds_for(position, name)
        for card in self._cards.values():
            if card.id == exclude_id:
                continue
            if intersects(candidate, self.bounds_for(card.position, card.name)):
                return True
        return False

    def _check_bounds(self, position: Position) -> None:
        if not position.is_within_bounds(self.settings.board_extent):
            raise OutOfBoundsError(
                f"Position ({position.x}, {position.y}) is outside the board extent {self.settings.board_extent}"
            )

    # --- Card store ---

    def add_card(self, card: Card) -> None:
        if card.id in self._cards:
            raise ConflictError("Card already exists on board")
        self._check_bounds(card.position)
        if self.has_conflict(card.position, card.name):
            raise ConflictError("Card position overlaps with existing card")
        self._cards[card.id] = card
        logger.debug("Added %s at (%s, %s)", card, card.position.x, card.position.y)

    def move_card(self, card_id: str, position: Position) -> None:
        card = self.require_card(card_id)
        self._check_bounds(position)
        if self.has_conflict(position, card.name, exclude_id=card_id):
            raise ConflictError("Card position overlaps with existing card")
        card.move_to(position)
        logger.debug("Moved %s to (%s, %s)", card, position.x, position.y)

    def move_cards(self, moves: Mapping[str, Position]) -> None:
        """Move several cards at once; either every move applies or none does."""
        if not moves:
            return
        for card_id, position in moves.items():
            self.require_card(card_id)
            self._check_bounds(position)

        rects: List[Tuple[str, Rect]] = [
            (c.id, self.bounds_for(moves.get(c.id, c.position), c.name)) for c in self._cards.values()
        ]
        for i, (a_id, a) in enumerate(rects):
            for b_id, b in rects[i + 1 :]:
                if (a_id in moves or b_id in moves) and intersects(a, b):
                    raise ConflictError("Card position overlaps with existing card")

        for card_id, position in moves.items():
            self._cards[card_id].move_to(position)
        logger.debug("Moved %d cards", len(moves))

    def remove_card(self, card_id: str) -> Card:
        """Remove a card, its aggregate memberships and its connections."""
        card = self.require_card(card_id)
        del self._cards[card_id]

        for agg in self._aggregates:
            if agg.contains(card_id):
                agg.remove_card(card_id)
        self._aggregates = [agg for agg in self._aggregates if len(agg) > 0]

        dropped = [c for c in self._connections if c.touches(card_id)]
        if dropped:
            self._connections = [c for c in self._connections if not c.touches(card_id)]
            self._connection_keys = {c.key() for c in self._connections}
        logger.debug("Removed %s (dropped %d connections)", card, len(dropped))
        return card

    def rename_card(self, card_id: str, name: str) -> None:
        """Rename a card.

        A longer name grows the card's rectangle, so the new rectangle has to
        pass the overlap guard as well.
        """
        card = self.require_card(card_id)
        new_name = validate_card_name(name)
        if self.has_conflict(card.position, new_name, exclude_id=card_id):
            raise ConflictError("Renamed card would overlap with existing card")
        card.rename(new_name)

    def retype_card(self, card_id: str, card_type: "str | CardType") -> None:
        self.require_card(card_id).retype(card_type)

    def describe_card(self, card_id: str, description: Optional[str]) -> None:
        self.require_card(card_id).describe(description)

    def clear(self) -> None:
        self._cards.clear()
        self._aggregates = []
        self._connections = []
        self._connection_keys = set()

    # --- Connections ---

    def add_connection(self, source_id: str, target_id: str) -> bool:
        """Add a directed connection. Returns False if it already exists."""
        self.require_card(source_id)
        self.require_card(target_id)
        if source_id == target_id:
            raise ValidationError("A card cannot connect to itself")
        conn = Connection(source_id, target_id)
        if conn.key() in self._connection_keys:
            return False
        self._connections.append(conn)
        self._connection_keys.add(conn.key())
        return True

    def connect_many(self, source_ids: Iterable[str], target_id: str) -> int:
        """Connect every source to one target, skipping the target itself."""
        sources = [s for s in source_ids if s != target_id]
        self.require_card(target_id)
        for s in sources:
            self.require_card(s)
        return sum(1 for s in sources if self.add_connection(s, target_id))

    def remove_connection(self, source_id: str, target_id: str) -> None:
        key = Connection(source_id, target_id).key()
        if key not in self._connection_keys:
            raise NotFoundError(f"Connection not found: {key}")
        self._connections = [c for c in self._connections if c.key() != key]
        self._connection_keys.discard(key)

    def route(self, source_id: str, target_id: str) -> List[Point]:
        """Orthogonal route for an arrow between two cards, avoiding all others."""
        from ..views.routing import route_connection

        src = self.card_rect(source_id)
        dst = self.card_rect(target_id)
        obstacles = [
            self.bounds_for(c.position, c.name) for c in self._cards.values() if c.id not in (source_id, target_id)
        ]
        return route_connection(src, dst, obstacles, margin=self.settings.route_margin)

    def routes(self) -> Dict[str, List[Point]]:
        """Routes for every connection, keyed by `Connection.key()`."""
        return {c.key(): self.route(c.source_id, c.target_id) for c in self._connections}

    # --- Derived analyses ---

    def detect_aggregates(self) -> List[Aggregate]:
        """Recompute aggregates from scratch, replacing any previous result."""
        clusters = detect_clusters(
            self.cards(),
            self.settings.clustering_radius,
            lambda c: self.bounds_for(c.position, c.name).center,
        )
        self._aggregates = [
            Aggregate.create(
                f"Aggregate {i}",
                ids,
                max_member_distance=self.settings.aggregate_max_distance,
            )
            for i, ids in enumerate(clusters, start=1)
        ]
        logger.info("Detected %d aggregates over %d cards", len(self._aggregates), len(self._cards))
        return self.aggregates()

    def rename_aggregate(self, aggregate_id: str, name: str) -> None:
        agg = self.get_aggregate(aggregate_id)
        if agg is None:
            raise NotFoundError(f"Aggregate not found on board: {aggregate_id}")
        agg.rename(name)

    def clear_aggregates(self) -> None:
        self._aggregates = []

    def validate_flow(self) -> FlowReport:
        return validate_flow(self.cards_in_flow_order())
