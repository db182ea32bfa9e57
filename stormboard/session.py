"""Board session: the call contract consumed by a UI or persistence shell.

One session owns one board. Every public operation runs under a
non-reentrant lock so a shell driving the board from several threads sees
each operation as atomic. Board errors propagate unchanged to the caller.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .config import BoardSettings, get_settings
from .core.board import Board
from .core.models import Aggregate, Card, CardType, Position, validate_card_name
from .core.placement import find_free_position
from .core.snapshot import board_from_dict, board_to_dict
from .errors import ValidationError
from .views.export import format_board_as_mermaid, format_board_as_plantuml
from .views.svg import render_board_svg

logger = logging.getLogger(__name__)

EXPORT_FORMATS: Dict[str, Callable[[Board], str]] = {
    "mermaid": format_board_as_mermaid,
    "plantuml": format_board_as_plantuml,
    "svg": render_board_svg,
}


def _card_dto(card: Card) -> Dict[str, Any]:
    return {
        "id": card.id,
        "name": card.name,
        "type": card.type.value,
        "position": card.position.to_dict(),
        "description": card.description,
        "color": card.color,
        "createdAt": card.created_at.isoformat(),
        "lastModified": card.last_modified.isoformat(),
    }


def _aggregate_dto(agg: Aggregate, board: Board) -> Dict[str, Any]:
    bounds = agg.bounds(board.card_map(), board.settings.aggregate_bounds_padding)
    d = agg.to_dict()
    d["bounds"] = bounds.to_dict() if bounds else None
    return d


class BoardSession:
    def __init__(self, board: Board | None = None, *, settings: BoardSettings | None = None):
        self._settings = settings or (board.settings if board else get_settings())
        self._board = board or Board(settings=self._settings)
        self._lock = threading.Lock()

    @property
    def board_id(self) -> str:
        return self._board.id

    @property
    def board(self) -> Board:
        return self._board

    # --- Cards ---

    def create_card(
        self,
        name: Optional[str],
        type: "str | CardType",
        x: float,
        y: float,
        description: Optional[str] = None,
        *,
        avoid_overlap: bool = False,
    ) -> Dict[str, Any]:
        """Create a card and return its DTO.

        A `None` name falls back to the type's default name. With
        `avoid_overlap`, the requested spot is treated as a hint and the
        placement assist picks the nearest free slot.
        """
        card_type = CardType.parse(type)
        card_name = validate_card_name(card_type.default_name if name is None else name)
        with self._lock:
            position = Position(x, y)
            if avoid_overlap:
                position = find_free_position(self._board, x, y, card_name)
            card = Card.create(card_name, card_type, position, description)
            self._board.add_card(card)
            return _card_dto(card)

    def move_card(self, card_id: str, x: float, y: float) -> None:
        with self._lock:
            self._board.move_card(card_id, Position(x, y))

    def move_cards(self, moves: Iterable[Mapping[str, Any]]) -> None:
        """Batch move; each move is `{"cardId", "x", "y"}`."""
        targets: Dict[str, Position] = {}
        for m in moves:
            try:
                targets[str(m["cardId"])] = Position(m["x"], m["y"])
            except (KeyError, TypeError) as e:
                raise ValidationError(f"Move must have cardId, x and y: {m!r}") from e
        with self._lock:
            self._board.move_cards(targets)

    def rename_card(self, card_id: str, name: str) -> None:
        with self._lock:
            self._board.rename_card(card_id, name)

    def retype_card(self, card_id: str, type: "str | CardType") -> None:
        with self._lock:
            self._board.retype_card(card_id, type)

    def describe_card(self, card_id: str, description: Optional[str]) -> None:
        with self._lock:
            self._board.describe_card(card_id, description)

    def remove_card(self, card_id: str) -> None:
        with self._lock:
            self._board.remove_card(card_id)

    # --- Aggregates and flow ---

    def detect_aggregates(self) -> List[Dict[str, Any]]:
        with self._lock:
            aggs = self._board.detect_aggregates()
            return [_aggregate_dto(a, self._board) for a in aggs]

    def rename_aggregate(self, aggregate_id: str, name: str) -> None:
        with self._lock:
            self._board.rename_aggregate(aggregate_id, name)

    def validate_flow(self) -> Dict[str, Any]:
        with self._lock:
            return self._board.validate_flow().to_dict()

    # --- Connections ---

    def add_connection(self, source_id: str, target_id: str) -> bool:
        with self._lock:
            return self._board.add_connection(source_id, target_id)

    def connect_many(self, source_ids: Iterable[str], target_id: str) -> int:
        with self._lock:
            return self._board.connect_many(list(source_ids), target_id)

    def remove_connection(self, source_id: str, target_id: str) -> None:
        with self._lock:
            self._board.remove_connection(source_id, target_id)

    def routes(self) -> Dict[str, List[List[float]]]:
        with self._lock:
            return {k: [[x, y] for x, y in pts] for k, pts in self._board.routes().items()}

    # --- State ---

    def board_state(self) -> Dict[str, Any]:
        with self._lock:
            b = self._board
            return {
                "id": b.id,
                "cards": [_card_dto(c) for c in b.cards()],
                "aggregates": [_aggregate_dto(a, b) for a in b.aggregates()],
                "connections": [c.to_dict() for c in b.connections()],
            }

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return board_to_dict(self._board)

    def restore(self, data: Dict[str, Any]) -> None:
        """Replace the board with one rebuilt from `data`.

        The new board is fully validated before it replaces the current one.
        """
        board = board_from_dict(data, self._settings)
        with self._lock:
            self._board = board
        logger.info("Session restored board %s", board.id)

    def export(self, fmt: str) -> str:
        key = (fmt or "").strip().lower()
        formatter = EXPORT_FORMATS.get(key)
        if formatter is None:
            raise ValidationError(f"Unknown export format: {fmt}")
        with self._lock:
            return formatter(self._board)

    # --- Action dispatch ---

    def dispatch(self, action: str, **params: Any) -> Any:
        """Run a named shell action, e.g. `dispatch("move-card", card_id=..., x=..., y=...)`."""
        name = (action or "").strip().lower()
        handler = _ACTIONS.get(name)
        if handler is None:
            raise ValidationError(f"Unknown action: {action}")
        logger.debug("Dispatching %s", name)
        return handler(self, **params)


_ACTIONS: Dict[str, Callable[..., Any]] = {
    "create-card": BoardSession.create_card,
    "move-card": BoardSession.move_card,
    "move-cards": BoardSession.move_cards,
    "rename-card": BoardSession.rename_card,
    "retype-card": BoardSession.retype_card,
    "describe-card": BoardSession.describe_card,
    "remove-card": BoardSession.remove_card,
    "detect-aggregates": BoardSession.detect_aggregates,
    "rename-aggregate": BoardSession.rename_aggregate,
    "validate-flow": BoardSession.validate_flow,
    "add-connection": BoardSession.add_connection,
    "connect-many": BoardSession.connect_many,
    "remove-connection": BoardSession.remove_connection,
    "get-board-state": BoardSession.board_state,
    "get-board-snapshot": BoardSession.snapshot,
    "replace-board-snapshot": BoardSession.restore,
    "export": BoardSession.export,
}
