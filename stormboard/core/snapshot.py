"""Board snapshot codec.

The snapshot is what a persistence shell round-trips: board id, cards and
connections. Aggregates are derived data and are recomputed on demand, so they
are not part of it.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from ..config import BoardSettings
from ..errors import SnapshotError, ValidationError
from .board import Board
from .models import Card, CardType, Position

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_iso(value: Any) -> datetime:
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid timestamp: {value!r}")
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def card_to_dict(card: Card) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": card.id,
        "name": card.name,
        "type": card.type.value,
        "position": card.position.to_dict(),
    }
    if card.description is not None:
        d["description"] = card.description
    d["createdAt"] = _iso(card.created_at)
    d["lastModified"] = _iso(card.last_modified)
    return d


def card_from_dict(d: Dict[str, Any]) -> Card:
    return Card(
        id=str(d["id"]),
        name=d["name"],
        type=CardType.parse(d["type"]),
        position=Position.from_dict(d["position"]),
        description=d.get("description"),
        created_at=_parse_iso(d["createdAt"]),
        last_modified=_parse_iso(d["lastModified"]),
    )


def board_to_dict(board: Board) -> Dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "boardId": board.id,
        "cards": [card_to_dict(c) for c in board.cards()],
        "connections": [c.to_dict() for c in board.connections()],
    }


def board_from_dict(data: Dict[str, Any], settings: BoardSettings | None = None) -> Board:
    """Rebuild a board through the regular mutation path.

    Overlapping or out-of-bounds cards in the snapshot surface as the same
    `ConflictError` / `OutOfBoundsError` a live add would raise. Without
    `settings` the board uses the process-wide `get_settings()`.
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be an object")
    version = data.get("version")
    if not version:
        raise SnapshotError("Missing version information")
    if version != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported version: {version}")
    board_id = data.get("boardId")
    if not isinstance(board_id, str) or not board_id:
        raise SnapshotError("Missing boardId")

    # Older snapshots stored cards under "events".
    records = data.get("cards", data.get("events")) or []
    board = Board(board_id, settings)
    try:
        for rec in records:
            board.add_card(card_from_dict(rec))
        for rec in data.get("connections") or []:
            board.add_connection(str(rec["sourceId"]), str(rec["targetId"]))
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise SnapshotError(f"Malformed snapshot record: {e}") from e

    logger.info("Restored board %s with %d cards", board.id, board.card_count)
    return board


def dumps(board: Board) -> str:
    return json.dumps(board_to_dict(board), ensure_ascii=False, indent=2)


def loads(text: str, settings: BoardSettings | None = None) -> Board:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError("Invalid JSON format") from e
    return board_from_dict(data, settings)
