from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Mapping, Optional

from ..errors import ConflictError, NotFoundError, ValidationError

MAX_CARD_NAME_LENGTH = 200
MAX_AGGREGATE_NAME_LENGTH = 100


class CardType(str, Enum):
    """Sticky-note kinds used on an event storming board."""

    DOMAIN_EVENT = "domain-event"
    COMMAND = "command"
    POLICY = "policy"
    AGGREGATE = "aggregate"
    EXTERNAL_SYSTEM = "external-system"
    READ_MODEL = "read-model"

    @property
    def color(self) -> str:
        return _TYPE_COLORS[self]

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()

    @property
    def default_name(self) -> str:
        return f"New {self.label}"

    @classmethod
    def parse(cls, value: "str | CardType") -> "CardType":
        if isinstance(value, CardType):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Invalid card type: {value}") from None


_TYPE_COLORS: Dict[CardType, str] = {
    CardType.DOMAIN_EVENT: "#FFA500",
    CardType.COMMAND: "#87CEEB",
    CardType.POLICY: "#DDA0DD",
    CardType.AGGREGATE: "#FFD700",
    CardType.EXTERNAL_SYSTEM: "#FFB6C1",
    CardType.READ_MODEL: "#90EE90",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def validate_card_name(value: str) -> str:
    """Trim and check a card name; returns the stored form."""
    if not isinstance(value, str):
        raise ValidationError("Card name must be a string")
    name = value.strip()
    if not name:
        raise ValidationError("Card name cannot be empty")
    if len(name) > MAX_CARD_NAME_LENGTH:
        raise ValidationError(f"Card name too long (max {MAX_CARD_NAME_LENGTH} characters)")
    if any(not ch.isprintable() and ch not in "\n\t" for ch in name):
        raise ValidationError("Card name contains control characters")
    return name


def validate_aggregate_name(value: str) -> str:
    if not isinstance(value, str):
        raise ValidationError("Aggregate name must be a string")
    name = value.strip()
    if not name:
        raise ValidationError("Aggregate name cannot be empty")
    if len(name) > MAX_AGGREGATE_NAME_LENGTH:
        raise ValidationError(f"Aggregate name too long (max {MAX_AGGREGATE_NAME_LENGTH} characters)")
    return name


@dataclass(frozen=True)
class Position:
    """Top-left anchor of a card on the board."""

    x: float
    y: float

    def __post_init__(self) -> None:
        for axis, v in (("x", self.x), ("y", self.y)):
            if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
                raise ValidationError(f"Position {axis} must be a finite number")
            if v < 0:
                raise ValidationError("Position cannot be negative")

    def distance_to(self, other: "Position") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_within_bounds(self, extent: float) -> bool:
        return self.x <= extent and self.y <= extent

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, d: Mapping[str, float]) -> "Position":
        return cls(d["x"], d["y"])


@dataclass(eq=False)
class Card:
    """A named, typed card. Identity is the id; everything else is mutable."""

    id: str
    name: str
    type: CardType
    position: Position
    description: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    last_modified: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValidationError("Card id cannot be empty")
        self.name = validate_card_name(self.name)
        self.type = CardType.parse(self.type)
        if not isinstance(self.position, Position):
            raise ValidationError("Card position must be a Position")

    @classmethod
    def create(
        cls,
        name: str,
        type: "str | CardType",
        position: Position,
        description: Optional[str] = None,
    ) -> "Card":
        now = _utcnow()
        return cls(
            id=new_id(),
            name=name,
            type=CardType.parse(type),
            position=position,
            description=description,
            created_at=now,
            last_modified=now,
        )

    @property
    def color(self) -> str:
        return self.type.color

    def _touch(self) -> None:
        self.last_modified = _utcnow()

    def move_to(self, position: Position) -> None:
        self.position = position
        self._touch()

    def rename(self, name: str) -> None:
        self.name = validate_card_name(name)
        self._touch()

    def retype(self, type: "str | CardType") -> None:
        self.type = CardType.parse(type)
        self._touch()

    def describe(self, description: Optional[str]) -> None:
        self.description = description
        self._touch()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"Card({self.id}, {self.name}, {self.type.value})"


@dataclass(frozen=True)
class Connection:
    """A directed arrow between two cards."""

    source_id: str
    target_id: str

    def key(self) -> str:
        """Unique key for deduplication."""
        return f"{self.source_id}->{self.target_id}"

    def touches(self, card_id: str) -> bool:
        return card_id in (self.source_id, self.target_id)

    def to_dict(self) -> Dict[str, str]:
        return {"sourceId": self.source_id, "targetId": self.target_id}


@dataclass(frozen=True)
class AggregateBounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def to_dict(self) -> Dict[str, float]:
        return {"minX": self.min_x, "maxX": self.max_x, "minY": self.min_y, "maxY": self.max_y}


@dataclass
class Aggregate:
    """
    A group of spatially clustered cards.

    Members are held by id; the board owns card lifetime. Geometry queries take
    the board's id -> Card mapping so they always see live positions.
    """

    id: str
    name: str
    card_ids: List[str] = field(default_factory=list)
    max_member_distance: float = 500
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        self.name = validate_aggregate_name(self.name)
        self.card_ids = list(self.card_ids)

    @classmethod
    def create(cls, name: str, card_ids: List[str] | None = None, *, max_member_distance: float = 500) -> "Aggregate":
        return cls(id=new_id(), name=name, card_ids=list(card_ids or []), max_member_distance=max_member_distance)

    def __len__(self) -> int:
        return len(self.card_ids)

    def contains(self, card_id: str) -> bool:
        return card_id in self.card_ids

    def _members(self, cards: Mapping[str, Card]) -> List[Card]:
        return [cards[cid] for cid in self.card_ids if cid in cards]

    def centroid(self, cards: Mapping[str, Card]) -> Optional[Position]:
        members = self._members(cards)
        if not members:
            return None
        n = len(members)
        return Position(
            sum(c.position.x for c in members) / n,
            sum(c.position.y for c in members) / n,
        )

    def bounds(self, cards: Mapping[str, Card], padding: float = 50) -> Optional[AggregateBounds]:
        members = self._members(cards)
        if not members:
            return None
        xs = [c.position.x for c in members]
        ys = [c.position.y for c in members]
        return AggregateBounds(
            min_x=min(xs) - padding,
            min_y=min(ys) - padding,
            max_x=max(xs) + padding,
            max_y=max(ys) + padding,
        )

    def can_add(self, card: Card, cards: Mapping[str, Card]) -> bool:
        center = self.centroid(cards)
        if center is None:
            return True
        return card.position.distance_to(center) <= self.max_member_distance

    def add_card(self, card: Card, cards: Mapping[str, Card]) -> None:
        if self.contains(card.id):
            raise ConflictError("Card already exists in this aggregate")
        if not self.can_add(card, cards):
            raise ValidationError("Card too far from aggregate")
        self.card_ids.append(card.id)

    def remove_card(self, card_id: str) -> None:
        try:
            self.card_ids.remove(card_id)
        except ValueError:
            raise NotFoundError("Card not found in this aggregate") from None

    def rename(self, name: str) -> None:
        self.name = validate_aggregate_name(name)

    def has_commands(self, cards: Mapping[str, Card]) -> bool:
        return any(c.type is CardType.COMMAND for c in self._members(cards))

    def has_domain_events(self, cards: Mapping[str, Card]) -> bool:
        return any(c.type is CardType.DOMAIN_EVENT for c in self._members(cards))

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.id, "name": self.name, "cardIds": list(self.card_ids)}
