"""Core domain types and algorithms."""

from .board import Board
from .clustering import detect_clusters
from .flow import FlowReport, validate_flow
from .geometry import CardSize, Rect, bounds_of, card_bounds, estimate_card_size, intersects
from .models import (
    Aggregate,
    AggregateBounds,
    Card,
    CardType,
    Connection,
    Position,
    validate_aggregate_name,
    validate_card_name,
)
from .placement import find_free_position
from .snapshot import SNAPSHOT_VERSION, board_from_dict, board_to_dict

__all__ = [
    # models
    "Aggregate",
    "AggregateBounds",
    "Card",
    "CardType",
    "Connection",
    "Position",
    "validate_aggregate_name",
    "validate_card_name",
    # geometry
    "CardSize",
    "Rect",
    "bounds_of",
    "card_bounds",
    "estimate_card_size",
    "intersects",
    # board
    "Board",
    "detect_clusters",
    "FlowReport",
    "validate_flow",
    "find_free_position",
    # snapshot
    "SNAPSHOT_VERSION",
    "board_from_dict",
    "board_to_dict",
]
