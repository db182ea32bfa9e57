"""
stormboard: spatial board engine for event storming.

Main interface: BoardSession
"""

__version__ = "0.1.0"

from .core import Board, Card, CardType, Position
from .errors import BoardError, ConflictError, NotFoundError, OutOfBoundsError, SnapshotError, ValidationError
from .session import BoardSession

__all__ = [
    "Board",
    "BoardError",
    "BoardSession",
    "Card",
    "CardType",
    "ConflictError",
    "NotFoundError",
    "OutOfBoundsError",
    "Position",
    "SnapshotError",
    "ValidationError",
]
