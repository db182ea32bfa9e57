"""Error taxonomy for board operations.

Every failure is raised synchronously to the caller and leaves the board
unchanged. Nothing in the engine retries or auto-relocates a card.
"""

from __future__ import annotations


class BoardError(Exception):
    """Base class for all board rule violations."""


class ValidationError(BoardError):
    """Malformed input to a value constructor (name, type tag, coordinate)."""


class ConflictError(BoardError):
    """Operation would overlap another card or duplicate an identity."""


class NotFoundError(BoardError):
    """A referenced card or aggregate is not on the board."""


class OutOfBoundsError(BoardError):
    """A position would leave the board extent."""


class SnapshotError(BoardError):
    """A board snapshot is malformed or has an unsupported version."""
