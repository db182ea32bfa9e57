from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .models import Card, CardType


@dataclass(frozen=True)
class FlowReport:
    """Result of a flow check. Never raised, always returned."""

    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {"isValid": self.is_valid, "errors": list(self.errors)}


def validate_flow(ordered: Sequence[Card]) -> FlowReport:
    """Check that every command is immediately followed by a domain event.

    `ordered` is the board's flow order (left to right). Only commands are
    constrained; every other card type may appear anywhere.
    """
    errors: List[str] = []
    for i, card in enumerate(ordered):
        if card.type is not CardType.COMMAND:
            continue
        nxt = ordered[i + 1] if i + 1 < len(ordered) else None
        if nxt is None:
            errors.append(f"Command '{card.name}' must be followed by an event")
        elif nxt.type is not CardType.DOMAIN_EVENT:
            errors.append(
                f"Command '{card.name}' must be followed by a domain event, but found {nxt.type.value}"
            )
    return FlowReport(errors)
