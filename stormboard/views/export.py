"""Flowchart text export (Mermaid, PlantUML).

Cards are emitted in flow order and chained left to right; each aggregate
becomes a group around its members.
"""

from __future__ import annotations

import re
from typing import List

from ..core.board import Board

_UNSAFE_ID = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_id(value: str) -> str:
    return _UNSAFE_ID.sub("_", value)


def escape_label(value: str) -> str:
    return value.replace('"', '\\"')


def format_board_as_mermaid(board: Board) -> str:
    ordered = board.cards_in_flow_order()
    lines: List[str] = ["flowchart LR"]

    for card in ordered:
        lines.append(f'  {sanitize_id(card.id)}["{escape_label(card.name)}"]')

    for a, b in zip(ordered, ordered[1:]):
        lines.append(f"  {sanitize_id(a.id)} --> {sanitize_id(b.id)}")

    for agg in board.aggregates():
        lines.append(f'  subgraph {sanitize_id(agg.id)}["{escape_label(agg.name)}"]')
        for cid in agg.card_ids:
            lines.append(f"    {sanitize_id(cid)}")
        lines.append("  end")

    return "\n".join(lines)


def format_board_as_plantuml(board: Board) -> str:
    ordered = board.cards_in_flow_order()
    lines: List[str] = ["@startuml", "left to right direction"]

    for card in ordered:
        lines.append(f'rectangle "{escape_label(card.name)}" as {sanitize_id(card.id)}')

    for a, b in zip(ordered, ordered[1:]):
        lines.append(f"{sanitize_id(a.id)} --> {sanitize_id(b.id)}")

    for agg in board.aggregates():
        lines.append(f'package "{escape_label(agg.name)}" as {sanitize_id(agg.id)} {{')
        for cid in agg.card_ids:
            lines.append(f"  {sanitize_id(cid)}")
        lines.append("}")

    lines.append("@enduml")
    return "\n".join(lines)
