from __future__ import annotations

import pytest

from stormboard.core.board import Board
from stormboard.core.models import Card, Position
from stormboard.core.placement import find_free_position, ring_offsets
from stormboard.errors import ValidationError


def test_ring_offsets():
    assert list(ring_offsets(0)) == [(0, 0)]
    ring1 = list(ring_offsets(1))
    assert len(ring1) == 8
    assert ring1[0] == (-1, -1)
    assert (0, 0) not in ring1
    assert len(list(ring_offsets(3))) == 24


def test_free_spot_is_returned_as_is():
    board = Board()
    assert find_free_position(board, 100, 100, "A") == Position(100, 100)


def test_occupied_spot_moves_to_nearest_ring():
    board = Board()
    board.add_card(Card.create("A", "domain-event", Position(100, 100)))
    pos = find_free_position(board, 100, 100, "A")
    assert pos == Position(20, 20)
    assert not board.has_conflict(pos, "A")


def test_candidates_stay_on_board():
    board = Board()
    board.add_card(Card.create("A", "domain-event", Position(0, 0)))
    pos = find_free_position(board, 0, 0, "A")
    assert pos.x >= 0 and pos.y >= 0
    assert not board.has_conflict(pos, "A")
    board.add_card(Card.create("A", "domain-event", pos))


def test_falls_back_to_requested_position():
    board = Board()
    board.add_card(Card.create("A", "domain-event", Position(100, 100)))
    assert find_free_position(board, 100, 100, "A", max_rings=1) == Position(100, 100)


def test_step_must_be_positive():
    with pytest.raises(ValidationError):
        find_free_position(Board(), 0, 0, "A", step=0)
