"""Tests for the board: card store, overlap guard and connections."""

from __future__ import annotations

import itertools
import random

import pytest

from stormboard.core.board import Board
from stormboard.core.geometry import intersects
from stormboard.core.models import Card, CardType, Position
from stormboard.errors import ConflictError, NotFoundError, OutOfBoundsError, ValidationError


def _card(name: str, x: float, y: float, card_type: str = "domain-event") -> Card:
    return Card.create(name, card_type, Position(x, y))


@pytest.fixture
def board() -> Board:
    return Board()


def _assert_no_overlap(board: Board) -> None:
    rects = [board.card_rect(c.id) for c in board.cards()]
    for a, b in itertools.combinations(rects, 2):
        assert not intersects(a, b)


def test_second_card_at_same_position_conflicts(board: Board):
    board.add_card(_card("A", 100, 200))
    with pytest.raises(ConflictError):
        board.add_card(_card("B", 100, 200))
    assert board.card_count == 1

    width = board.card_rect(board.cards()[0].id).w
    board.add_card(_card("B", 100 + width + 1, 200))
    assert board.card_count == 2


def test_touching_cards_are_allowed(board: Board):
    board.add_card(_card("A", 100, 200))
    board.add_card(_card("B", 220, 200))
    board.add_card(_card("C", 100, 280))
    assert board.card_count == 3


def test_duplicate_id_conflicts(board: Board):
    card = _card("A", 0, 0)
    board.add_card(card)
    with pytest.raises(ConflictError):
        board.add_card(Card(id=card.id, name="Elsewhere", type="policy", position=Position(5000, 5000)))


def test_add_outside_extent_fails(board: Board):
    with pytest.raises(OutOfBoundsError):
        board.add_card(_card("A", 10001, 0))


def test_has_conflict_excludes_card(board: Board):
    a = _card("A", 0, 0)
    board.add_card(a)
    assert board.has_conflict(Position(50, 50), "X")
    assert not board.has_conflict(Position(50, 50), "X", exclude_id=a.id)
    assert not board.has_conflict(Position(120, 0), "X")


def test_move_card(board: Board):
    a = _card("A", 0, 0)
    b = _card("B", 500, 0)
    board.add_card(a)
    board.add_card(b)
    before = a.last_modified

    board.move_card(a.id, Position(10, 10))
    assert a.position == Position(10, 10)
    assert a.last_modified >= before

    with pytest.raises(NotFoundError):
        board.move_card("missing", Position(0, 0))
    with pytest.raises(OutOfBoundsError):
        board.move_card(a.id, Position(0, 10001))
    with pytest.raises(ConflictError):
        board.move_card(a.id, Position(450, 0))
    assert a.position == Position(10, 10)


def test_move_keeps_aggregate_membership_until_next_detection(board: Board):
    a = _card("A", 0, 0)
    b = _card("B", 200, 0)
    board.add_card(a)
    board.add_card(b)
    assert len(board.detect_aggregates()) == 1

    board.move_card(b.id, Position(5000, 5000))
    assert board.aggregates()[0].card_ids == [a.id, b.id]
    assert len(board.detect_aggregates()) == 2


def test_move_cards_is_atomic(board: Board):
    a = _card("A", 0, 0)
    b = _card("B", 200, 0)
    board.add_card(a)
    board.add_card(b)

    board.move_cards({a.id: Position(200, 0), b.id: Position(0, 0)})
    assert (a.position, b.position) == (Position(200, 0), Position(0, 0))

    with pytest.raises(ConflictError):
        board.move_cards({a.id: Position(500, 0), b.id: Position(510, 0)})
    assert (a.position, b.position) == (Position(200, 0), Position(0, 0))

    with pytest.raises(OutOfBoundsError):
        board.move_cards({a.id: Position(700, 0), b.id: Position(20000, 0)})
    assert a.position == Position(200, 0)

    with pytest.raises(NotFoundError):
        board.move_cards({"missing": Position(0, 0)})


def test_remove_cascades_to_aggregates(board: Board):
    a = _card("A", 0, 0)
    b = _card("B", 200, 0)
    lone = _card("Lone", 3000, 3000)
    for c in (a, b, lone):
        board.add_card(c)
    board.detect_aggregates()
    assert len(board.aggregates()) == 2

    board.remove_card(lone.id)
    assert len(board.aggregates()) == 1

    board.remove_card(a.id)
    aggs = board.aggregates()
    assert len(aggs) == 1 and aggs[0].card_ids == [b.id]

    board.remove_card(b.id)
    assert board.aggregates() == []

    with pytest.raises(NotFoundError):
        board.remove_card(a.id)


def test_remove_drops_dangling_connections(board: Board):
    a = _card("A", 0, 0, "command")
    b = _card("B", 300, 0)
    c = _card("C", 600, 0)
    for card in (a, b, c):
        board.add_card(card)
    board.add_connection(a.id, b.id)
    board.add_connection(b.id, c.id)
    board.add_connection(a.id, c.id)

    board.remove_card(b.id)
    assert [conn.key() for conn in board.connections()] == [f"{a.id}->{c.id}"]
    # The dropped key can be re-added once the endpoint exists again.
    board.add_card(b)
    assert board.add_connection(a.id, b.id)


def test_rename_rejects_growth_into_neighbour(board: Board):
    a = _card("A", 0, 0)
    b = _card("B", 121, 0)
    board.add_card(a)
    board.add_card(b)

    with pytest.raises(ConflictError):
        board.rename_card(a.id, "x" * 40)
    assert a.name == "A"

    board.rename_card(a.id, "  Order Placed ")
    assert a.name == "Order Placed"


def test_rename_validation_and_not_found(board: Board):
    a = _card("A", 0, 0)
    board.add_card(a)
    with pytest.raises(ValidationError):
        board.rename_card(a.id, "   ")
    with pytest.raises(NotFoundError):
        board.rename_card("missing", "X")


def test_retype_and_describe(board: Board):
    a = _card("A", 0, 0)
    board.add_card(a)
    board.retype_card(a.id, "read-model")
    board.describe_card(a.id, "projection")
    assert a.type is CardType.READ_MODEL
    assert a.description == "projection"
    assert board.cards_by_type("read-model") == [a]
    with pytest.raises(NotFoundError):
        board.retype_card("missing", "policy")


def test_connections(board: Board):
    a = _card("A", 0, 0)
    b = _card("B", 300, 0)
    c = _card("C", 600, 0)
    for card in (a, b, c):
        board.add_card(card)

    assert board.add_connection(a.id, b.id)
    assert not board.add_connection(a.id, b.id)
    with pytest.raises(ValidationError):
        board.add_connection(a.id, a.id)
    with pytest.raises(NotFoundError):
        board.add_connection(a.id, "missing")

    assert board.connect_many([a.id, b.id, c.id], c.id) == 2
    assert len(board.connections()) == 3

    board.remove_connection(a.id, b.id)
    with pytest.raises(NotFoundError):
        board.remove_connection(a.id, b.id)


def test_flow_order_sorts_by_x_then_y(board: Board):
    a = _card("A", 400, 0)
    b = _card("B", 0, 300)
    c = _card("C", 0, 0)
    for card in (a, b, c):
        board.add_card(card)
    assert [x.name for x in board.cards_in_flow_order()] == ["C", "B", "A"]


def test_rename_aggregate(board: Board):
    board.add_card(_card("A", 0, 0))
    agg = board.detect_aggregates()[0]
    board.rename_aggregate(agg.id, "Ordering")
    assert board.aggregates()[0].name == "Ordering"
    with pytest.raises(NotFoundError):
        board.rename_aggregate("missing", "X")


def test_clear(board: Board):
    a = _card("A", 0, 0)
    b = _card("B", 300, 0)
    board.add_card(a)
    board.add_card(b)
    board.add_connection(a.id, b.id)
    board.detect_aggregates()
    board.clear()
    assert board.cards() == [] and board.aggregates() == [] and board.connections() == []


def test_random_adds_and_moves_never_overlap(board: Board):
    rng = random.Random(7)
    names = ["A", "Order Placed", "가나다라마바사", "x" * 60, "Ship\nOrder"]
    for _ in range(300):
        name = rng.choice(names)
        pos = Position(rng.uniform(0, 1500), rng.uniform(0, 1500))
        if board.card_count and rng.random() < 0.5:
            target = rng.choice(board.cards())
            try:
                board.move_card(target.id, pos)
            except ConflictError:
                pass
        else:
            try:
                board.add_card(Card.create(name, "domain-event", pos))
            except ConflictError:
                pass
        _assert_no_overlap(board)
        for card in board.cards():
            assert card.position.is_within_bounds(10000)
    assert board.card_count > 1
