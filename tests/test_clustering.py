from __future__ import annotations

from stormboard.core.board import Board
from stormboard.core.clustering import detect_clusters
from stormboard.core.models import Card, Position


def _card(name: str, x: float, y: float) -> Card:
    return Card.create(name, "domain-event", Position(x, y))


def _partition(board: Board):
    return sorted(sorted(a.card_ids) for a in board.aggregates())


def test_close_cards_share_a_cluster_far_cards_do_not():
    board = Board()
    a, b, far = _card("A", 0, 0), _card("B", 200, 0), _card("Far", 2000, 2000)
    for c in (a, b, far):
        board.add_card(c)

    aggs = board.detect_aggregates()
    assert [agg.card_ids for agg in aggs] == [[a.id, b.id], [far.id]]
    assert [agg.name for agg in aggs] == ["Aggregate 1", "Aggregate 2"]


def test_chain_is_transitive():
    board = Board()
    a, b, c = _card("A", 0, 0), _card("B", 250, 0), _card("C", 500, 0)
    for card in (a, b, c):
        board.add_card(card)

    aggs = board.detect_aggregates()
    assert len(aggs) == 1
    assert aggs[0].card_ids == [a.id, b.id, c.id]


def test_radius_is_inclusive():
    cards = [_card("A", 0, 0), _card("B", 300, 0)]
    clusters = detect_clusters(cards, 300, lambda c: (c.position.x, c.position.y))
    assert clusters == [[cards[0].id, cards[1].id]]

    clusters = detect_clusters(cards, 299.9, lambda c: (c.position.x, c.position.y))
    assert clusters == [[cards[0].id], [cards[1].id]]


def test_every_card_in_exactly_one_cluster():
    cards = [_card(str(i), (i % 7) * 180.0, (i // 7) * 400.0) for i in range(30)]
    clusters = detect_clusters(cards, 300, lambda c: (c.position.x, c.position.y))
    flat = [cid for cluster in clusters for cid in cluster]
    assert sorted(flat) == sorted(c.id for c in cards)


def test_detection_is_idempotent():
    board = Board()
    for i, (x, y) in enumerate([(0, 0), (200, 0), (1000, 0), (1200, 100), (5000, 5000)]):
        board.add_card(_card(f"C{i}", x, y))

    board.detect_aggregates()
    first = _partition(board)
    board.detect_aggregates()
    assert _partition(board) == first
    assert len(first) == 3


def test_empty_board_has_no_aggregates():
    board = Board()
    assert board.detect_aggregates() == []


def test_redetection_replaces_manual_names():
    board = Board()
    board.add_card(_card("A", 0, 0))
    agg = board.detect_aggregates()[0]
    board.rename_aggregate(agg.id, "Ordering")

    fresh = board.detect_aggregates()
    assert fresh[0].name == "Aggregate 1"
    assert fresh[0].id != agg.id
