"""Tests for card size estimation and rectangle primitives."""

from __future__ import annotations

from stormboard.config import CardLayout
from stormboard.core.geometry import Rect, bounds_of, card_bounds, estimate_card_size, intersects, text_units
from stormboard.core.models import Position


def test_short_name_uses_minimum_size():
    size = estimate_card_size("A")
    assert (size.width, size.height) == (120, 80)


def test_long_name_is_clamped_and_wraps():
    size = estimate_card_size("x" * 200)
    assert size.width == 320
    # 41 units per line -> 5 lines -> ceil(5 * 14 * 1.25) + 20
    assert size.height == 108


def test_wide_characters_count_double():
    assert text_units("abc") == 3
    assert text_units("가나다") == 6
    assert text_units("") == 1
    assert estimate_card_size("가" * 10).width > estimate_card_size("a" * 10).width


def test_explicit_newlines_add_lines():
    one = estimate_card_size("a b c d e")
    five = estimate_card_size("a\nb\nc\nd\ne")
    assert five.width == one.width
    assert five.height == 108


def test_size_is_deterministic():
    assert estimate_card_size("Order Placed") == estimate_card_size("Order Placed")


def test_custom_layout():
    layout = CardLayout(min_width=60, max_width=100, min_height=40)
    size = estimate_card_size("A", layout)
    assert (size.width, size.height) == (60, 40)


def test_bounds_of_anchors_top_left():
    r = bounds_of(Position(100, 200), estimate_card_size("A"))
    assert (r.left, r.top, r.right, r.bottom) == (100, 200, 220, 280)
    assert card_bounds(Position(100, 200), "A") == r


def test_touching_rectangles_do_not_intersect():
    a = Rect(0, 0, 10, 10)
    assert not intersects(a, Rect(10, 0, 10, 10))
    assert not intersects(a, Rect(0, 10, 10, 10))
    assert intersects(a, Rect(9, 9, 10, 10))
    assert intersects(a, Rect(2, 2, 2, 2))


def test_inflate_and_edges():
    r = Rect.from_edges(10, 20, 30, 60)
    assert (r.w, r.h) == (20, 40)
    assert r.center == (20, 40)
    big = r.inflate(5)
    assert (big.left, big.top, big.right, big.bottom) == (5, 15, 35, 65)
