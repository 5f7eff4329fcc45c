"""Tests for walletview/pagination.py — pure paging and the navigation view."""

from __future__ import annotations

import pytest

from walletview.models import PaginationState
from walletview.pagination import (
    DEFAULT_PAGE_SIZE,
    PaginationView,
    clamp_index,
    page_count,
    paginate,
)

from tests.conftest import make_txs

# ── page_count / clamp_index ──────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("n", "size", "expected"),
    [(0, 8, 0), (1, 8, 1), (8, 8, 1), (9, 8, 2), (20, 8, 3), (20, 10, 2), (7, 1, 7)],
)
def test_page_count_is_ceiling(n: int, size: int, expected: int) -> None:
    assert page_count(n, size) == expected


def test_page_count_zero_only_when_empty() -> None:
    for size in (1, 3, 8, 50):
        for n in range(0, 30):
            assert (page_count(n, size) == 0) == (n == 0)


def test_page_count_treats_nonpositive_size_as_one() -> None:
    assert page_count(5, 0) == 5
    assert page_count(5, -3) == 5


@pytest.mark.parametrize("index", [-100, -1, 0, 1, 2, 3, 99])
def test_clamp_index_in_range(index: int) -> None:
    for count in (0, 1, 3):
        clamped = clamp_index(index, count)
        assert 0 <= clamped < max(count, 1)


# ── paginate ──────────────────────────────────────────────────────────────────


def test_first_page_of_twenty_with_size_eight(twenty_txs: list) -> None:
    items = twenty_txs
    view = paginate(items, PaginationState(page_index=0, page_size=8))
    assert view.page_count == 3
    assert view.page_items == tuple(items[0:8])
    assert view.can_previous is False
    assert view.can_next is True
    assert view.label == "Page 1 of 3"


def test_last_page_is_clipped() -> None:
    items = make_txs(20)
    view = paginate(items, PaginationState(page_index=2, page_size=8))
    assert view.page_items == tuple(items[16:20])
    assert view.can_previous is True
    assert view.can_next is False


def test_overflow_index_clamps_to_last_page() -> None:
    items = make_txs(20)
    view = paginate(items, PaginationState(page_index=42, page_size=8))
    assert view.page_index == 2
    assert view.page_items == tuple(items[16:20])


def test_negative_index_clamps_to_first_page() -> None:
    items = make_txs(20)
    view = paginate(items, PaginationState(page_index=-5, page_size=8))
    assert view.page_index == 0
    assert view.page_items == tuple(items[0:8])


def test_empty_items() -> None:
    view = paginate([], PaginationState(page_index=3, page_size=8))
    assert view.page_count == 0
    assert view.page_index == 0
    assert view.page_items == ()
    assert view.can_previous is False
    assert view.can_next is False
    assert view.label == "Page 0 of 0"


def test_paginate_is_idempotent_and_does_not_mutate() -> None:
    items = make_txs(13)
    original = list(items)
    state = PaginationState(page_index=1, page_size=5)
    assert paginate(items, state) == paginate(items, state)
    assert items == original
    assert state == PaginationState(page_index=1, page_size=5)


def test_paginate_preserves_order() -> None:
    items = list(reversed(make_txs(10)))
    view = paginate(items, PaginationState(page_index=0, page_size=10))
    assert list(view.page_items) == items


# ── PaginationView ────────────────────────────────────────────────────────────


def test_view_defaults() -> None:
    view = PaginationView()
    assert view.state == PaginationState(page_index=0, page_size=DEFAULT_PAGE_SIZE)
    assert view.page_count == 0


def test_next_next_previous_scenario() -> None:
    """Page size 8, 20 items: next, next, previous → page index 1 (items 8–15)."""
    items = make_txs(20)
    view = PaginationView(page_size=8)
    view.reclamp(len(items))

    first = view.render(items)
    assert first.page_count == 3
    assert first.can_previous is False
    assert first.can_next is True

    view.next()
    view.next()
    view.previous()

    page = view.render(items)
    assert page.page_index == 1
    assert page.page_items == tuple(items[8:16])


def test_next_at_last_page_stays() -> None:
    view = PaginationView(page_size=8)
    view.reclamp(20)
    for _ in range(10):
        view.next()
    assert view.state.page_index == 2


def test_previous_at_first_page_stays() -> None:
    view = PaginationView(page_size=8)
    view.reclamp(20)
    view.previous()
    assert view.state.page_index == 0


def test_go_to_clamps() -> None:
    view = PaginationView(page_size=8)
    view.reclamp(20)
    view.go_to(99)
    assert view.state.page_index == 2
    view.go_to(-3)
    assert view.state.page_index == 0


def test_set_page_size_preserves_valid_index() -> None:
    view = PaginationView(page_size=8)
    view.reclamp(100)
    view.go_to(3)
    view.set_page_size(10)
    assert view.state == PaginationState(page_index=3, page_size=10)


def test_set_page_size_clamps_to_last_page() -> None:
    view = PaginationView(page_size=8)
    view.reclamp(20)
    view.go_to(2)
    view.set_page_size(20)
    assert view.state == PaginationState(page_index=0, page_size=20)


def test_set_page_size_below_one_clamps() -> None:
    view = PaginationView(page_size=8)
    view.set_page_size(0)
    assert view.state.page_size == 1


def test_reclamp_after_items_shrink() -> None:
    view = PaginationView(page_size=8)
    view.reclamp(40)
    view.go_to(4)
    view.reclamp(10)
    assert view.state.page_index == 1
    view.reclamp(0)
    assert view.state.page_index == 0


def test_state_property_is_a_copy() -> None:
    view = PaginationView(page_size=8)
    view.reclamp(20)
    state = view.state
    state.page_index = 2
    assert view.state.page_index == 0
