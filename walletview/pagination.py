"""
Client-side pagination over an already-fetched TransactionList.

Design rules:
- `paginate()` is a pure function of (items, state): same inputs, same PageView.
- Nothing here raises on out-of-range input. Indices and sizes are clamped.
- The item list is never reordered or copied beyond the page slice.

Usage:
    view = PaginationView(page_size=8)
    view.reclamp(len(items))
    view.next()
    page = view.render(items)
"""

from __future__ import annotations

from typing import Sequence

from walletview.models import PageView, PaginationState, Transaction

DEFAULT_PAGE_SIZE = 8
DEFAULT_PAGE_SIZE_OPTIONS = (8, 10, 20, 50)


def page_count(item_count: int, page_size: int) -> int:
    """ceil(item_count / page_size); 0 iff there are no items."""
    size = max(page_size, 1)
    if item_count <= 0:
        return 0
    return -(-item_count // size)


def clamp_index(index: int, count: int) -> int:
    """Clamp index into [0, max(count - 1, 0)]."""
    return min(max(index, 0), max(count - 1, 0))


def paginate(items: Sequence[Transaction], state: PaginationState) -> PageView:
    """Slice one page out of `items` at the clamped index of `state`."""
    size = max(state.page_size, 1)
    total = len(items)
    count = page_count(total, size)
    index = clamp_index(state.page_index, count)

    start = index * size
    end = min(start + size, total)

    return PageView(
        page_items=tuple(items[start:end]),
        page_count=count,
        page_index=index,
        page_size=size,
        total_items=total,
        can_previous=index > 0,
        can_next=index < count - 1,
    )


class PaginationView:
    """
    Owns the PaginationState and applies navigation requests to it.

    Navigation only proposes a page index; the proposal is clamped against
    the last known item count so the stored state always satisfies
    0 <= page_index < max(page_count, 1).
    """

    def __init__(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_size_options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
    ) -> None:
        self._state = PaginationState(page_index=0, page_size=max(page_size, 1))
        self._item_count = 0
        self.page_size_options = tuple(page_size_options)

    @property
    def state(self) -> PaginationState:
        """A copy of the current state; mutate through the navigation methods."""
        return PaginationState(self._state.page_index, self._state.page_size)

    @property
    def page_count(self) -> int:
        return page_count(self._item_count, self._state.page_size)

    def go_to(self, index: int) -> None:
        self._state.page_index = clamp_index(index, self.page_count)

    def next(self) -> None:
        self.go_to(self._state.page_index + 1)

    def previous(self) -> None:
        self.go_to(self._state.page_index - 1)

    def set_page_size(self, size: int) -> None:
        """Change page size, keeping the current index if it is still valid."""
        self._state.page_size = max(size, 1)
        self._state.page_index = clamp_index(self._state.page_index, self.page_count)

    def reclamp(self, item_count: int) -> None:
        """Restore the index invariant after the item list changed."""
        self._item_count = max(item_count, 0)
        self._state.page_index = clamp_index(self._state.page_index, self.page_count)

    def render(self, items: Sequence[Transaction]) -> PageView:
        return paginate(items, self._state)
