"""
WalletExplorer — the control layer composing connection, fetch and paging.

Data flow:
    ConnectionController ─Connected(address)→ TransactionFetcher.fetch(address)
    TransactionFetcher ─Ready(items)→ PaginationView (reclamp + render)
    any settle → Snapshot → renderers

Renderers only read Snapshots; they change state solely through connect(),
go_to(), next(), previous(), set_page_size() and refresh().
"""

from __future__ import annotations

from typing import Callable

from loguru import logger

from walletview.connection import ConnectionController
from walletview.fetcher import TransactionFetcher
from walletview.models import (
    Connected,
    ConnectionState,
    FetchState,
    Loading,
    Snapshot,
    items_of,
)
from walletview.pagination import DEFAULT_PAGE_SIZE, DEFAULT_PAGE_SIZE_OPTIONS, PaginationView
from walletview.providers.base import TransactionHistoryAPI, WalletProvider

Renderer = Callable[[Snapshot], None]


class WalletExplorer:
    """One connected account, its fetched history, and the current page."""

    def __init__(
        self,
        provider: WalletProvider | None,
        api: TransactionHistoryAPI,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_size_options: tuple[int, ...] | list[int] = DEFAULT_PAGE_SIZE_OPTIONS,
    ) -> None:
        self.pagination = PaginationView(page_size, page_size_options)
        self.fetcher = TransactionFetcher(api)
        self.connection = ConnectionController(provider, self.fetcher)
        self._renderers: list[Renderer] = []

        self.fetcher.subscribe(self._on_fetch_state)
        self.connection.subscribe(self._on_connection_state)

    # ── Renderer side ────────────────────────────────────────────────────────

    def subscribe(self, renderer: Renderer) -> Callable[[], None]:
        """Register a renderer. Returns an unsubscribe callable."""
        self._renderers.append(renderer)

        def _unsubscribe() -> None:
            if renderer in self._renderers:
                self._renderers.remove(renderer)

        return _unsubscribe

    def snapshot(self) -> Snapshot:
        fetch = self.fetcher.state
        return Snapshot(
            connection=self.connection.state,
            fetch=fetch,
            page=self.pagination.render(items_of(fetch)),
            loading=isinstance(fetch, Loading),
        )

    # ── Operations ───────────────────────────────────────────────────────────

    async def connect(self) -> Snapshot:
        await self.connection.connect()
        return self.snapshot()

    async def refresh(self) -> Snapshot:
        """Re-fetch for the connected address. No-op when not connected."""
        state = self.connection.state
        if isinstance(state, Connected):
            await self.fetcher.fetch(state.address)
        return self.snapshot()

    def go_to(self, index: int) -> Snapshot:
        self.pagination.go_to(index)
        return self._emit()

    def next(self) -> Snapshot:
        self.pagination.next()
        return self._emit()

    def previous(self) -> Snapshot:
        self.pagination.previous()
        return self._emit()

    def set_page_size(self, size: int) -> Snapshot:
        self.pagination.set_page_size(size)
        return self._emit()

    # ── Internals ────────────────────────────────────────────────────────────

    def _on_fetch_state(self, state: FetchState) -> None:
        # The stored index survives Loading; only a settled list re-clamps it
        if not isinstance(state, Loading):
            self.pagination.reclamp(len(items_of(state)))
        self._emit()

    def _on_connection_state(self, state: ConnectionState) -> None:
        self._emit()

    def _emit(self) -> Snapshot:
        snap = self.snapshot()
        for renderer in list(self._renderers):
            try:
                renderer(snap)
            except Exception:
                logger.exception("Renderer raised while drawing snapshot")
        return snap
