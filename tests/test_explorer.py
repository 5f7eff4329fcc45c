"""Tests for walletview/explorer.py — the composed controller and its snapshots."""

from __future__ import annotations

import asyncio

import pytest

from walletview.exceptions import NetworkTimeoutError
from walletview.explorer import WalletExplorer
from walletview.models import (
    Connected,
    ConnectionFailed,
    Disconnected,
    FailureReason,
    FetchFailed,
    Idle,
    Loading,
    Ready,
    Snapshot,
)

from tests.conftest import (
    ADDR_A,
    ADDR_B,
    ControlledHistoryAPI,
    FakeHistoryAPI,
    FakeWallet,
    make_txs,
    ok,
)


def test_initial_snapshot() -> None:
    explorer = WalletExplorer(FakeWallet(), FakeHistoryAPI())
    snap = explorer.snapshot()
    assert snap.connection == Disconnected()
    assert snap.fetch == Idle()
    assert snap.loading is False
    assert snap.page.page_count == 0
    assert snap.message == "Connect a wallet to view its transactions."


@pytest.mark.asyncio
async def test_twenty_transactions_page_size_eight() -> None:
    items = make_txs(20)
    explorer = WalletExplorer(FakeWallet([ADDR_A]), FakeHistoryAPI({ADDR_A: ok(items)}), page_size=8)

    snap = await explorer.connect()
    assert snap.connection == Connected(ADDR_A)
    assert snap.loading is False
    assert snap.page.page_count == 3
    assert snap.page.page_items == tuple(items[0:8])
    assert snap.page.can_previous is False
    assert snap.page.can_next is True

    explorer.next()
    explorer.next()
    snap = explorer.previous()
    assert snap.page.page_index == 1
    assert snap.page.page_items == tuple(items[8:16])


@pytest.mark.asyncio
async def test_empty_result() -> None:
    explorer = WalletExplorer(FakeWallet([ADDR_A]), FakeHistoryAPI({ADDR_A: ok([])}))
    snap = await explorer.connect()
    assert snap.fetch == Ready(ADDR_A, ())
    assert snap.page.page_count == 0
    assert snap.page.can_previous is False
    assert snap.page.can_next is False
    assert snap.loading is False
    assert snap.message == "No transactions found for this account."


@pytest.mark.asyncio
async def test_connect_then_network_error() -> None:
    explorer = WalletExplorer(
        FakeWallet([ADDR_A]), FakeHistoryAPI({ADDR_A: NetworkTimeoutError("timeout")})
    )
    snap = await explorer.connect()
    assert isinstance(snap.fetch, FetchFailed)
    assert snap.fetch.reason is FailureReason.NETWORK_ERROR
    assert snap.loading is False
    assert snap.page.page_count == 0
    assert snap.message == "Could not load transactions. Try again."


@pytest.mark.asyncio
async def test_no_wallet_message() -> None:
    explorer = WalletExplorer(None, FakeHistoryAPI())
    snap = await explorer.connect()
    assert isinstance(snap.connection, ConnectionFailed)
    assert snap.message == "Please install or enable a wallet to connect."


@pytest.mark.asyncio
async def test_reconnect_to_other_address_discards_first_response() -> None:
    """Connect to X, reconnect to Y before X's response: X is never observable."""
    wallet = FakeWallet([ADDR_A])
    api = ControlledHistoryAPI()
    explorer = WalletExplorer(wallet, api, page_size=8)
    frames: list[Snapshot] = []
    explorer.subscribe(frames.append)

    connect_x = asyncio.create_task(explorer.connect())
    await asyncio.sleep(0)
    assert explorer.snapshot().fetch == Loading(ADDR_A)
    assert explorer.snapshot().loading is True

    wallet.accounts = [ADDR_B]
    connect_y = asyncio.create_task(explorer.connect())
    await asyncio.sleep(0)

    api.resolve(0, ok(make_txs(20, ADDR_A)))
    await connect_x
    assert explorer.snapshot().fetch == Loading(ADDR_B)

    y_items = make_txs(3, ADDR_B)
    api.resolve(1, ok(y_items))
    await connect_y

    final = explorer.snapshot()
    assert final.connection == Connected(ADDR_B)
    assert final.fetch == Ready(ADDR_B, tuple(y_items))
    for frame in frames:
        assert not (isinstance(frame.fetch, Ready) and frame.fetch.for_address == ADDR_A)
        assert all(tx.from_addr != ADDR_A for tx in frame.page.page_items)


@pytest.mark.asyncio
async def test_page_index_reclamped_when_new_list_is_shorter() -> None:
    wallet = FakeWallet([ADDR_A])
    api = FakeHistoryAPI({ADDR_A: ok(make_txs(40)), ADDR_B: ok(make_txs(5, ADDR_B))})
    explorer = WalletExplorer(wallet, api, page_size=8)
    await explorer.connect()
    explorer.go_to(4)
    assert explorer.pagination.state.page_index == 4

    wallet.accounts = [ADDR_B]
    snap = await explorer.connect()
    assert snap.page.page_index == 0
    assert explorer.pagination.state.page_index == 0


@pytest.mark.asyncio
async def test_page_size_change_preserves_index() -> None:
    explorer = WalletExplorer(FakeWallet([ADDR_A]), FakeHistoryAPI({ADDR_A: ok(make_txs(100))}))
    await explorer.connect()
    explorer.go_to(3)
    snap = explorer.set_page_size(10)
    assert snap.page.page_index == 3
    assert snap.page.page_size == 10


@pytest.mark.asyncio
async def test_refresh_refetches_connected_address() -> None:
    api = FakeHistoryAPI({ADDR_A: NetworkTimeoutError("timeout")})
    explorer = WalletExplorer(FakeWallet([ADDR_A]), api)
    await explorer.connect()

    api.outcomes[ADDR_A] = ok(make_txs(2))
    snap = await explorer.refresh()
    assert snap.fetch == Ready(ADDR_A, tuple(make_txs(2)))
    assert api.calls == [ADDR_A, ADDR_A]


@pytest.mark.asyncio
async def test_refresh_when_disconnected_is_noop() -> None:
    api = FakeHistoryAPI()
    explorer = WalletExplorer(FakeWallet(), api)
    snap = await explorer.refresh()
    assert snap.fetch == Idle()
    assert api.calls == []


@pytest.mark.asyncio
async def test_renderers_receive_frames_and_errors_are_contained() -> None:
    explorer = WalletExplorer(FakeWallet([ADDR_A]), FakeHistoryAPI({ADDR_A: ok(make_txs(9))}))
    frames: list[Snapshot] = []

    def broken(_: Snapshot) -> None:
        raise RuntimeError("renderer bug")

    explorer.subscribe(broken)
    unsubscribe = explorer.subscribe(frames.append)
    await explorer.connect()

    statuses = [(f.connection.status, f.fetch.status) for f in frames]
    assert statuses == [
        ("connecting", "idle"),
        ("connected", "idle"),
        ("connected", "loading"),
        ("connected", "ready"),
    ]
    assert frames[2].loading is True
    assert frames[-1].loading is False

    unsubscribe()
    explorer.next()
    assert len(frames) == 4


@pytest.mark.asyncio
async def test_refresh_of_unchanged_list_keeps_page() -> None:
    explorer = WalletExplorer(FakeWallet([ADDR_A]), FakeHistoryAPI({ADDR_A: ok(make_txs(20))}))
    await explorer.connect()
    explorer.go_to(2)

    snap = await explorer.refresh()
    assert snap.page.page_index == 2
    assert snap.page.total_items == 20

    snap = await explorer.connect()
    assert snap.page.page_index == 2


@pytest.mark.asyncio
async def test_page_index_survives_loading() -> None:
    api = ControlledHistoryAPI()
    explorer = WalletExplorer(FakeWallet([ADDR_A]), api, page_size=8)
    first = asyncio.create_task(explorer.connect())
    await asyncio.sleep(0)
    api.resolve(0, ok(make_txs(20)))
    await first
    explorer.go_to(1)

    refresh = asyncio.create_task(explorer.refresh())
    await asyncio.sleep(0)
    loading = explorer.snapshot()
    assert loading.loading is True
    assert loading.page.page_items == ()
    assert explorer.pagination.state.page_index == 1

    api.resolve(1, ok(make_txs(20)))
    snap = await refresh
    assert snap.page.page_index == 1
    assert snap.page.page_items == tuple(make_txs(20)[8:16])
