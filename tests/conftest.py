"""Pytest fixtures shared across all walletview tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from walletview.config import (
    APIConfig,
    LoggingConfig,
    OutputConfig,
    PaginationConfig,
    WalletConfig,
    WalletviewConfig,
)
from walletview.models import Transaction
from walletview.providers.base import HistoryResponse, ResponseStatus

ADDR_A = "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"
ADDR_B = "0x28c6c06298d514db089934071355e5743bf21d60"
TS_BASE = 1706906640


# ── Builders ──────────────────────────────────────────────────────────────────


def make_tx(i: int, owner: str = ADDR_A) -> Transaction:
    return Transaction(
        tx_hash=f"0x{i:064x}",
        from_addr=owner,
        to_addr="0x000000000000000000000000000000000000dead",
        value=i * 10**18,
        timestamp=TS_BASE + i * 60,
        block_num=18_000_000 + i,
    )


def make_txs(n: int, owner: str = ADDR_A) -> list[Transaction]:
    return [make_tx(i, owner) for i in range(n)]


def make_raw_tx(
    i: int = 0,
    from_addr: str = ADDR_A,
    to_addr: str = ADDR_B,
    value: str = "10000000000000000000",
) -> dict[str, Any]:
    """Etherscan-shaped txlist record."""
    return {
        "hash": f"0x{i:064x}",
        "blockNumber": str(18_000_000 + i),
        "timeStamp": str(TS_BASE + i * 60),
        "from": from_addr,
        "to": to_addr,
        "value": value,
        "gasPrice": "20000000000",
        "gasUsed": "21000",
        "isError": "0",
    }


def ok(items: list[Transaction]) -> HistoryResponse:
    return HistoryResponse(ResponseStatus.SUCCESS, list(items))


# ── Fake collaborators ────────────────────────────────────────────────────────


class FakeHistoryAPI:
    """Returns (or raises) a preset outcome per address."""

    def __init__(self, outcomes: dict[str, HistoryResponse | Exception] | None = None) -> None:
        self.outcomes = outcomes or {}
        self.calls: list[str] = []

    async def list_transactions(self, address: str) -> HistoryResponse:
        self.calls.append(address)
        outcome = self.outcomes.get(address, ok([]))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class ControlledHistoryAPI:
    """Each call suspends until the test resolves it, in any order."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self._pending: list[asyncio.Future] = []

    async def list_transactions(self, address: str) -> HistoryResponse:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(address)
        self._pending.append(future)
        return await future

    def resolve(self, index: int, response: HistoryResponse) -> None:
        self._pending[index].set_result(response)

    def fail(self, index: int, error: Exception) -> None:
        self._pending[index].set_exception(error)


class FakeWallet:
    """Wallet provider with a fixed account list, error, or per-call futures."""

    def __init__(
        self,
        accounts: list[str] | None = None,
        error: Exception | None = None,
        available: bool = True,
        controlled: bool = False,
    ) -> None:
        self.accounts = accounts if accounts is not None else [ADDR_A]
        self.error = error
        self.available = available
        self.controlled = controlled
        self.requests = 0
        self._pending: list[asyncio.Future] = []

    def is_available(self) -> bool:
        return self.available

    async def request_accounts(self) -> list[str]:
        self.requests += 1
        if self.controlled:
            future = asyncio.get_running_loop().create_future()
            self._pending.append(future)
            return await future
        if self.error is not None:
            raise self.error
        return list(self.accounts)

    def resolve(self, index: int, accounts: list[str]) -> None:
        self._pending[index].set_result(accounts)


# ── Config fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def sample_config() -> WalletviewConfig:
    """Minimal valid WalletviewConfig for tests."""
    return WalletviewConfig(
        api=APIConfig(
            source="etherscan",
            etherscan_api_key="test_etherscan_key_12345",
            alchemy_api_key="",
            timeout_seconds=5.0,
        ),
        wallet=WalletConfig(rpc_url="", address=""),
        pagination=PaginationConfig(page_size=8, page_size_options=[8, 10, 20]),
        output=OutputConfig(default_format="json", color=False),
        logging=LoggingConfig(level="WARNING"),
    )


@pytest.fixture
def twenty_txs() -> list[Transaction]:
    return make_txs(20)


@pytest.fixture
def mock_etherscan_empty() -> dict:
    """Etherscan response for an address with no transactions."""
    return {
        "status": "0",
        "message": "No transactions found",
        "result": [],
    }


@pytest.fixture
def mock_etherscan_ratelimit() -> dict:
    """Etherscan response when rate limited."""
    return {
        "status": "0",
        "message": "NOTOK",
        "result": "Max rate limit reached",
    }
