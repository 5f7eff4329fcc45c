"""
Shared data models for walletview.

These dataclasses are the canonical data shapes used across all modules:
providers produce Transactions, the fetcher and connection controller publish
state variants, the pagination view derives PageViews, and the explorer hands
renderers a Snapshot of all three.

State variants are frozen dataclasses. A transition replaces the whole value,
so a consumer holding a reference never sees it change underneath it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

Address = str


@dataclass(frozen=True)
class Transaction:
    """A single historical transfer, as shown in one table row."""

    tx_hash: str
    from_addr: str
    to_addr: str        # "" for contract creation
    value: int          # Smallest on-chain unit (wei); never a float
    timestamp: int      # Unix timestamp (UTC seconds)
    block_num: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output. Value is a decimal string to keep precision."""
        return {
            "hash": self.tx_hash,
            "from": self.from_addr,
            "to": self.to_addr,
            "value": str(self.value),
            "timestamp": self.timestamp,
            "block_number": self.block_num,
        }


TransactionList = tuple[Transaction, ...]


class FailureReason(str, Enum):
    """Why a connection or fetch attempt ended in a failed state."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    USER_REJECTED = "user_rejected"
    PROVIDER_ERROR = "provider_error"
    NETWORK_ERROR = "network_error"
    RATE_LIMITED = "rate_limited"
    MALFORMED_RESPONSE = "malformed_response"
    API_ERROR = "api_error"


# ── Connection state ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Disconnected:
    status = "disconnected"


@dataclass(frozen=True)
class Connecting:
    status = "connecting"


@dataclass(frozen=True)
class Connected:
    address: Address
    status = "connected"


@dataclass(frozen=True)
class ConnectionFailed:
    reason: FailureReason
    message: str = ""
    status = "failed"


ConnectionState = Disconnected | Connecting | Connected | ConnectionFailed


# ── Fetch state ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Idle:
    status = "idle"


@dataclass(frozen=True)
class Loading:
    for_address: Address
    status = "loading"


@dataclass(frozen=True)
class Ready:
    for_address: Address
    items: TransactionList = ()
    status = "ready"


@dataclass(frozen=True)
class FetchFailed:
    for_address: Address
    reason: FailureReason
    message: str = ""
    status = "failed"


FetchState = Idle | Loading | Ready | FetchFailed


def items_of(state: FetchState) -> TransactionList:
    """Items the view should page over: the Ready list, otherwise nothing."""
    if isinstance(state, Ready):
        return state.items
    return ()


# ── Pagination ───────────────────────────────────────────────────────────────


@dataclass
class PaginationState:
    """Requested page position. Mutated only by navigation operations."""

    page_index: int = 0
    page_size: int = 8


@dataclass(frozen=True)
class PageView:
    """Derived, read-only view of one page of a TransactionList."""

    page_items: TransactionList
    page_count: int
    page_index: int         # effective (clamped) index, 0-based
    page_size: int
    total_items: int
    can_previous: bool
    can_next: bool

    @property
    def label(self) -> str:
        """Human page label: 'Page 2 of 3'. 'Page 0 of 0' when there is nothing to show."""
        if self.page_count == 0:
            return "Page 0 of 0"
        return f"Page {self.page_index + 1} of {self.page_count}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_index": self.page_index,
            "page_size": self.page_size,
            "page_count": self.page_count,
            "total_items": self.total_items,
            "can_previous": self.can_previous,
            "can_next": self.can_next,
            "label": self.label,
            "items": [tx.to_dict() for tx in self.page_items],
        }


# ── Renderer snapshot ────────────────────────────────────────────────────────

_FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.PROVIDER_UNAVAILABLE: "Please install or enable a wallet to connect.",
    FailureReason.USER_REJECTED: "Connection was declined.",
    FailureReason.PROVIDER_ERROR: "Wallet error. Try connecting again.",
}
_FETCH_FAILED_MESSAGE = "Could not load transactions. Try again."


@dataclass(frozen=True)
class Snapshot:
    """Everything a renderer needs to draw one frame."""

    connection: ConnectionState
    fetch: FetchState
    page: PageView
    loading: bool = False

    @property
    def message(self) -> str:
        """User-facing status line; empty when the table itself says it all."""
        if isinstance(self.connection, ConnectionFailed):
            return _FAILURE_MESSAGES.get(self.connection.reason, _FETCH_FAILED_MESSAGE)
        if isinstance(self.connection, Disconnected):
            return "Connect a wallet to view its transactions."
        if isinstance(self.connection, Connecting):
            return "Connecting..."
        if self.loading:
            return "Loading..."
        if isinstance(self.fetch, FetchFailed):
            return _FETCH_FAILED_MESSAGE
        if isinstance(self.fetch, Ready) and not self.fetch.items:
            return "No transactions found for this account."
        return ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        connection: dict[str, Any] = {"status": self.connection.status}
        if isinstance(self.connection, Connected):
            connection["address"] = self.connection.address
        elif isinstance(self.connection, ConnectionFailed):
            connection["reason"] = self.connection.reason.value
            connection["detail"] = self.connection.message

        fetch: dict[str, Any] = {"status": self.fetch.status}
        if not isinstance(self.fetch, Idle):
            fetch["address"] = self.fetch.for_address
        if isinstance(self.fetch, FetchFailed):
            fetch["reason"] = self.fetch.reason.value
            fetch["detail"] = self.fetch.message

        return {
            "connection": connection,
            "fetch": fetch,
            "loading": self.loading,
            "message": self.message,
            "page": self.page.to_dict(),
        }
