"""Collaborator protocols and the strict payload validator shared by providers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from walletview.exceptions import MalformedResponseError
from walletview.models import Address, Transaction

# ETH address regex (0x + 40 hex chars)
ETH_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class HistoryResponse:
    """Result of one listTransactions call: status flag, items, optional message."""

    status: ResponseStatus
    items: list[Transaction] = field(default_factory=list)
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ResponseStatus.SUCCESS


@runtime_checkable
class WalletProvider(Protocol):
    """
    Protocol that all wallet providers must implement.

    Providers are responsible for:
    - Reporting whether a wallet capability is present at all
    - Asking the wallet for its accounts (may prompt the user)

    Providers are NOT responsible for:
    - Tracking connection state (that's connection.py)
    - Validating or normalising the returned addresses
    """

    def is_available(self) -> bool:
        """True if a wallet capability is present. No network calls."""
        ...

    async def request_accounts(self) -> list[Address]:
        """
        Ask the wallet for its accounts.

        Returns:
            Account addresses, primary first.

        Raises:
            UserRejectedError: The user declined the request
            ProviderError: The wallet failed for any other reason
        """
        ...


@runtime_checkable
class TransactionHistoryAPI(Protocol):
    """
    Protocol that all transaction history sources must implement.

    Sources are responsible for:
    - Making API calls (including any upstream paging) for one address
    - Validating every record into a Transaction

    Sources are NOT responsible for:
    - Supersession or fetch state (that's fetcher.py)
    - Client-side pagination (that's pagination.py)
    """

    async def list_transactions(self, address: Address) -> HistoryResponse:
        """
        Fetch the full transaction history of `address`, oldest first.

        Returns a success response with an empty list if the account has
        no transactions (not an error).

        Raises:
            NetworkError: Transport failure or timeout
            RateLimitError: Throttled by the upstream API
            MalformedResponseError: Payload could not be decoded
            APIError: Any other upstream error
        """
        ...


def validate_address(address: str) -> bool:
    """Validate ETH address format. No API call required."""
    return bool(ETH_ADDRESS_RE.match(address or ""))


def parse_int(value: Any, name: str) -> int:
    """Parse a decimal or 0x-hex integer field, rejecting floats and junk."""
    if isinstance(value, bool) or value is None:
        raise MalformedResponseError(f"Field {name!r} is missing or not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                return int(text, 16)
            return int(text, 10)
        except ValueError:
            pass
    raise MalformedResponseError(
        f"Field {name!r} is not an integer: {value!r}",
        details={"field": name},
    )


def parse_transaction(raw: Any) -> Transaction:
    """
    Validate one raw record into a Transaction.

    Expects Etherscan-style keys: hash, from, to, value, timeStamp
    (blockNumber optional). Raises MalformedResponseError instead of
    coercing or skipping bad records.
    """
    if not isinstance(raw, dict):
        raise MalformedResponseError(f"Transaction record is not an object: {raw!r}")

    tx_hash = raw.get("hash")
    from_addr = raw.get("from")
    if not isinstance(tx_hash, str) or not tx_hash:
        raise MalformedResponseError("Transaction record has no hash", details={"record": raw})
    if not isinstance(from_addr, str) or not from_addr:
        raise MalformedResponseError(
            f"Transaction {tx_hash} has no sender", details={"hash": tx_hash}
        )

    to_addr = raw.get("to") or ""
    if not isinstance(to_addr, str):
        raise MalformedResponseError(
            f"Transaction {tx_hash} has a non-string recipient", details={"hash": tx_hash}
        )

    block = raw.get("blockNumber")
    return Transaction(
        tx_hash=tx_hash,
        from_addr=from_addr,
        to_addr=to_addr,
        value=parse_int(raw.get("value"), "value"),
        timestamp=parse_int(raw.get("timeStamp"), "timeStamp"),
        block_num=parse_int(block, "blockNumber") if block not in (None, "") else None,
    )
