"""
Alchemy history source — `alchemy_getAssetTransfers` JSON-RPC client.

API docs: https://docs.alchemy.com/reference/alchemy-getassettransfers

Design decisions:
- Uses POST with a JSON-RPC body (Alchemy's single endpoint design).
- Outgoing and incoming external transfers are fetched concurrently and
  merged by hash, then ordered by block timestamp ascending.
- Follows `pageKey` until the upstream list is exhausted.
- Value comes from `rawContract.value` (hex wei), never the float `value`.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import httpx
from loguru import logger

from walletview.exceptions import (
    APIError,
    ConnectionFailedError,
    InvalidAPIKeyError,
    MalformedResponseError,
    NetworkTimeoutError,
    RateLimitError,
)
from walletview.models import Address, Transaction
from walletview.providers.base import (
    HistoryResponse,
    ResponseStatus,
    parse_transaction,
)

ALCHEMY_URL_TEMPLATE = "https://{network}.g.alchemy.com/v2/{api_key}"
DEFAULT_NETWORK = "eth-sepolia"

# Max transfers per upstream page (Alchemy caps at 1000)
MAX_COUNT = 1000

# JSON-RPC error codes Alchemy uses for throttling
_RATE_LIMIT_CODES = {429, -32005}


class AlchemyClient:
    """
    Async Alchemy transfers client.

    Only the `external` category is requested: plain value transfers, which
    is what the history table shows.
    """

    def __init__(
        self,
        api_key: str,
        network: str = DEFAULT_NETWORK,
        base_url: str = "",
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._url = base_url or ALCHEMY_URL_TEMPLATE.format(
            network=network or DEFAULT_NETWORK, api_key=api_key
        )
        self._client = httpx.AsyncClient(timeout=timeout)

    async def list_transactions(self, address: Address) -> HistoryResponse:
        """Fetch all external transfers to or from `address`, oldest first."""
        if not self._api_key:
            raise InvalidAPIKeyError("Alchemy API key is not configured")

        logger.debug(f"Alchemy getAssetTransfers for {address}")
        outgoing, incoming = await asyncio.gather(
            self._fetch_all_pages({"fromAddress": address}),
            self._fetch_all_pages({"toAddress": address}),
        )

        merged: dict[str, Transaction] = {}
        for raw in outgoing + incoming:
            tx = parse_transaction(self._to_record(raw))
            merged.setdefault(tx.tx_hash, tx)

        items = sorted(merged.values(), key=lambda t: (t.timestamp, t.block_num or 0))
        logger.debug(f"Alchemy returned {len(items)} transactions for {address}")
        return HistoryResponse(ResponseStatus.SUCCESS, items)

    async def close(self) -> None:
        await self._client.aclose()

    # ──────────────────────────────────────────────────────────────
    # Private helpers
    # ──────────────────────────────────────────────────────────────

    async def _fetch_all_pages(self, direction: dict[str, str]) -> list[dict[str, Any]]:
        """Follow pageKey until the transfer list is exhausted."""
        transfers: list[dict[str, Any]] = []
        page_key: str | None = None

        while True:
            params: dict[str, Any] = {
                "fromBlock": "0x0",
                "toBlock": "latest",
                "category": ["external"],
                "withMetadata": True,
                "excludeZeroValue": False,
                "maxCount": hex(MAX_COUNT),
                "order": "asc",
                **direction,
            }
            if page_key:
                params["pageKey"] = page_key

            result = await self._rpc("alchemy_getAssetTransfers", [params])
            batch = result.get("transfers")
            if not isinstance(batch, list):
                raise MalformedResponseError("Alchemy result has no transfers list")
            transfers.extend(batch)

            page_key = result.get("pageKey")
            if not page_key:
                break

        return transfers

    async def _rpc(self, method: str, params: list[Any]) -> dict[str, Any]:
        try:
            resp = await self._client.post(
                self._url,
                json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
            )
        except httpx.TimeoutException as e:
            raise NetworkTimeoutError(f"Alchemy timeout: {e}") from e
        except httpx.TransportError as e:
            raise ConnectionFailedError(f"Cannot connect to Alchemy: {e}") from e

        if resp.status_code == 429:
            raise RateLimitError("Alchemy rate limit exceeded", retry_after=1)
        if resp.status_code in (401, 403):
            raise InvalidAPIKeyError("Alchemy API key is invalid")
        if resp.status_code >= 400:
            raise APIError(
                f"Alchemy returned HTTP {resp.status_code}",
                details={"status_code": resp.status_code},
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"Alchemy response is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponseError("Alchemy response is not a JSON object")

        error = data.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", "") if isinstance(error, dict) else str(error)
            if code in _RATE_LIMIT_CODES:
                raise RateLimitError(f"Alchemy rate limit exceeded: {message}", retry_after=1)
            raise APIError(f"Alchemy error: {message}", details={"code": code})

        result = data.get("result")
        if not isinstance(result, dict):
            raise MalformedResponseError("Alchemy response has no result object")
        return result

    def _to_record(self, transfer: Any) -> dict[str, Any]:
        """Map an Alchemy transfer onto the record shape parse_transaction expects."""
        if not isinstance(transfer, dict):
            raise MalformedResponseError(f"Transfer is not an object: {transfer!r}")
        raw_contract = transfer.get("rawContract") or {}
        metadata = transfer.get("metadata") or {}
        stamp = metadata.get("blockTimestamp")
        try:
            ts = int(datetime.fromisoformat(stamp).timestamp())
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(
                f"Transfer {transfer.get('hash')} has no valid blockTimestamp",
                details={"blockTimestamp": stamp},
            ) from e
        return {
            "hash": transfer.get("hash"),
            "from": transfer.get("from"),
            "to": transfer.get("to"),
            "value": raw_contract.get("value"),
            "timeStamp": ts,
            "blockNumber": transfer.get("blockNum"),
        }
