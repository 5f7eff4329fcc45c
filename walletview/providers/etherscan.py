"""
Etherscan history source — `account/txlist` API client.

Fetches the complete normal-transaction history of one address, oldest first.

API docs: https://docs.etherscan.io/api-endpoints/accounts
Rate limit: 5 calls/sec on free tier.

Design decisions:
- Uses async httpx for all HTTP calls.
- Implements token bucket rate limiting (5 req/sec).
- Pages through the upstream API until a short page is returned, or until
  the 10000-record result window Etherscan allows for txlist is used up.
- Every record is validated by parse_transaction(); one bad record rejects
  the whole response as malformed.
"""

from __future__ import annotations

import asyncio
import time
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
from walletview.models import Address
from walletview.providers.base import (
    HistoryResponse,
    ResponseStatus,
    parse_transaction,
)

# Etherscan API base URL
ETHERSCAN_BASE = "https://api.etherscan.io/api"

# Page size for Etherscan pagination (max 10000)
PAGE_SIZE = 10_000

# txlist rejects any request where page x offset exceeds this
RESULT_WINDOW = 10_000

# Rate limit: 5 calls per second (free tier)
RATE_LIMIT_CALLS = 5
RATE_LIMIT_PERIOD = 1.0  # seconds

NO_TRANSACTIONS = "No transactions found"


class _TokenBucket:
    """Simple token bucket rate limiter."""

    def __init__(self, calls: int, period: float) -> None:
        self._calls = calls
        self._period = period
        self._tokens: float = float(calls)
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_refill
            # Refill tokens proportional to elapsed time
            refill = (elapsed / self._period) * self._calls
            self._tokens = min(self._calls, self._tokens + refill)
            self._last_refill = now

            if self._tokens < 1:
                wait = (1 - self._tokens) * (self._period / self._calls)
                await asyncio.sleep(wait)
                self._tokens = 0
            else:
                self._tokens -= 1


class EtherscanClient:
    """
    Async Etherscan API client.

    Rate-limited to 5 calls/sec (free tier).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = ETHERSCAN_BASE,
        timeout: float = 30.0,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url or ETHERSCAN_BASE
        self._page_size = page_size
        self._client = httpx.AsyncClient(timeout=timeout)
        self._rate_limiter = _TokenBucket(RATE_LIMIT_CALLS, RATE_LIMIT_PERIOD)

    async def list_transactions(self, address: Address) -> HistoryResponse:
        """Fetch every normal transaction of `address`, ascending by time."""
        logger.debug(f"Etherscan txlist for {address}")
        raw_all: list[Any] = []
        page = 1

        while True:
            data = await self._get_page(address, page)

            if data.get("status") == "0":
                msg = str(data.get("message", ""))
                result = data.get("result", "")
                if "Invalid API Key" in str(result):
                    raise InvalidAPIKeyError("Etherscan API key is invalid")
                if result == "Max rate limit reached" or "rate limit" in str(result).lower():
                    raise RateLimitError("Etherscan rate limit exceeded", retry_after=60)
                if msg.startswith(NO_TRANSACTIONS):
                    break  # Empty, not an error
                detail = result if isinstance(result, str) and result else msg
                logger.warning(f"Etherscan returned status 0 for {address}: {detail}")
                return HistoryResponse(ResponseStatus.FAILURE, [], detail or "NOTOK")

            results = data.get("result")
            if not isinstance(results, list):
                raise MalformedResponseError(
                    "Etherscan result is not a list",
                    details={"result_type": type(results).__name__},
                )
            raw_all.extend(results)

            if len(results) < self._page_size:
                # No more pages
                break
            if page * self._page_size >= RESULT_WINDOW:
                logger.warning(
                    f"Etherscan result window reached for {address}; "
                    f"returning the first {len(raw_all)} transactions"
                )
                break

            page += 1

        items = [parse_transaction(raw) for raw in raw_all]
        logger.debug(f"Etherscan returned {len(items)} transactions for {address}")
        return HistoryResponse(ResponseStatus.SUCCESS, items)

    async def close(self) -> None:
        await self._client.aclose()

    # ──────────────────────────────────────────────────────────────
    # Private helpers
    # ──────────────────────────────────────────────────────────────

    async def _get_page(self, address: str, page: int) -> dict[str, Any]:
        await self._rate_limiter.acquire()
        try:
            resp = await self._client.get(
                self._base_url,
                params={
                    "module": "account",
                    "action": "txlist",
                    "address": address,
                    "startblock": 0,
                    "endblock": 99999999,
                    "sort": "asc",
                    "page": page,
                    "offset": self._page_size,
                    "apikey": self._api_key,
                },
            )
        except httpx.TimeoutException as e:
            raise NetworkTimeoutError(f"Etherscan timeout: {e}") from e
        except httpx.TransportError as e:
            raise ConnectionFailedError(f"Cannot connect to Etherscan: {e}") from e

        if resp.status_code == 429:
            raise RateLimitError("Etherscan rate limit exceeded", retry_after=60)
        if resp.status_code >= 400:
            raise APIError(
                f"Etherscan returned HTTP {resp.status_code}",
                details={"status_code": resp.status_code},
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"Etherscan response is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponseError("Etherscan response is not a JSON object")
        return data
