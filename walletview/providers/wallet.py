"""
Wallet providers.

RpcWalletProvider talks EIP-1193 style JSON-RPC (`eth_requestAccounts`) to a
wallet or signer that exposes an HTTP endpoint. StaticWalletProvider wraps a
fixed address, for read-only browsing of an account given on the command line.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from walletview.exceptions import ProviderError, UserRejectedError
from walletview.models import Address

# EIP-1193: "The user rejected the request."
USER_REJECTED_CODE = 4001


class RpcWalletProvider:
    """JSON-RPC wallet. Available iff an RPC URL is configured."""

    def __init__(self, rpc_url: str, timeout: float = 120.0) -> None:
        self._rpc_url = rpc_url
        # Long timeout: the wallet may be waiting on a user prompt
        self._client = httpx.AsyncClient(timeout=timeout)

    def is_available(self) -> bool:
        return bool(self._rpc_url)

    async def request_accounts(self) -> list[Address]:
        logger.debug(f"eth_requestAccounts via {self._rpc_url}")
        try:
            resp = await self._client.post(
                self._rpc_url,
                json={"jsonrpc": "2.0", "id": 1, "method": "eth_requestAccounts", "params": []},
            )
            data: Any = resp.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"Wallet RPC unreachable: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Wallet RPC returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProviderError("Wallet RPC returned a non-object response")

        error = data.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", "") if isinstance(error, dict) else str(error)
            if code == USER_REJECTED_CODE:
                raise UserRejectedError(message or "User rejected the request")
            raise ProviderError(f"Wallet error: {message}", details={"code": code})

        accounts = data.get("result")
        if not isinstance(accounts, list) or not all(isinstance(a, str) for a in accounts):
            raise ProviderError("Wallet returned an invalid account list")
        return accounts

    async def close(self) -> None:
        await self._client.aclose()


class StaticWalletProvider:
    """A fixed, already-known address. Available iff the address is non-empty."""

    def __init__(self, address: Address) -> None:
        self._address = address

    def is_available(self) -> bool:
        return bool(self._address)

    async def request_accounts(self) -> list[Address]:
        return [self._address]

    async def close(self) -> None:
        return None
