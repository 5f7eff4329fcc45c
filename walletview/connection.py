"""
Wallet connection state machine.

    Disconnected ─connect()→ Connecting ─┬→ Connected(address) → fetch(address)
                                         └→ ConnectionFailed(reason)

ConnectionFailed only ends that attempt; connect() may be called again at any
time. A connect() whose result arrives after a newer connect() started is
ignored.
"""

from __future__ import annotations

from typing import Callable

from loguru import logger

from walletview.exceptions import UserRejectedError, WalletviewError
from walletview.fetcher import TransactionFetcher
from walletview.models import (
    Connected,
    Connecting,
    ConnectionFailed,
    ConnectionState,
    Disconnected,
    FailureReason,
)
from walletview.providers.base import WalletProvider

ConnectionListener = Callable[[ConnectionState], None]


class ConnectionController:
    """Owns the ConnectionState and triggers one fetch per successful connect."""

    def __init__(self, provider: WalletProvider | None, fetcher: TransactionFetcher) -> None:
        self._provider = provider
        self._fetcher = fetcher
        self._state: ConnectionState = Disconnected()
        self._attempt = 0
        self._listeners: list[ConnectionListener] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    def subscribe(self, listener: ConnectionListener) -> Callable[[], None]:
        """Call `listener` with every published state. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def connect(self) -> ConnectionState:
        """
        Request the wallet's accounts and connect to the first one.

        On success, awaits exactly one fetch for the connected address.
        Never raises for wallet failures; they become ConnectionFailed.
        """
        self._attempt += 1
        attempt = self._attempt

        if self._provider is None or not self._provider.is_available():
            logger.warning("No wallet provider available")
            self._publish(ConnectionFailed(FailureReason.PROVIDER_UNAVAILABLE, "no wallet found"))
            return self._state

        self._publish(Connecting())

        try:
            accounts = await self._provider.request_accounts()
        except UserRejectedError as e:
            result: ConnectionState = ConnectionFailed(FailureReason.USER_REJECTED, e.message)
            logger.info("Wallet connection declined by user")
        except WalletviewError as e:
            result = ConnectionFailed(FailureReason.PROVIDER_ERROR, e.message)
            logger.warning(f"Wallet provider error: {e.message}")
        except Exception as e:
            result = ConnectionFailed(FailureReason.PROVIDER_ERROR, str(e))
            logger.exception("Unexpected wallet provider failure")
        else:
            if accounts:
                result = Connected(accounts[0])
            else:
                result = ConnectionFailed(FailureReason.PROVIDER_ERROR, "wallet returned no accounts")
                logger.warning("Wallet returned no accounts")

        if attempt != self._attempt:
            logger.debug(f"Ignoring result of superseded connect attempt {attempt}")
            return self._state

        self._publish(result)
        if isinstance(result, Connected):
            logger.info(f"Connected to {result.address}")
            await self._fetcher.fetch(result.address)
        return result

    def _publish(self, state: ConnectionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
