"""
Transaction fetch lifecycle: Idle → Loading → Ready | FetchFailed.

Every fetch() takes a request token. A response is applied only if its token
is still the latest issued and the current state still targets the same
address; otherwise it is discarded on arrival. There is no explicit
cancellation of in-flight calls, so a slow response for an old address can
never overwrite the state of a newer request.

Collaborator errors are classified into FailureReason values and published
as FetchFailed; nothing raised by the history API escapes fetch().
"""

from __future__ import annotations

from typing import Callable

from loguru import logger

from walletview.exceptions import (
    MalformedResponseError,
    NetworkError,
    RateLimitError,
    WalletviewError,
)
from walletview.models import (
    Address,
    FailureReason,
    FetchFailed,
    FetchState,
    Idle,
    Loading,
    Ready,
)
from walletview.providers.base import TransactionHistoryAPI

FetchListener = Callable[[FetchState], None]


def classify_error(err: BaseException) -> FailureReason:
    """Map a history API exception onto a FailureReason."""
    if isinstance(err, RateLimitError):
        return FailureReason.RATE_LIMITED
    if isinstance(err, NetworkError):
        return FailureReason.NETWORK_ERROR
    if isinstance(err, MalformedResponseError):
        return FailureReason.MALFORMED_RESPONSE
    return FailureReason.API_ERROR


class TransactionFetcher:
    """Owns the FetchState for the currently connected address."""

    def __init__(self, api: TransactionHistoryAPI) -> None:
        self._api = api
        self._state: FetchState = Idle()
        self._token = 0
        self._listeners: list[FetchListener] = []

    @property
    def state(self) -> FetchState:
        return self._state

    def subscribe(self, listener: FetchListener) -> Callable[[], None]:
        """Call `listener` with every published state. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def fetch(self, address: Address) -> FetchState:
        """
        Fetch the history of `address` and publish the outcome.

        Returns the state current after this call settles, which is the
        state of a newer request if this one was superseded.

        Raises:
            ValueError: address is empty
        """
        if not address:
            raise ValueError("fetch() requires a non-empty address")

        self._token += 1
        token = self._token
        self._publish(Loading(address))

        try:
            response = await self._api.list_transactions(address)
        except WalletviewError as e:
            outcome: FetchState = FetchFailed(address, classify_error(e), e.message)
            logger.warning(f"Fetch for {address} failed ({e.error_code}): {e.message}")
        except Exception as e:
            outcome = FetchFailed(address, FailureReason.API_ERROR, str(e))
            logger.exception(f"Unexpected error fetching transactions for {address}")
        else:
            if response.ok:
                outcome = Ready(address, tuple(response.items))
                logger.debug(f"Fetched {len(response.items)} transactions for {address}")
            else:
                outcome = FetchFailed(
                    address, FailureReason.API_ERROR, response.message or "request failed"
                )
                logger.warning(f"History API reported failure for {address}: {response.message}")

        if not self._is_current(token, address):
            logger.debug(f"Discarding superseded response for {address} (request {token})")
            return self._state

        self._publish(outcome)
        return outcome

    # ──────────────────────────────────────────────────────────────
    # Private helpers
    # ──────────────────────────────────────────────────────────────

    def _is_current(self, token: int, address: Address) -> bool:
        if token != self._token:
            return False
        return getattr(self._state, "for_address", None) == address

    def _publish(self, state: FetchState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
