"""
Collaborator layer for walletview.

Provides factory functions that return the configured history source and
wallet provider. History sources implement TransactionHistoryAPI; wallet
providers implement WalletProvider.

Usage:
    from walletview.providers import get_history_api, get_wallet_provider
    api = get_history_api(config)
    response = await api.list_transactions(address)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from walletview.providers.base import (
    HistoryResponse,
    ResponseStatus,
    TransactionHistoryAPI,
    WalletProvider,
)

if TYPE_CHECKING:
    from walletview.config import WalletviewConfig

SUPPORTED_SOURCES = {"etherscan", "alchemy"}

__all__ = [
    "HistoryResponse",
    "ResponseStatus",
    "TransactionHistoryAPI",
    "WalletProvider",
    "get_history_api",
    "get_wallet_provider",
]


def get_history_api(config: WalletviewConfig) -> TransactionHistoryAPI:
    """
    Factory: return the history source named by `config.api.source`.

    Raises:
        ValueError: Unknown source identifier
    """
    source = config.api.source.lower()
    if source not in SUPPORTED_SOURCES:
        raise ValueError(f"Unsupported source: {source!r}. Supported: {sorted(SUPPORTED_SOURCES)}")

    if source == "etherscan":
        from walletview.providers.etherscan import ETHERSCAN_BASE, EtherscanClient

        return EtherscanClient(
            api_key=config.api.etherscan_api_key,
            base_url=config.api.base_url or ETHERSCAN_BASE,
            timeout=config.api.timeout_seconds,
        )

    if source == "alchemy":
        from walletview.providers.alchemy import AlchemyClient

        return AlchemyClient(
            api_key=config.api.alchemy_api_key,
            network=config.api.alchemy_network,
            base_url=config.api.base_url,
            timeout=config.api.timeout_seconds,
        )

    raise ValueError(f"Unreachable: {source}")  # pragma: no cover


def get_wallet_provider(
    config: WalletviewConfig, address: str | None = None
) -> WalletProvider | None:
    """
    Factory: return the wallet provider to connect through.

    An explicit `address` wins, then `wallet.rpc_url`, then `wallet.address`.
    Returns None when nothing is configured; the connection controller
    reports that as provider_unavailable.
    """
    from walletview.providers.wallet import RpcWalletProvider, StaticWalletProvider

    if address:
        return StaticWalletProvider(address)
    if config.wallet.rpc_url:
        return RpcWalletProvider(config.wallet.rpc_url)
    if config.wallet.address:
        return StaticWalletProvider(config.wallet.address)
    return None
