"""
Custom exception hierarchy for walletview.

Collaborators (wallet providers, history APIs, config loader) raise these.
The core controllers catch them at their boundary and convert them into
state variants; cli.py formats any that reach it as JSON on stderr.

Exit code mapping:
  1 — WalletviewError (generic CLI error)
  2 — WalletError (no wallet, user declined, wallet malfunction)
  3 — APIError (invalid key, rate limit, upstream error)
  4 — NetworkError (timeout, connection refused)
  5 — DataError (malformed payload, invalid address)
  6 — ConfigError (missing/malformed config)
"""


class WalletviewError(Exception):
    """Base exception for all walletview errors."""

    exit_code: int = 1
    error_code: str = "unknown_error"

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class WalletError(WalletviewError):
    """Wallet provider could not produce an account."""

    exit_code = 2
    error_code = "wallet_error"


class ProviderUnavailableError(WalletError):
    """No wallet capability is present; user should install or enable one."""

    error_code = "provider_unavailable"


class UserRejectedError(WalletError):
    """User declined the connection request."""

    error_code = "user_rejected"


class ProviderError(WalletError):
    """Wallet provider malfunctioned; recoverable by retrying."""

    error_code = "provider_error"


class APIError(WalletviewError):
    """Upstream history API returned an error response."""

    exit_code = 3
    error_code = "api_error"


class InvalidAPIKeyError(APIError):
    """API key is invalid or missing."""

    error_code = "invalid_api_key"


class RateLimitError(APIError):
    """API rate limit exceeded."""

    error_code = "rate_limited"

    def __init__(self, message: str, retry_after: int = 60, details: dict | None = None) -> None:
        super().__init__(message, details={"retry_after_seconds": retry_after, **(details or {})})
        self.retry_after = retry_after


class NetworkError(WalletviewError):
    """Network connectivity issue — timeout or connection failure."""

    exit_code = 4
    error_code = "network_error"


class NetworkTimeoutError(NetworkError):
    """Request timed out."""

    error_code = "network_timeout"


class ConnectionFailedError(NetworkError):
    """Could not connect to API endpoint."""

    error_code = "connection_failed"


class DataError(WalletviewError):
    """Data validation error."""

    exit_code = 5
    error_code = "data_error"


class MalformedResponseError(DataError):
    """Upstream payload could not be decoded into transactions."""

    error_code = "malformed_response"


class InvalidAddressError(DataError):
    """Address format is invalid."""

    error_code = "invalid_address"


class ConfigError(WalletviewError):
    """Config file is missing or malformed."""

    exit_code = 6
    error_code = "config_error"


class ConfigMissingError(ConfigError):
    """Config file does not exist; user should run `walletview config init`."""

    error_code = "config_missing"


class ConfigInvalidError(ConfigError):
    """Config file exists but contains invalid TOML or invalid values."""

    error_code = "config_invalid"
