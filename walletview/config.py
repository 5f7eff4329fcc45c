"""
Config loading for walletview.

Sources (in precedence order, highest first):
  1. Environment variables (WALLETVIEW_*)
  2. ~/.walletview/config.toml
  3. Built-in defaults

Usage:
    from walletview.config import load_config
    config = load_config()
    print(config.api.etherscan_api_key)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import toml

from walletview.exceptions import ConfigInvalidError

# Default config directory and file
DEFAULT_CONFIG_DIR = Path.home() / ".walletview"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"

# Environment variable → config key mapping
# Format: (env_var_name, dotted_config_path, type_converter)
_ENV_OVERRIDES: list[tuple[str, str, type]] = [
    ("WALLETVIEW_SOURCE", "api.source", str),
    ("WALLETVIEW_ETHERSCAN_API_KEY", "api.etherscan_api_key", str),
    ("WALLETVIEW_ALCHEMY_API_KEY", "api.alchemy_api_key", str),
    ("WALLETVIEW_ALCHEMY_NETWORK", "api.alchemy_network", str),
    ("WALLETVIEW_API_BASE_URL", "api.base_url", str),
    ("WALLETVIEW_TIMEOUT", "api.timeout_seconds", float),
    ("WALLETVIEW_RPC_URL", "wallet.rpc_url", str),
    ("WALLETVIEW_ADDRESS", "wallet.address", str),
    ("WALLETVIEW_PAGE_SIZE", "pagination.page_size", int),
    ("WALLETVIEW_OUTPUT_FORMAT", "output.default_format", str),
    ("WALLETVIEW_LOG_LEVEL", "logging.level", str),
]

VALID_FORMATS = {"json", "table"}
VALID_SOURCES = {"etherscan", "alchemy"}
VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class APIConfig:
    """Transaction history source configuration."""

    source: str = "etherscan"           # etherscan | alchemy
    etherscan_api_key: str = ""
    alchemy_api_key: str = ""
    alchemy_network: str = "eth-sepolia"
    base_url: str = ""                  # Override the source's endpoint
    timeout_seconds: float = 30.0


@dataclass
class WalletConfig:
    """Wallet provider configuration."""

    rpc_url: str = ""                   # JSON-RPC wallet endpoint
    address: str = ""                   # Fixed address (read-only browsing)


@dataclass
class PaginationConfig:
    """Table paging defaults."""

    page_size: int = 8
    page_size_options: list[int] = field(default_factory=lambda: [8, 10, 20, 50])


@dataclass
class OutputConfig:
    """Output formatting defaults."""

    default_format: str = "table"       # table | json
    color: bool = True


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class WalletviewConfig:
    """Full configuration object. Passed via Click context to all commands."""

    api: APIConfig = field(default_factory=APIConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None = None) -> WalletviewConfig:
    """
    Load configuration from TOML file + environment variable overrides.

    Args:
        path: Override config file path. If None, uses WALLETVIEW_CONFIG_PATH
              env var or default (~/.walletview/config.toml).

    Returns:
        WalletviewConfig with all values resolved.

    Raises:
        ConfigInvalidError: Config file exists but is invalid TOML or values.
    """
    config_path = _resolve_config_path(path)

    raw: dict = {}
    if config_path.exists():
        try:
            raw = toml.load(str(config_path))
        except toml.TomlDecodeError as e:
            raise ConfigInvalidError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        config = _dict_to_config(raw)
    except (ValueError, TypeError) as e:
        raise ConfigInvalidError(f"Invalid value in {config_path}: {e}") from e
    _apply_env_overrides(config)
    _validate_config(config)

    return config


def save_config(config: WalletviewConfig, path: str | None = None) -> Path:
    """
    Serialize WalletviewConfig to TOML and write to disk.

    Returns the path where config was written.
    """
    config_path = _resolve_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "api": {
            "source": config.api.source,
            "etherscan_api_key": config.api.etherscan_api_key,
            "alchemy_api_key": config.api.alchemy_api_key,
            "alchemy_network": config.api.alchemy_network,
            "base_url": config.api.base_url,
            "timeout_seconds": config.api.timeout_seconds,
        },
        "wallet": {
            "rpc_url": config.wallet.rpc_url,
            "address": config.wallet.address,
        },
        "pagination": {
            "page_size": config.pagination.page_size,
            "page_size_options": list(config.pagination.page_size_options),
        },
        "output": {
            "default_format": config.output.default_format,
            "color": config.output.color,
        },
        "logging": {
            "level": config.logging.level,
        },
    }

    with open(config_path, "w") as f:
        toml.dump(data, f)

    return config_path


def get_default_config_path() -> Path:
    """Return the default config file path."""
    return DEFAULT_CONFIG_PATH


# ──────────────────────────────────────────────────────────────
# Private helpers
# ──────────────────────────────────────────────────────────────


def _resolve_config_path(path: str | None) -> Path:
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get("WALLETVIEW_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def _dict_to_config(raw: dict) -> WalletviewConfig:
    """Build WalletviewConfig from raw TOML dict, applying defaults for missing keys."""
    config = WalletviewConfig()

    api = raw.get("api", {})
    config.api.source = str(api.get("source", "etherscan")).lower()
    config.api.etherscan_api_key = api.get("etherscan_api_key", "")
    config.api.alchemy_api_key = api.get("alchemy_api_key", "")
    config.api.alchemy_network = api.get("alchemy_network", "eth-sepolia")
    config.api.base_url = api.get("base_url", "")
    config.api.timeout_seconds = float(api.get("timeout_seconds", 30.0))

    wallet = raw.get("wallet", {})
    config.wallet.rpc_url = wallet.get("rpc_url", "")
    config.wallet.address = wallet.get("address", "")

    pagination = raw.get("pagination", {})
    config.pagination.page_size = int(pagination.get("page_size", 8))
    config.pagination.page_size_options = [
        int(n) for n in pagination.get("page_size_options", [8, 10, 20, 50])
    ]

    output = raw.get("output", {})
    config.output.default_format = output.get("default_format", "table")
    config.output.color = bool(output.get("color", True))

    log = raw.get("logging", {})
    config.logging.level = str(log.get("level", "WARNING")).upper()

    return config


def _apply_env_overrides(config: WalletviewConfig) -> None:
    """Apply environment variable overrides to a loaded config."""
    # Handle WALLETVIEW_NO_COLOR
    if os.environ.get("WALLETVIEW_NO_COLOR"):
        config.output.color = False

    for env_var, dotted_key, converter in _ENV_OVERRIDES:
        val = os.environ.get(env_var)
        if val is None:
            continue
        section, key = dotted_key.split(".", 1)
        section_obj = getattr(config, section)
        try:
            setattr(section_obj, key, converter(val))
        except (ValueError, TypeError) as e:
            raise ConfigInvalidError(
                f"Invalid value for {env_var}={val!r}: {e}"
            ) from e

    config.api.source = config.api.source.lower()
    config.logging.level = config.logging.level.upper()


def _validate_config(config: WalletviewConfig) -> None:
    """Validate config values. Raises ConfigInvalidError on invalid values."""
    if config.api.source not in VALID_SOURCES:
        raise ConfigInvalidError(
            f"api.source must be one of {sorted(VALID_SOURCES)}, got {config.api.source!r}"
        )
    if config.api.timeout_seconds <= 0:
        raise ConfigInvalidError(
            f"api.timeout_seconds must be positive, got {config.api.timeout_seconds}"
        )
    if config.pagination.page_size < 1:
        raise ConfigInvalidError(
            f"pagination.page_size must be at least 1, got {config.pagination.page_size}"
        )
    if not config.pagination.page_size_options or any(
        n < 1 for n in config.pagination.page_size_options
    ):
        raise ConfigInvalidError(
            "pagination.page_size_options must be a non-empty list of positive integers"
        )
    if config.output.default_format not in VALID_FORMATS:
        raise ConfigInvalidError(
            f"output.default_format must be one of {sorted(VALID_FORMATS)}, "
            f"got {config.output.default_format!r}"
        )
    if config.logging.level not in VALID_LOG_LEVELS:
        raise ConfigInvalidError(
            f"logging.level must be one of {sorted(VALID_LOG_LEVELS)}, "
            f"got {config.logging.level!r}"
        )
