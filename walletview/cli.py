"""Click CLI entry point for walletview.

All commands are thin orchestration wrappers — state handling lives in
explorer, connection, fetcher and pagination; collaborators in providers.

Exit codes:
  0 — success (including an account with no transactions)
  1 — generic CLI error
  2 — wallet error (no wallet, declined, wallet failure)
  3 — API error, rate limit, invalid key
  4 — network error
  5 — data error (malformed response, invalid address)
  6 — config error
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
from loguru import logger

from walletview import __version__
from walletview.config import (
    VALID_LOG_LEVELS,
    WalletviewConfig,
    get_default_config_path,
    load_config,
    save_config,
)
from walletview.exceptions import (
    APIError,
    ConfigMissingError,
    InvalidAddressError,
    MalformedResponseError,
    NetworkError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
    UserRejectedError,
    WalletviewError,
)
from walletview.explorer import WalletExplorer
from walletview.log import configure_logging
from walletview.models import ConnectionFailed, FailureReason, FetchFailed, Snapshot
from walletview.output import format_output, mask_api_key
from walletview.providers import get_history_api, get_wallet_provider
from walletview.providers.base import validate_address

# Failure reason → exception class, for exit codes and the stderr error payload
_REASON_ERRORS: dict[FailureReason, type[WalletviewError]] = {
    FailureReason.PROVIDER_UNAVAILABLE: ProviderUnavailableError,
    FailureReason.USER_REJECTED: UserRejectedError,
    FailureReason.PROVIDER_ERROR: ProviderError,
    FailureReason.NETWORK_ERROR: NetworkError,
    FailureReason.RATE_LIMITED: RateLimitError,
    FailureReason.MALFORMED_RESPONSE: MalformedResponseError,
    FailureReason.API_ERROR: APIError,
}

BROWSE_HELP = "[n]ext  [p]revious  [g N] go to page  [s N] page size  [r]efresh  [c]onnect  [q]uit"


# ── Error handler ─────────────────────────────────────────────────────────────


def _output_error(err: WalletviewError | Exception) -> None:
    """Write error JSON to stderr."""
    if isinstance(err, WalletviewError):
        payload = err.to_dict()
        exit_code = err.exit_code
    else:
        payload = {"error": "unknown_error", "message": str(err), "details": {}}
        exit_code = 1
    sys.stderr.write(json.dumps(payload) + "\n")
    sys.stderr.flush()
    sys.exit(exit_code)


def snapshot_error(snapshot: Snapshot) -> WalletviewError | None:
    """The error a failed snapshot corresponds to, or None if nothing failed."""
    failed: ConnectionFailed | FetchFailed | None = None
    if isinstance(snapshot.connection, ConnectionFailed):
        failed = snapshot.connection
    elif isinstance(snapshot.fetch, FetchFailed):
        failed = snapshot.fetch
    if failed is None:
        return None
    error_cls = _REASON_ERRORS.get(failed.reason, WalletviewError)
    return error_cls(snapshot.message, details={"reason": failed.reason.value, "detail": failed.message})


def _build_explorer(
    config: WalletviewConfig, address: str | None, page_size: int | None
) -> tuple[WalletExplorer, list[Any]]:
    """Create an explorer plus the collaborators that need closing afterwards."""
    if address and not validate_address(address):
        raise InvalidAddressError(
            f"Invalid address: {address!r}. Must be 0x + 40 hex chars.",
            details={"address": address},
        )
    key_field = f"{config.api.source}_api_key"
    if not getattr(config.api, key_field, ""):
        raise ConfigMissingError(
            f"No API key configured for {config.api.source}. "
            f"Run: walletview config set api.{key_field} <key>",
            details={"key": f"api.{key_field}"},
        )
    api = get_history_api(config)
    provider = get_wallet_provider(config, address)
    explorer = WalletExplorer(
        provider,
        api,
        page_size=page_size or config.pagination.page_size,
        page_size_options=config.pagination.page_size_options,
    )
    return explorer, [api, provider]


async def _close_all(resources: list[Any]) -> None:
    for resource in resources:
        close = getattr(resource, "close", None)
        if close is not None:
            await close()


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    envvar="WALLETVIEW_CONFIG_PATH",
    default=None,
    help="Config file path (default: ~/.walletview/config.toml)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "table"]),
    default=None,
    help="Output format (overrides config default)",
)
@click.option(
    "--log-level",
    type=click.Choice(sorted(VALID_LOG_LEVELS), case_sensitive=False),
    default=None,
    help="Log level (overrides config)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    output_format: str | None,
    log_level: str | None,
) -> None:
    """walletview — browse a wallet's transaction history."""
    ctx.ensure_object(dict)
    config_error: WalletviewError | None = None
    try:
        config = load_config(config_path)
    except WalletviewError as e:
        # On config errors, use defaults (so config init still works)
        config = WalletviewConfig()
        config_error = e

    configure_logging(
        log_level or config.logging.level,
        colorize=config.output.color and sys.stderr.isatty(),
    )
    if config_error is not None:
        logger.warning(f"Using default config: {config_error.message}")

    ctx.obj["config"] = config
    ctx.obj["format"] = output_format or config.output.default_format
    ctx.obj["config_path"] = config_path


# ── History commands ──────────────────────────────────────────────────────────


@cli.command("history")
@click.argument("address", required=False)
@click.option("--page", "page_num", default=1, type=int, show_default=True, help="Page number (1-based)")
@click.option("--page-size", type=click.IntRange(min=1), default=None, help="Rows per page")
@click.option("--format", "fmt", type=click.Choice(["json", "table"]), default=None)
@click.pass_context
def history_command(
    ctx: click.Context,
    address: str | None,
    page_num: int,
    page_size: int | None,
    fmt: str | None,
) -> None:
    """Connect, fetch the account's history and show one page.

    ADDRESS browses a fixed account; without it the configured wallet is asked.
    Out-of-range pages are clamped to the nearest existing page.
    """
    config: WalletviewConfig = ctx.obj["config"]
    fmt = fmt or ctx.obj.get("format", "table")

    async def _run() -> Snapshot:
        explorer, resources = _build_explorer(config, address, page_size)
        try:
            await explorer.connect()
            return explorer.go_to(page_num - 1)
        finally:
            await _close_all(resources)

    try:
        snapshot = asyncio.run(_run())
    except WalletviewError as e:
        _output_error(e)
        return

    click.echo(format_output(snapshot, fmt, color=config.output.color))
    error = snapshot_error(snapshot)
    if error is not None:
        _output_error(error)


@cli.command("browse")
@click.argument("address", required=False)
@click.option("--page-size", type=click.IntRange(min=1), default=None, help="Rows per page")
@click.pass_context
def browse_command(ctx: click.Context, address: str | None, page_size: int | None) -> None:
    """Interactively page through the account's history."""
    config: WalletviewConfig = ctx.obj["config"]
    fmt = ctx.obj.get("format", "table")

    def _render(snapshot: Snapshot) -> None:
        click.echo(format_output(snapshot, fmt, color=config.output.color))

    async def _run() -> None:
        explorer, resources = _build_explorer(config, address, page_size)
        try:
            _render(await explorer.connect())
            while True:
                try:
                    raw = click.prompt(BROWSE_HELP, default="q", show_default=False)
                except click.exceptions.Abort:
                    break
                command, _, arg = raw.strip().lower().partition(" ")
                if command in ("q", "quit"):
                    break
                snapshot = await _browse_step(explorer, command, arg.strip())
                if snapshot is not None:
                    _render(snapshot)
        finally:
            await _close_all(resources)

    try:
        asyncio.run(_run())
    except WalletviewError as e:
        _output_error(e)


async def _browse_step(explorer: WalletExplorer, command: str, arg: str) -> Snapshot | None:
    """Apply one browse command. Returns the snapshot to draw, or None."""
    if command in ("n", "next"):
        return explorer.next()
    if command in ("p", "prev", "previous"):
        return explorer.previous()
    if command in ("r", "refresh"):
        return await explorer.refresh()
    if command in ("c", "connect"):
        return await explorer.connect()
    if command in ("g", "s"):
        try:
            number = int(arg)
        except ValueError:
            click.echo(f"Expected a number, got {arg!r}")
            return None
        if command == "g":
            return explorer.go_to(number - 1)
        options = explorer.pagination.page_size_options
        if options and number not in options:
            click.echo(f"Page size must be one of {list(options)}")
            return None
        return explorer.set_page_size(number)
    click.echo(f"Unknown command {command!r}")
    return None


# ── Config commands ───────────────────────────────────────────────────────────


@cli.group("config")
def config_group() -> None:
    """Manage walletview configuration."""


@config_group.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing config")
@click.pass_context
def config_init(ctx: click.Context, force: bool) -> None:
    """Initialize default config at ~/.walletview/config.toml."""
    provided = ctx.obj.get("config_path")
    config_path = Path(provided) if provided else get_default_config_path()

    if config_path.exists() and not force:
        click.echo(
            json.dumps(
                {
                    "status": "already_exists",
                    "config_path": str(config_path),
                    "hint": "Use --force to reinitialize",
                }
            )
        )
        return

    status = "initialized"
    backup = None

    if config_path.exists() and force:
        backup = str(config_path) + ".bak"
        import shutil

        shutil.copy2(config_path, backup)
        status = "reinitialized"

    config_path.parent.mkdir(parents=True, exist_ok=True)
    save_config(WalletviewConfig(), str(config_path))

    result: dict[str, Any] = {
        "status": status,
        "config_path": str(config_path),
    }
    if backup:
        result["backup"] = backup
    click.echo(json.dumps(result))


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a config value by dotted key path (e.g. api.etherscan_api_key)."""
    config_path = ctx.obj.get("config_path")
    config: WalletviewConfig = ctx.obj["config"]

    parts = key.split(".", 1)
    if len(parts) != 2:
        sys.stderr.write(
            json.dumps(
                {
                    "error": "cli_error",
                    "message": f"Key must be in form section.key, got: {key!r}",
                }
            )
            + "\n"
        )
        sys.exit(1)

    section_name, field_name = parts
    section = getattr(config, section_name, None)
    if section is None or not hasattr(section, field_name):
        sys.stderr.write(
            json.dumps(
                {
                    "error": "config_invalid",
                    "message": f"Unknown config key: {key!r}",
                }
            )
            + "\n"
        )
        sys.exit(6)

    # Type-coerce
    current = getattr(section, field_name)
    try:
        if isinstance(current, bool):
            typed_value: Any = value.lower() in ("1", "true", "yes")
        elif isinstance(current, int):
            typed_value = int(value)
        elif isinstance(current, float):
            typed_value = float(value)
        elif isinstance(current, list):
            typed_value = [int(v) for v in value.split(",") if v.strip()]
        else:
            typed_value = value
        setattr(section, field_name, typed_value)
    except (ValueError, TypeError) as e:
        sys.stderr.write(json.dumps({"error": "config_invalid", "message": str(e)}) + "\n")
        sys.exit(6)

    save_config(config, config_path)

    # Mask API keys in response
    display_value = (
        mask_api_key(str(typed_value)) if "api_key" in field_name.lower() else typed_value
    )
    click.echo(json.dumps({"status": "updated", "key": key, "value": display_value}))


@config_group.command("show")
@click.option("--format", "fmt", type=click.Choice(["json", "table"]), default=None)
@click.pass_context
def config_show(ctx: click.Context, fmt: str | None) -> None:
    """Show current configuration (API keys masked)."""
    config: WalletviewConfig = ctx.obj["config"]
    provided = ctx.obj.get("config_path")
    config_path = Path(provided) if provided else get_default_config_path()
    fmt = fmt or "json"

    result = {
        "config_path": str(config_path),
        "api": {
            "source": config.api.source,
            "etherscan_api_key": mask_api_key(config.api.etherscan_api_key),
            "alchemy_api_key": mask_api_key(config.api.alchemy_api_key),
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
            "page_size_options": config.pagination.page_size_options,
        },
        "output": {
            "default_format": config.output.default_format,
            "color": config.output.color,
        },
        "logging": {
            "level": config.logging.level,
        },
    }

    click.echo(format_output(result, fmt))


if __name__ == "__main__":
    cli()
