# src/assetbridge/api/__main__.py
"""Process entry point.

  1. load .env, configure logging, read config
  2. bootstrap the ledger connection (credentials, TLS channel, contract)
  3. serve HTTP on the same event loop as the gRPC channel
  4. on SIGINT/SIGTERM: uvicorn stops accepting and drains open requests,
     then the app lifespan closes the connection (bounded drain, release)

Exit codes: 0 after a graceful shutdown, 1 when startup fails.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Awaitable, Callable, Optional

import uvicorn

from assetbridge.api.app import create_app
from assetbridge.config import BridgeConfig, LedgerConfig, load_config
from assetbridge.env import load_dotenv_if_present
from assetbridge.errors import BridgeError
from assetbridge.ledger.connection import ConnectionManager, bootstrap
from assetbridge.logs import configure_logging, log_event

EXIT_OK = 0
EXIT_STARTUP_FAILED = 1

log = logging.getLogger("assetbridge.main")

Bootstrap = Callable[[LedgerConfig], Awaitable[ConnectionManager]]


async def start_connection(cfg: BridgeConfig, *, bootstrap_fn: Bootstrap = bootstrap) -> Optional[ConnectionManager]:
    """Bootstrap the ledger connection; None (after logging) when startup fails."""
    log_event(
        log,
        "bridge_starting",
        peer=cfg.ledger.peer_endpoint,
        host_alias=cfg.ledger.peer_host_alias,
        channel=cfg.ledger.channel_name,
        contract=cfg.ledger.contract_name,
        msp_id=cfg.ledger.msp_id,
    )
    try:
        return await bootstrap_fn(cfg.ledger)
    except BridgeError as e:
        log_event(
            log,
            "bridge_startup_failed",
            level=logging.ERROR,
            code=e.code,
            error=e.message,
            details=e.details(),
        )
        return None


async def serve(cfg: BridgeConfig, *, bootstrap_fn: Bootstrap = bootstrap) -> int:
    connection = await start_connection(cfg, bootstrap_fn=bootstrap_fn)
    if connection is None:
        return EXIT_STARTUP_FAILED

    app = create_app(cfg=cfg, connection=connection)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=cfg.api.host,
            port=cfg.api.port,
            log_level="info",
            lifespan="on",
            timeout_graceful_shutdown=int(cfg.api.shutdown_grace_s) or None,
        )
    )
    try:
        await server.serve()
    finally:
        await connection.close(grace_s=cfg.api.shutdown_grace_s)
    log_event(log, "bridge_stopped")
    return EXIT_OK


def run(cfg: Optional[BridgeConfig] = None) -> int:
    if cfg is None:
        try:
            cfg = load_config()
        except ValueError as e:
            log_event(log, "bridge_config_invalid", level=logging.ERROR, error=str(e))
            return EXIT_STARTUP_FAILED

    try:
        return asyncio.run(serve(cfg))
    except KeyboardInterrupt:
        # uvicorn re-raises the captured SIGINT once it has shut down cleanly.
        return EXIT_OK


def main() -> None:
    # Load .env early so configuration exists before anything reads it.
    load_dotenv_if_present()
    configure_logging()
    sys.exit(run())


if __name__ == "__main__":
    main()
