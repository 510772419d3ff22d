from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from assetbridge.api.errors import install_error_handlers
from assetbridge.api.request_logging import RequestLogMiddleware
from assetbridge.api.routes_assets import router as assets_router
from assetbridge.api.routes_ops import router as ops_router
from assetbridge.assets import AssetService
from assetbridge.config import BridgeConfig, DispatchConfig, load_config
from assetbridge.ledger.connection import ConnectionManager
from assetbridge.ledger.dispatcher import TransactionDispatcher


def build_asset_service(connection: ConnectionManager, cfg: DispatchConfig) -> AssetService:
    """Asset operations bound to the process's one contract handle."""
    dispatcher = TransactionDispatcher(
        admit=connection.track,
        evaluate_timeout_s=cfg.evaluate_timeout_s,
        submit_timeout_s=cfg.submit_timeout_s,
    )
    return AssetService(dispatcher)


def create_app(
    *,
    cfg: Optional[BridgeConfig] = None,
    connection: Optional[ConnectionManager] = None,
    assets: Optional[AssetService] = None,
) -> FastAPI:
    """Create the FastAPI application.

    The ledger handle is injected, never created here:
      - connection: a READY ConnectionManager; asset routes dispatch through it
      - assets: an AssetService over any contract (tests pass a fake ledger)
      - neither: routes answer 503 not_ready

    API docs are disabled when BRIDGE_MODE=prod.
    """
    cfg = cfg or load_config()

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        yield
        # Runs after the server stopped taking requests and drained its own.
        conn = getattr(app.state, "connection", None)
        if conn is not None:
            await conn.close(grace_s=cfg.api.shutdown_grace_s)

    if cfg.api.mode == "prod":
        app = FastAPI(
            title="Asset Bridge API",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=_lifespan,
        )
    else:
        app = FastAPI(title="Asset Bridge API", lifespan=_lifespan)

    if assets is None and connection is not None:
        assets = build_asset_service(connection, cfg.dispatch)

    app.state.cfg = cfg
    app.state.connection = connection
    app.state.assets = assets

    app.add_middleware(RequestLogMiddleware)
    install_error_handlers(app)

    app.include_router(assets_router, prefix="/api", tags=["assets"])
    app.include_router(ops_router, tags=["ops"])

    return app
