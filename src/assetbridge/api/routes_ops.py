from __future__ import annotations

import time

from fastapi import APIRouter, Request, Response

from assetbridge.metrics import format_prometheus

router = APIRouter()


def _health_payload(request: Request) -> dict[str, object]:
    # health must never crash; it only reports what is attached
    manager = getattr(request.app.state, "connection", None)
    state = getattr(getattr(manager, "state", None), "value", None)
    in_flight = getattr(manager, "in_flight", None)
    cfg = getattr(request.app.state, "cfg", None)

    return {
        "ok": state == "ready" or (manager is None and getattr(request.app.state, "assets", None) is not None),
        "service": "assetbridge",
        "ts_ms": int(time.time() * 1000),
        "ledger": {
            "state": state,
            "in_flight": in_flight,
            "channel": cfg.ledger.channel_name if cfg is not None else None,
            "contract": cfg.ledger.contract_name if cfg is not None else None,
        },
    }


@router.get("/health")
def health(request: Request) -> dict[str, object]:
    return _health_payload(request)


@router.get("/v1/metrics")
def metrics(request: Request) -> Response:
    """Prometheus-style metrics.

    Disabled by default. Enable with:
      BRIDGE_METRICS_ENABLED=1
    """
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None or not cfg.api.metrics_enabled:
        return Response(status_code=404, content="not_found\n", media_type="text/plain")
    return Response(content=format_prometheus(), media_type="text/plain")
