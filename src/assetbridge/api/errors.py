from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from assetbridge.errors import DispatchCause, DispatchFailed, ResultDecodeError

_DISPATCH_STATUS = {
    DispatchCause.TIMEOUT: 504,
    DispatchCause.UNAVAILABLE: 503,
    DispatchCause.SHUTTING_DOWN: 503,
}


@dataclass
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def not_ready(message: str = "ledger connection not attached") -> "ApiError":
        return ApiError(503, "not_ready", message, {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    @staticmethod
    def from_dispatch(err: DispatchFailed, *, summary: str = "") -> "ApiError":
        status = _DISPATCH_STATUS.get(err.cause, 500)
        message = f"{summary}: {err.message}" if summary else err.message
        return ApiError(status, err.code, message, err.details())


def error_body(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"ok": False, "error": {"code": code, "message": message, "details": details or {}}}


async def _api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message, exc.details))


async def _dispatch_failed_handler(_request: Request, exc: DispatchFailed) -> JSONResponse:
    return await _api_error_handler(_request, ApiError.from_dispatch(exc))


async def _result_decode_handler(_request: Request, exc: ResultDecodeError) -> JSONResponse:
    return await _api_error_handler(_request, ApiError.internal(exc.code, exc.message))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(DispatchFailed, _dispatch_failed_handler)
    app.add_exception_handler(ResultDecodeError, _result_decode_handler)
