# src/assetbridge/ledger/dispatcher.py
"""Evaluate/submit dispatch against the shared contract handle.

evaluate  read-only query on one peer; never ordered, never committed.
          Must not be used for anything with a side effect.
submit    endorse + order + commit; blocks the calling task until the
          commit status is known.

Every call is bounded by a timeout and every failure leaves here as
DispatchFailed(operation, cause). Nothing is retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, AsyncContextManager, Callable, Optional, Sequence

import grpc

from assetbridge.errors import BridgeError, CommitError, DispatchCause, DispatchFailed, ResultDecodeError
from assetbridge.logs import log_event
from assetbridge.metrics import dispatch_metric, inc_counter

log = logging.getLogger("assetbridge.dispatch")


class Mode(str, Enum):
    EVALUATE = "evaluate"
    SUBMIT = "submit"


def decode_result(data: bytes, empty: Any = None) -> Any:
    """Decode a UTF-8 JSON result; no bytes at all decode to `empty`."""
    if not data:
        return empty
    try:
        text = bytes(data).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ResultDecodeError(message=f"result is not utf-8: {e}") from e
    if not text.strip():
        return empty
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ResultDecodeError(message=f"result is not json: {e}") from e


def encode_price(value: Any) -> str:
    """Canonical decimal string for an integral price ("100", not "100.0")."""
    if isinstance(value, bool):
        raise ValueError("price must be a number, not a boolean")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"price must be integral, got {value!r}")
        return str(int(value))
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"price is not a number: {value!r}") from e
    if not d.is_finite() or d != d.to_integral_value():
        raise ValueError(f"price must be integral, got {value!r}")
    return str(int(d))


def _classify(exc: BaseException) -> DispatchCause:
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return DispatchCause.TIMEOUT
    if isinstance(exc, CommitError):
        return DispatchCause.COMMIT_FAILED
    if isinstance(exc, grpc.aio.AioRpcError):
        code = exc.code()
        if code == grpc.StatusCode.DEADLINE_EXCEEDED:
            return DispatchCause.TIMEOUT
        if code == grpc.StatusCode.UNAVAILABLE:
            return DispatchCause.UNAVAILABLE
        return DispatchCause.REJECTED
    return DispatchCause.INTERNAL


def _describe(exc: BaseException) -> str:
    if isinstance(exc, grpc.aio.AioRpcError):
        return f"{exc.code().name}: {exc.details() or ''}".strip()
    if isinstance(exc, BridgeError):
        return exc.message
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return "ledger call timed out"
    return str(exc) or type(exc).__name__


class TransactionDispatcher:
    """Routes named operations to the contract handle.

    `contract` is anything with async evaluate_transaction/submit_transaction
    methods (the gateway Contract, or a test double). `admit`, when given, is
    an async context manager factory used to register each call with the
    connection manager so shutdown can drain it.
    """

    def __init__(
        self,
        contract: Any = None,
        *,
        admit: Optional[Callable[[str], AsyncContextManager[Any]]] = None,
        evaluate_timeout_s: float = 30.0,
        submit_timeout_s: float = 60.0,
    ) -> None:
        if contract is None and admit is None:
            raise ValueError("dispatcher needs a contract or an admit() context")
        self._contract = contract
        self._admit = admit
        self._timeouts = {Mode.EVALUATE: float(evaluate_timeout_s), Mode.SUBMIT: float(submit_timeout_s)}

    async def evaluate(self, operation: str, *args: str) -> bytes:
        return await self.dispatch(Mode.EVALUATE, operation, args)

    async def submit(self, operation: str, *args: str) -> bytes:
        return await self.dispatch(Mode.SUBMIT, operation, args)

    def reject(self, operation: str, message: str, *, mode: Optional[Mode] = None) -> DispatchFailed:
        """Record a request refused before reaching the ledger; the caller raises the result."""
        self._record_failure(mode, operation, DispatchCause.INVALID_ARGUMENT, message)
        return DispatchFailed(message=message, operation=operation, cause=DispatchCause.INVALID_ARGUMENT)

    async def dispatch(self, mode: Mode, operation: str, args: Sequence[str]) -> bytes:
        bad = [i for i, a in enumerate(args) if not isinstance(a, str)]
        if bad:
            raise self.reject(operation, f"arguments must be strings (positions {bad})", mode=mode)

        log_event(log, "dispatch_start", mode=mode.value, operation=operation, argc=len(args))
        try:
            if self._admit is not None:
                async with self._admit(operation) as contract:
                    result = await self._call(contract, mode, operation, args)
            else:
                result = await self._call(self._contract, mode, operation, args)
        except DispatchFailed as e:
            self._record_failure(mode, operation, e.cause, e.message)
            raise
        except Exception as e:
            cause = _classify(e)
            message = _describe(e)
            self._record_failure(mode, operation, cause, message)
            raise DispatchFailed(message=message, operation=operation, cause=cause) from e

        inc_counter(dispatch_metric(operation, mode.value, "ok"))
        log_event(log, "dispatch_ok", mode=mode.value, operation=operation, result_bytes=len(result))
        return result

    async def _call(self, contract: Any, mode: Mode, operation: str, args: Sequence[str]) -> bytes:
        if mode is Mode.EVALUATE:
            call = contract.evaluate_transaction(operation, *args)
        else:
            call = contract.submit_transaction(operation, *args)
        return bytes(await asyncio.wait_for(call, timeout=self._timeouts[mode]))

    def _record_failure(self, mode: Optional[Mode], operation: str, cause: DispatchCause, message: str) -> None:
        mode_label = mode.value if mode is not None else "unknown"
        inc_counter(dispatch_metric(operation, mode_label, cause.value))
        log_event(
            log,
            "dispatch_failed",
            level=logging.ERROR,
            mode=mode_label,
            operation=operation,
            cause=cause.value,
            error=message,
        )
