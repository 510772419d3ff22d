# src/assetbridge/ledger/connection.py
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Callable, Optional

from assetbridge.config import LedgerConfig
from assetbridge.errors import ConnectionResolutionFailed, DispatchCause, DispatchFailed
from assetbridge.ledger.credentials import Identity, Signer, load_identity, load_signer
from assetbridge.ledger.gateway import Contract, Gateway, connect as gateway_connect
from assetbridge.ledger.transport import channel_options, open_channel
from assetbridge.logs import log_event
from assetbridge.metrics import add_gauge

log = logging.getLogger("assetbridge.connection")


class ConnectionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"
    CLOSING = "closing"
    CLOSED = "closed"


class ConnectionManager:
    """Owns the process's single gateway/contract handle.

    Lifecycle:
      UNINITIALIZED -> CONNECTING -> READY -> CLOSING -> CLOSED
      UNINITIALIZED -> CONNECTING -> FAILED

    Shutdown is two-phase: close() first stops admitting new dispatches
    (track() refuses them), waits up to a grace period for in-flight ones,
    then releases the transport. The transport is released exactly once,
    whether by close() or by a failed connect().
    """

    def __init__(self, *, gateway_factory: Callable[..., Gateway] = gateway_connect) -> None:
        self._gateway_factory = gateway_factory
        self._state = ConnectionState.UNINITIALIZED
        self._channel = None
        self._gateway: Optional[Gateway] = None
        self._contract: Optional[Contract] = None
        self._released = False

        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def contract(self) -> Contract:
        if self._state is not ConnectionState.READY or self._contract is None:
            raise RuntimeError(f"contract handle not available in state {self._state.value}")
        return self._contract

    async def connect(
        self,
        identity: Identity,
        signer: Signer,
        channel,
        channel_name: str,
        contract_name: str,
    ) -> Contract:
        if self._state is not ConnectionState.UNINITIALIZED:
            raise RuntimeError(f"connect() called in state {self._state.value}")

        self._state = ConnectionState.CONNECTING
        self._channel = channel
        log_event(log, "ledger_connecting", channel=channel_name, contract=contract_name, msp_id=identity.msp_id)

        try:
            self._gateway = self._gateway_factory(client=channel, identity=identity, signer=signer)
            contract = self._gateway.get_network(channel_name).get_contract(contract_name)
        except Exception as e:
            self._state = ConnectionState.FAILED
            log_event(
                log,
                "ledger_connect_failed",
                level=logging.ERROR,
                channel=channel_name,
                contract=contract_name,
                error=str(e),
            )
            await self._release()
            raise ConnectionResolutionFailed(
                message=f"cannot resolve contract {contract_name!r} on channel {channel_name!r}: {e}",
                channel_name=str(channel_name or ""),
                contract_name=str(contract_name or ""),
            ) from e

        self._contract = contract
        self._state = ConnectionState.READY
        log_event(log, "ledger_ready", channel=channel_name, contract=contract_name)
        return contract

    @asynccontextmanager
    async def track(self, operation: str = "") -> AsyncIterator[Contract]:
        """Admit one dispatch against the contract handle."""
        if self._state is not ConnectionState.READY:
            closing = self._state in (ConnectionState.CLOSING, ConnectionState.CLOSED)
            raise DispatchFailed(
                message="ledger connection is shutting down" if closing else "ledger connection is not ready",
                operation=operation,
                cause=DispatchCause.SHUTTING_DOWN if closing else DispatchCause.UNAVAILABLE,
            )

        self._in_flight += 1
        self._idle.clear()
        add_gauge("dispatch_in_flight", 1)
        try:
            yield self.contract
        finally:
            self._in_flight -= 1
            add_gauge("dispatch_in_flight", -1)
            if self._in_flight == 0:
                self._idle.set()

    async def close(self, grace_s: float = 0.0) -> None:
        if self._state in (ConnectionState.CLOSING, ConnectionState.CLOSED, ConnectionState.FAILED):
            return

        if self._state is ConnectionState.READY:
            self._state = ConnectionState.CLOSING
            log_event(log, "ledger_closing", in_flight=self._in_flight, grace_s=grace_s)
            if self._in_flight and grace_s > 0:
                try:
                    await asyncio.wait_for(self._idle.wait(), timeout=grace_s)
                except asyncio.TimeoutError:
                    log_event(log, "ledger_drain_timeout", level=logging.WARNING, in_flight=self._in_flight)

        await self._release()
        self._contract = None
        self._state = ConnectionState.CLOSED
        log_event(log, "ledger_closed")

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._gateway is not None:
            await self._gateway.close()
        elif self._channel is not None:
            await self._channel.close()


async def bootstrap(cfg: LedgerConfig, *, manager: Optional[ConnectionManager] = None) -> ConnectionManager:
    """Load credentials, open the peer channel and resolve the contract.

    Raises CredentialUnavailable, TransportUnavailable or
    ConnectionResolutionFailed; a channel opened before the failure is
    already closed when the error propagates.
    """
    identity = load_identity(cfg.cert_path, cfg.msp_id)
    signer = load_signer(cfg.key_directory_path, selection=cfg.key_selection)
    channel = open_channel(
        cfg.peer_endpoint,
        cfg.tls_cert_path,
        cfg.peer_host_alias,
        options=channel_options(
            "",
            keepalive_time_ms=cfg.keepalive_time_ms,
            keepalive_timeout_ms=cfg.keepalive_timeout_ms,
        ),
    )

    mgr = manager or ConnectionManager()
    await mgr.connect(identity, signer, channel, cfg.channel_name, cfg.contract_name)
    return mgr
