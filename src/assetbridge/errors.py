# src/assetbridge/errors.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict


class DispatchCause(str, Enum):
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    REJECTED = "rejected"
    COMMIT_FAILED = "commit_failed"
    INVALID_ARGUMENT = "invalid_argument"
    SHUTTING_DOWN = "shutting_down"
    INTERNAL = "internal"


@dataclass
class BridgeError(Exception):
    """Base type for every error the bridge raises on purpose."""

    code: ClassVar[str] = "bridge_error"

    message: str

    def __str__(self) -> str:
        return f"{self.code}:{self.message}"

    def details(self) -> Dict[str, Any]:
        return {}


# --- startup (fatal) ---


@dataclass
class CredentialUnavailable(BridgeError):
    code: ClassVar[str] = "credential_unavailable"

    path: str = ""

    def details(self) -> Dict[str, Any]:
        return {"path": self.path}


@dataclass
class TransportUnavailable(BridgeError):
    code: ClassVar[str] = "transport_unavailable"

    path: str = ""
    endpoint: str = ""

    def details(self) -> Dict[str, Any]:
        return {"path": self.path, "endpoint": self.endpoint}


@dataclass
class ConnectionResolutionFailed(BridgeError):
    code: ClassVar[str] = "connection_resolution_failed"

    channel_name: str = ""
    contract_name: str = ""

    def details(self) -> Dict[str, Any]:
        return {"channel": self.channel_name, "contract": self.contract_name}


# --- runtime (per request) ---


@dataclass
class DispatchFailed(BridgeError):
    code: ClassVar[str] = "dispatch_failed"

    operation: str = ""
    cause: DispatchCause = DispatchCause.INTERNAL

    def __str__(self) -> str:
        return f"{self.code}:{self.operation}:{self.cause.value}:{self.message}"

    def details(self) -> Dict[str, Any]:
        return {"operation": self.operation, "cause": self.cause.value}


@dataclass
class CommitError(BridgeError):
    """A submitted transaction was ordered but not committed as valid."""

    code: ClassVar[str] = "commit_failed"

    tx_id: str = ""
    validation_code: int = 0

    def details(self) -> Dict[str, Any]:
        return {"tx_id": self.tx_id, "validation_code": self.validation_code}


@dataclass
class ResultDecodeError(BridgeError):
    code: ClassVar[str] = "invalid_result"
