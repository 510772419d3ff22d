# src/assetbridge/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT_CRYPTO_PATH = (
    Path("..") / "fabric-samples" / "test-network" / "organizations" / "peerOrganizations" / "org1.example.com"
)

KEY_SELECTIONS = ("unique", "first")


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    channel_name: str
    contract_name: str
    msp_id: str
    peer_endpoint: str
    peer_host_alias: str

    crypto_path: str
    cert_path: str
    key_directory_path: str
    tls_cert_path: str

    # "unique" requires exactly one key in the keystore, "first" takes the first by name.
    key_selection: str

    keepalive_time_ms: int
    keepalive_timeout_ms: int


@dataclass(frozen=True, slots=True)
class DispatchConfig:
    evaluate_timeout_s: float
    submit_timeout_s: float


@dataclass(frozen=True, slots=True)
class ApiConfig:
    mode: str  # "prod" | "dev"
    host: str
    port: int
    shutdown_grace_s: float
    metrics_enabled: bool


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    ledger: LedgerConfig
    dispatch: DispatchConfig
    api: ApiConfig


def _env_str(name: str, default: str) -> str:
    v = os.environ.get(name)
    if v is None or not v.strip():
        return default
    return v.strip()


def _env_bool(name: str, default: bool) -> bool:
    v = os.environ.get(name)
    if v is None:
        return bool(default)
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return int(default)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, str(default)))
    except ValueError:
        return float(default)


def ledger_config_from_env() -> LedgerConfig:
    """Ledger identity and peer settings.

    The credential paths default to the Fabric test-network layout for
    User1@org1 below CRYPTO_PATH; each can be overridden on its own.
    """
    crypto_path = Path(_env_str("CRYPTO_PATH", str(_DEFAULT_CRYPTO_PATH))).expanduser().resolve()
    user_msp = crypto_path / "users" / "User1@org1.example.com" / "msp"

    key_dir = _env_str("KEY_DIRECTORY_PATH", str(user_msp / "keystore"))
    cert = _env_str("CERT_PATH", str(user_msp / "signcerts" / "User1@org1.example.com-cert.pem"))
    tls_cert = _env_str("TLS_CERT_PATH", str(crypto_path / "peers" / "peer0.org1.example.com" / "tls" / "ca.crt"))

    selection = _env_str("BRIDGE_KEY_SELECTION", "unique").lower()
    if selection not in KEY_SELECTIONS:
        raise ValueError(f"BRIDGE_KEY_SELECTION must be one of {KEY_SELECTIONS}, got {selection!r}")

    return LedgerConfig(
        channel_name=_env_str("CHANNEL_NAME", "mychannel"),
        contract_name=_env_str("CHAINCODE_NAME", "asset"),
        msp_id=_env_str("MSP_ID", "Org1MSP"),
        peer_endpoint=_env_str("PEER_ENDPOINT", "localhost:7051"),
        peer_host_alias=_env_str("PEER_HOST_ALIAS", "peer0.org1.example.com"),
        crypto_path=str(crypto_path),
        cert_path=cert,
        key_directory_path=key_dir,
        tls_cert_path=tls_cert,
        key_selection=selection,
        keepalive_time_ms=max(1_000, _env_int("BRIDGE_GRPC_KEEPALIVE_TIME_MS", 120_000)),
        keepalive_timeout_ms=max(1_000, _env_int("BRIDGE_GRPC_KEEPALIVE_TIMEOUT_MS", 20_000)),
    )


def dispatch_config_from_env() -> DispatchConfig:
    evaluate_timeout = _env_float("BRIDGE_CALL_TIMEOUT_S", 30.0)
    submit_timeout = _env_float("BRIDGE_SUBMIT_TIMEOUT_S", 60.0)
    return DispatchConfig(
        evaluate_timeout_s=max(0.1, evaluate_timeout),
        submit_timeout_s=max(0.1, submit_timeout),
    )


def api_config_from_env() -> ApiConfig:
    return ApiConfig(
        mode=_env_str("BRIDGE_MODE", "prod").lower(),
        host=_env_str("BRIDGE_API_HOST", "127.0.0.1"),
        port=_env_int("BRIDGE_API_PORT", 3000),
        shutdown_grace_s=max(0.0, _env_float("BRIDGE_SHUTDOWN_GRACE_S", 10.0)),
        metrics_enabled=_env_bool("BRIDGE_METRICS_ENABLED", False),
    )


def load_config() -> BridgeConfig:
    return BridgeConfig(
        ledger=ledger_config_from_env(),
        dispatch=dispatch_config_from_env(),
        api=api_config_from_env(),
    )
