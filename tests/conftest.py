from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "assetbridge" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)


_BRIDGE_ENV = (
    "CHANNEL_NAME",
    "CHAINCODE_NAME",
    "MSP_ID",
    "CRYPTO_PATH",
    "KEY_DIRECTORY_PATH",
    "CERT_PATH",
    "TLS_CERT_PATH",
    "PEER_ENDPOINT",
    "PEER_HOST_ALIAS",
    "BRIDGE_KEY_SELECTION",
    "BRIDGE_CALL_TIMEOUT_S",
    "BRIDGE_SUBMIT_TIMEOUT_S",
    "BRIDGE_SHUTDOWN_GRACE_S",
    "BRIDGE_MODE",
    "BRIDGE_METRICS_ENABLED",
    "BRIDGE_API_HOST",
    "BRIDGE_API_PORT",
    "BRIDGE_LOG_REQUESTS",
    "BRIDGE_DOTENV_PATH",
)


@pytest.fixture(autouse=True)
def _clean_bridge_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _BRIDGE_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BRIDGE_MODE", "dev")


@pytest.fixture
def test_msp(tmp_path: Path):
    from assetbridge.testing.credtools import write_test_msp

    return write_test_msp(tmp_path / "org1")
