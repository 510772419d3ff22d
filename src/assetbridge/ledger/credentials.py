# src/assetbridge/ledger/credentials.py
"""Ledger identity and signing key loading.

The identity is the enrolled user's PEM certificate plus the MSP id of its
organization. The signer wraps the matching private key from the MSP
keystore directory; it is the only object in the process that touches key
material and it never exposes it through repr/str.

Supported keys:
  - ECDSA P-256 / P-384: SHA-256 digest, DER signature normalized to low-S
    (peers reject high-S signatures)
  - Ed25519: signs the message directly
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature, encode_dss_signature

from assetbridge.errors import CredentialUnavailable
from assetbridge.ledger import protos

_CURVE_ORDERS = {
    "secp256r1": 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551,
    "secp384r1": int(
        "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFC7634D81F4372DDF581A0DB248B0A77AECEC196ACCC52973",
        16,
    ),
}


@dataclass(frozen=True, slots=True)
class Identity:
    msp_id: str
    credentials: bytes

    def serialize(self) -> bytes:
        """SerializedIdentity bytes (mspid + certificate) used as the transaction creator."""
        return protos.SerializedIdentity(mspid=self.msp_id, id_bytes=self.credentials).SerializeToString()


@dataclass(frozen=True)
class Signer:
    algorithm: str
    _sign: Callable[[bytes], bytes] = field(repr=False, compare=False)

    def __call__(self, message: bytes) -> bytes:
        return self._sign(bytes(message))


def _read_file(path: Path, what: str) -> bytes:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise CredentialUnavailable(message=f"cannot read {what}: {e.strerror or e}", path=str(path)) from e
    if not data.strip():
        raise CredentialUnavailable(message=f"{what} is empty", path=str(path))
    return data


def load_identity(cert_path: str | os.PathLike[str], msp_id: str) -> Identity:
    path = Path(cert_path)
    data = _read_file(path, "certificate")
    try:
        x509.load_pem_x509_certificate(data)
    except ValueError as e:
        raise CredentialUnavailable(message="certificate is not a PEM X.509 certificate", path=str(path)) from e

    msp = str(msp_id or "").strip()
    if not msp:
        raise CredentialUnavailable(message="msp id is empty", path=str(path))
    return Identity(msp_id=msp, credentials=data)


def keystore_candidates(keystore_dir: str | os.PathLike[str]) -> List[Path]:
    """Regular, non-hidden files in the keystore, sorted by name."""
    root = Path(keystore_dir)
    try:
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise CredentialUnavailable(message=f"cannot list keystore: {e.strerror or e}", path=str(root)) from e
    return [p for p in entries if p.is_file() and not p.name.startswith(".")]


def select_key_file(keystore_dir: str | os.PathLike[str], *, selection: str = "unique") -> Path:
    if selection not in {"unique", "first"}:
        raise ValueError(f"unknown key selection: {selection!r}")

    candidates = keystore_candidates(keystore_dir)
    if not candidates:
        raise CredentialUnavailable(message="keystore is empty", path=str(keystore_dir))
    if selection == "unique" and len(candidates) != 1:
        raise CredentialUnavailable(
            message=f"keystore must hold exactly one key, found {len(candidates)}",
            path=str(keystore_dir),
        )
    return candidates[0]


def _ecdsa_signer(key: ec.EllipticCurvePrivateKey) -> Signer:
    order = _CURVE_ORDERS[key.curve.name]
    half = order // 2

    def sign(message: bytes) -> bytes:
        r, s = decode_dss_signature(key.sign(message, ec.ECDSA(hashes.SHA256())))
        if s > half:
            s = order - s
        return encode_dss_signature(r, s)

    return Signer(algorithm=f"ecdsa-{key.curve.name}-sha256", _sign=sign)


def _ed25519_signer(key: Ed25519PrivateKey) -> Signer:
    return Signer(algorithm="ed25519", _sign=key.sign)


def load_signer(keystore_dir: str | os.PathLike[str], *, selection: str = "unique") -> Signer:
    path = select_key_file(keystore_dir, selection=selection)
    data = _read_file(path, "private key")
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CredentialUnavailable(message="private key is malformed or encrypted", path=str(path)) from e

    if isinstance(key, ec.EllipticCurvePrivateKey) and key.curve.name in _CURVE_ORDERS:
        return _ecdsa_signer(key)
    if isinstance(key, Ed25519PrivateKey):
        return _ed25519_signer(key)
    raise CredentialUnavailable(message=f"unsupported key type {type(key).__name__}", path=str(path))
