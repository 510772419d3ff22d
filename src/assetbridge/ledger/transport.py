# src/assetbridge/ledger/transport.py
"""TLS gRPC channel to the gateway peer.

The peer's certificate is issued for its in-network host name (for example
peer0.org1.example.com) while the process usually reaches it through a
forwarded address (localhost:7051). Certificate host-name verification is
therefore pinned to the configured host alias instead of the dial target.

The channel is lazy: creating it performs no I/O beyond reading the root
certificate. Unreachable peers show up on the first call.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import grpc

from assetbridge.errors import TransportUnavailable

ChannelOption = Tuple[str, object]


def channel_options(
    host_alias: str,
    *,
    keepalive_time_ms: Optional[int] = None,
    keepalive_timeout_ms: Optional[int] = None,
    extra: Iterable[ChannelOption] = (),
) -> List[ChannelOption]:
    opts: List[ChannelOption] = []
    alias = str(host_alias or "").strip()
    if alias:
        opts.append(("grpc.ssl_target_name_override", alias))
        opts.append(("grpc.default_authority", alias))
    if keepalive_time_ms:
        opts.append(("grpc.keepalive_time_ms", int(keepalive_time_ms)))
    if keepalive_timeout_ms:
        opts.append(("grpc.keepalive_timeout_ms", int(keepalive_timeout_ms)))
    opts.extend(extra)
    return opts


def read_root_cert(tls_root_cert_path: str | os.PathLike[str], *, endpoint: str = "") -> bytes:
    path = Path(tls_root_cert_path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise TransportUnavailable(
            message=f"cannot read TLS root certificate: {e.strerror or e}", path=str(path), endpoint=endpoint
        ) from e
    if not data.strip():
        raise TransportUnavailable(message="TLS root certificate is empty", path=str(path), endpoint=endpoint)
    return data


def open_channel(
    peer_endpoint: str,
    tls_root_cert_path: str | os.PathLike[str],
    host_alias: str,
    *,
    options: Iterable[ChannelOption] = (),
) -> grpc.aio.Channel:
    endpoint = str(peer_endpoint or "").strip()
    if not endpoint:
        raise TransportUnavailable(message="peer endpoint is empty", path=str(tls_root_cert_path))

    root_cert = read_root_cert(tls_root_cert_path, endpoint=endpoint)
    credentials = grpc.ssl_channel_credentials(root_certificates=root_cert)

    opts = channel_options(host_alias)
    opts.extend(options)
    return grpc.aio.secure_channel(endpoint, credentials, options=opts)
