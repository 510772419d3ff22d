# src/assetbridge/ledger/__init__.py
"""
Ledger side of the bridge.

  - credentials: identity certificate + signing key from the MSP directory
  - transport: TLS gRPC channel to the gateway peer
  - protos / proposal: gateway wire messages, proposal building and signing
  - gateway: Gateway -> Network -> Contract handles
  - connection: the process-wide handle lifecycle and startup bootstrap
  - dispatcher: evaluate/submit with timeouts and structured failures

Request handling should depend on dispatcher (and connection for wiring);
nothing above this package talks gRPC.
"""
