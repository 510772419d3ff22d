# src/assetbridge/__init__.py
"""assetbridge: HTTP bridge to a permissioned ledger network's asset contract."""

__version__ = "0.1.0"
