# src/assetbridge/api/__init__.py
