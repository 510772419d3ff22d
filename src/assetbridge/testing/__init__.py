# src/assetbridge/testing/__init__.py
