# src/assetbridge/testing/fake_ledger.py
"""In-memory stand-in for the asset contract handle.

TEST ONLY. Mirrors the deployed asset chaincode closely enough to check the
bridge end to end without a ledger network: same function names, same
argument order, same JSON shapes, same rejections. Failures are raised as
grpc.aio.AioRpcError the way the gateway client surfaces them.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import grpc

Json = Dict[str, Any]

SEED_ASSETS: List[Json] = [
    {"ID": "asset1", "Type": "Car", "Price": 10000, "Owner": "Tomoko"},
    {"ID": "asset2", "Type": "House", "Price": 250000, "Owner": "Brad"},
    {"ID": "asset3", "Type": "Boat", "Price": 50000, "Owner": "Jin Soo"},
]


def rpc_error(code: grpc.StatusCode, details: str) -> grpc.aio.AioRpcError:
    return grpc.aio.AioRpcError(code, grpc.aio.Metadata(), grpc.aio.Metadata(), details=details)


def _dumps(obj: Any) -> bytes:
    return json.dumps(obj, separators=(",", ":")).encode("utf-8")


def _parse_int(raw: str, name: str) -> int:
    try:
        return int(raw, 10)
    except ValueError:
        raise rpc_error(grpc.StatusCode.ABORTED, f"error converting value for {name}: {raw!r}") from None


class FakeContract:
    def __init__(self, *, delay_s: float = 0.0) -> None:
        self.delay_s = float(delay_s)
        self.calls: List[Tuple[str, str, Tuple[str, ...]]] = []
        self._world: Dict[str, Json] = {}
        self._history: Dict[str, List[Json]] = {}
        self._fail_next: Optional[grpc.aio.AioRpcError] = None

    # --- test controls ---

    def fail_next(self, code: grpc.StatusCode = grpc.StatusCode.UNAVAILABLE, details: str = "peer down") -> None:
        self._fail_next = rpc_error(code, details)

    def world_state(self) -> Dict[str, Json]:
        return {k: dict(v) for k, v in self._world.items()}

    # --- contract surface ---

    async def evaluate_transaction(self, name: str, *args: str) -> bytes:
        self.calls.append(("evaluate", name, tuple(args)))
        await self._before_call()
        fn = {
            "GetAllAssets": self._get_all_assets,
            "SearchAssetByID": self._read_asset,
            "ReadAsset": self._read_asset,
            "GetAssetHistory": self._get_asset_history,
            "AssetExists": self._asset_exists,
        }.get(name)
        if fn is None:
            raise rpc_error(grpc.StatusCode.UNKNOWN, f"function {name} not found in contract")
        return fn(*args)

    async def submit_transaction(self, name: str, *args: str) -> bytes:
        self.calls.append(("submit", name, tuple(args)))
        await self._before_call()
        fn = {
            "InitLedger": self._init_ledger,
            "CreateAsset": self._create_asset,
            "TransferAsset": self._transfer_asset,
            "UpdateAssetPrice": self._update_asset_price,
        }.get(name)
        if fn is None:
            raise rpc_error(grpc.StatusCode.ABORTED, f"function {name} not found in contract")
        fn(*args)
        return b""

    async def _before_call(self) -> None:
        if self.delay_s > 0:
            await asyncio.sleep(self.delay_s)
        err, self._fail_next = self._fail_next, None
        if err is not None:
            raise err

    # --- chaincode semantics ---

    def _put(self, asset: Json) -> None:
        self._world[asset["ID"]] = dict(asset)
        self._history.setdefault(asset["ID"], []).append(
            {
                "record": {"Price": asset["Price"], "Owner": asset["Owner"]},
                "txId": uuid.uuid4().hex,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "isDelete": False,
            }
        )

    def _require(self, asset_id: str) -> Json:
        asset = self._world.get(asset_id)
        if asset is None:
            raise rpc_error(grpc.StatusCode.UNKNOWN, f"the asset {asset_id} does not exist")
        return dict(asset)

    def _init_ledger(self) -> None:
        for asset in SEED_ASSETS:
            self._put(asset)

    def _create_asset(self, asset_id: str, asset_type: str, price: str, owner: str) -> None:
        if asset_id in self._world:
            raise rpc_error(grpc.StatusCode.ABORTED, f"the asset {asset_id} already exists")
        self._put({"ID": asset_id, "Type": asset_type, "Price": _parse_int(price, "price"), "Owner": owner})

    def _read_asset(self, asset_id: str) -> bytes:
        return _dumps(self._require(asset_id))

    def _asset_exists(self, asset_id: str) -> bytes:
        return _dumps(asset_id in self._world)

    def _update_asset_price(self, asset_id: str, new_price: str) -> None:
        asset = self._require(asset_id)
        price = _parse_int(new_price, "newPrice")
        if asset["Price"] == price:
            raise rpc_error(grpc.StatusCode.ABORTED, f"price is already {price}, no update performed")
        asset["Price"] = price
        self._put(asset)

    def _transfer_asset(self, asset_id: str, new_owner: str) -> None:
        asset = self._require(asset_id)
        if asset["Owner"] == new_owner:
            raise rpc_error(grpc.StatusCode.ABORTED, f"asset is already owned by {new_owner}, no transfer performed")
        asset["Owner"] = new_owner
        self._put(asset)

    def _get_all_assets(self) -> bytes:
        if not self._world:
            return b""
        return _dumps([self._world[k] for k in sorted(self._world)])

    def _get_asset_history(self, asset_id: str) -> bytes:
        entries = self._history.get(asset_id)
        if not entries:
            return b""
        return _dumps(list(reversed(entries)))
