# src/assetbridge/assets.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from assetbridge.ledger.dispatcher import Mode, TransactionDispatcher, decode_result, encode_price

Json = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class Operation:
    name: str
    mode: Mode
    params: tuple[str, ...]


# Contract functions exposed by the bridge, arguments in chaincode order.
OPERATIONS: Dict[str, Operation] = {
    op.name: op
    for op in (
        Operation("GetAllAssets", Mode.EVALUATE, ()),
        Operation("SearchAssetByID", Mode.EVALUATE, ("assetId",)),
        Operation("GetAssetHistory", Mode.EVALUATE, ("assetId",)),
        Operation("AssetExists", Mode.EVALUATE, ("assetId",)),
        Operation("CreateAsset", Mode.SUBMIT, ("id", "type", "price", "owner")),
        Operation("TransferAsset", Mode.SUBMIT, ("assetId", "newOwner")),
        Operation("UpdateAssetPrice", Mode.SUBMIT, ("assetId", "newPrice")),
        Operation("InitLedger", Mode.SUBMIT, ()),
    )
}


class AssetService:
    """Asset contract operations on top of one dispatcher."""

    def __init__(self, dispatcher: TransactionDispatcher) -> None:
        self.dispatcher = dispatcher

    async def call(self, name: str, *args: str) -> bytes:
        op = OPERATIONS.get(name)
        if op is None:
            raise self.dispatcher.reject(name, "unknown operation")
        if len(args) != len(op.params):
            raise self.dispatcher.reject(
                name,
                f"expected {len(op.params)} argument(s) {list(op.params)}, got {len(args)}",
                mode=op.mode,
            )
        return await self.dispatcher.dispatch(op.mode, op.name, args)

    # --- evaluate ---

    async def get_all_assets(self) -> List[Json]:
        return decode_result(await self.call("GetAllAssets"), empty=[])

    async def search_asset_by_id(self, asset_id: str) -> Json:
        return decode_result(await self.call("SearchAssetByID", asset_id), empty={})

    async def get_asset_history(self, asset_id: str) -> List[Json]:
        return decode_result(await self.call("GetAssetHistory", asset_id), empty=[])

    async def asset_exists(self, asset_id: str) -> bool:
        return bool(decode_result(await self.call("AssetExists", asset_id), empty=False))

    # --- submit ---

    async def create_asset(self, asset_id: str, asset_type: str, price: Any, owner: str) -> None:
        await self.call("CreateAsset", asset_id, asset_type, encode_price(price), owner)

    async def transfer_asset(self, asset_id: str, new_owner: str) -> None:
        await self.call("TransferAsset", asset_id, new_owner)

    async def update_asset_price(self, asset_id: str, new_price: Any) -> None:
        await self.call("UpdateAssetPrice", asset_id, encode_price(new_price))

    async def init_ledger(self) -> None:
        await self.call("InitLedger")
