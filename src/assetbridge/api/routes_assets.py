from __future__ import annotations

from typing import Any, Awaitable, Dict, List, TypeVar

from fastapi import APIRouter, Request

from assetbridge.api.errors import ApiError
from assetbridge.api.schemas import CreateAssetRequest, TransferAssetRequest, UpdatePriceRequest
from assetbridge.assets import AssetService
from assetbridge.errors import DispatchFailed
from assetbridge.ledger.dispatcher import encode_price

router = APIRouter()

Json = Dict[str, Any]
T = TypeVar("T")


def _service(request: Request) -> AssetService:
    svc = getattr(request.app.state, "assets", None)
    if svc is None:
        raise ApiError.not_ready()
    return svc


def _price(value: Any) -> str:
    try:
        return encode_price(value)
    except ValueError as e:
        raise ApiError.bad_request("invalid_price", str(e), {"price": value}) from e


async def _ledger(summary: str, call: Awaitable[T]) -> T:
    try:
        return await call
    except DispatchFailed as e:
        raise ApiError.from_dispatch(e, summary=summary) from e


@router.get("/assets")
async def get_all_assets(request: Request) -> List[Json]:
    return await _ledger("Failed to get assets", _service(request).get_all_assets())


@router.get("/assets/{asset_id}")
async def search_asset(asset_id: str, request: Request) -> Json:
    return await _ledger(f"Failed to get asset {asset_id}", _service(request).search_asset_by_id(asset_id))


@router.get("/assets/{asset_id}/history")
async def get_asset_history(asset_id: str, request: Request) -> List[Json]:
    return await _ledger("Failed to get asset history", _service(request).get_asset_history(asset_id))


@router.get("/assets/{asset_id}/exists")
async def asset_exists(asset_id: str, request: Request) -> Json:
    exists = await _ledger(f"Failed to check asset {asset_id}", _service(request).asset_exists(asset_id))
    return {"id": asset_id, "exists": exists}


@router.post("/assets", status_code=201)
async def create_asset(body: CreateAssetRequest, request: Request) -> Json:
    price = _price(body.price)
    svc = _service(request)
    await _ledger("Failed to create asset", svc.create_asset(body.id, body.type, price, body.owner))
    return {"message": f"Asset {body.id} created successfully"}


@router.put("/assets/{asset_id}/transfer")
async def transfer_asset(asset_id: str, body: TransferAssetRequest, request: Request) -> Json:
    svc = _service(request)
    await _ledger("Failed to transfer asset", svc.transfer_asset(asset_id, body.newOwner))
    return {"message": f"Asset {asset_id} transferred to {body.newOwner}"}


@router.put("/assets/{asset_id}/price")
async def update_asset_price(asset_id: str, body: UpdatePriceRequest, request: Request) -> Json:
    price = _price(body.newPrice)
    svc = _service(request)
    await _ledger("Failed to update asset price", svc.update_asset_price(asset_id, price))
    return {"message": f"Price of asset {asset_id} updated to {price}"}


@router.post("/ledger/init")
async def init_ledger(request: Request) -> Json:
    await _ledger("Failed to initialize ledger", _service(request).init_ledger())
    return {"message": "Ledger initialized"}
