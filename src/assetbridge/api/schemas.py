"""Pydantic request bodies for the asset routes.

Field names follow the JSON the web front end already sends
(id/type/price/owner, newOwner, newPrice). Prices arrive as numbers or
numeric strings and are left untouched here; the routes normalize them
to a decimal string (or answer 400 invalid_price) before dispatch.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# Any JSON value; the route runs encode_price on it.
Price = Any


class CreateAssetRequest(BaseModel):
    id: str = Field(..., min_length=1, description="Asset id, e.g. asset7")
    type: str = Field(..., min_length=1, description="Asset type, e.g. Car")
    price: Price = Field(..., description="Integral price")
    owner: str = Field(..., min_length=1, description="Owner name")

    model_config = {"extra": "ignore"}


class TransferAssetRequest(BaseModel):
    newOwner: str = Field(..., min_length=1, description="New owner name")

    model_config = {"extra": "ignore"}


class UpdatePriceRequest(BaseModel):
    newPrice: Price = Field(..., description="Integral price")

    model_config = {"extra": "ignore"}
