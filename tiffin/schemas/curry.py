"""
Curry wallet and order schemas.
"""

from datetime import date
from typing import Optional

from pydantic import Field

from tiffin.models.base import CuisineType, CurryOrderStatus, DietType
from tiffin.models.curry import CurryWallet
from tiffin.schemas.common import BaseCreateSchema, BaseResponseSchema, BaseSchema
from tiffin.schemas.meal import DeliverySlotSummary

__all__ = [
    "WalletPurchaseRequest",
    "WalletResponse",
    "CurryOrderCreate",
    "CurryOrderResponse",
]


class WalletPurchaseRequest(BaseSchema):
    token_package_id: str = Field(..., min_length=1)


class WalletResponse(BaseResponseSchema):
    diet_type: DietType
    total_tokens: int
    used_tokens: int
    remaining_tokens: int
    valid_until: date
    is_expired: bool = False

    @classmethod
    def from_entity(cls, wallet: CurryWallet, today: date) -> "WalletResponse":
        response = cls.model_validate(wallet)
        response.is_expired = wallet.expired_on(today)
        return response


class CurryOrderCreate(BaseCreateSchema):
    diet_type: DietType
    cuisine_type: CuisineType
    order_date: date
    delivery_slot_id: Optional[str] = Field(
        default=None,
        description="Defaults to the lunch delivery slot",
    )
    group_with_meal: bool = False


class CurryOrderResponse(BaseResponseSchema):
    wallet_id: str
    cuisine_type: CuisineType
    order_date: date
    status: CurryOrderStatus
    delivery_group_id: Optional[str] = None
    delivery_slot: DeliverySlotSummary
