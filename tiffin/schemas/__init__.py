"""
Request and response schemas for the HTTP surface.
"""

from tiffin.schemas.common import BaseSchema, MessageResponse
from tiffin.schemas.curry import CurryOrderCreate, CurryOrderResponse, WalletPurchaseRequest, WalletResponse
from tiffin.schemas.delivery import DeliveryGroupCreate, DeliveryGroupResponse
from tiffin.schemas.meal import (
    DeliverySlotSummary,
    MealInstanceResponse,
    PauseRecordResponse,
    PauseRequest,
    SlotReassignRequest,
)
from tiffin.schemas.subscription import PackageSummary, SubscriptionCreate, SubscriptionResponse
from tiffin.schemas.upgrade import UpgradeApplyRequest, UpgradeResponse

__all__ = [
    "BaseSchema",
    "MessageResponse",
    "CurryOrderCreate",
    "CurryOrderResponse",
    "WalletPurchaseRequest",
    "WalletResponse",
    "DeliveryGroupCreate",
    "DeliveryGroupResponse",
    "DeliverySlotSummary",
    "MealInstanceResponse",
    "PauseRecordResponse",
    "PauseRequest",
    "SlotReassignRequest",
    "PackageSummary",
    "SubscriptionCreate",
    "SubscriptionResponse",
    "UpgradeApplyRequest",
    "UpgradeResponse",
]
