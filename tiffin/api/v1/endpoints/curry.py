"""
Curry wallet and order endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from tiffin.api.deps import Principal, get_current_user, get_curry_order_service, get_wallet_service
from tiffin.models.base import CurryOrderStatus
from tiffin.schemas import CurryOrderCreate, CurryOrderResponse, WalletPurchaseRequest, WalletResponse
from tiffin.services import CurryOrderService, WalletService

router = APIRouter(prefix="/curry", tags=["Curry"])


@router.post("/wallets/purchase", response_model=WalletResponse)
def purchase_tokens(
    payload: WalletPurchaseRequest,
    principal: Principal = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
):
    wallet = service.purchase(principal.user_id, payload.token_package_id)
    return WalletResponse.from_entity(wallet, service.clock.today())


@router.get("/wallets", response_model=List[WalletResponse])
def list_wallets(
    principal: Principal = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
):
    today = service.clock.today()
    return [WalletResponse.from_entity(w, today) for w in service.get_wallets(principal.user_id)]


@router.post("/orders", response_model=CurryOrderResponse, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: CurryOrderCreate,
    principal: Principal = Depends(get_current_user),
    service: CurryOrderService = Depends(get_curry_order_service),
):
    return service.place_order(
        principal.user_id,
        payload.diet_type,
        payload.cuisine_type,
        payload.order_date,
        payload.delivery_slot_id,
        payload.group_with_meal,
    )


@router.get("/orders", response_model=List[CurryOrderResponse])
def list_orders(
    order_status: Optional[CurryOrderStatus] = Query(default=None, alias="status"),
    principal: Principal = Depends(get_current_user),
    service: CurryOrderService = Depends(get_curry_order_service),
):
    return service.list_orders(principal.user_id, order_status)


@router.post("/orders/{order_id}/cancel", response_model=CurryOrderResponse)
def cancel_order(
    order_id: str,
    principal: Principal = Depends(get_current_user),
    service: CurryOrderService = Depends(get_curry_order_service),
):
    return service.cancel_order(principal.user_id, order_id)
