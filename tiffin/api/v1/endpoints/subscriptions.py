"""
Subscription endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from tiffin.api.deps import Principal, get_current_user, get_subscription_service
from tiffin.schemas import SubscriptionCreate, SubscriptionResponse
from tiffin.services import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.post("", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
def create_subscription(
    payload: SubscriptionCreate,
    principal: Principal = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.create(
        principal.user_id,
        payload.package_id,
        payload.address_id,
        payload.container_type,
        payload.start_date,
    )
    return SubscriptionResponse.from_entity(subscription, service.clock.today())


@router.get("/active", response_model=SubscriptionResponse)
def get_active_subscription(
    principal: Principal = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.get_active(principal.user_id)
    return SubscriptionResponse.from_entity(subscription, service.clock.today())


@router.get("/history", response_model=List[SubscriptionResponse])
def get_subscription_history(
    principal: Principal = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    today = service.clock.today()
    return [SubscriptionResponse.from_entity(s, today) for s in service.get_history(principal.user_id)]


@router.post("/{subscription_id}/cancel", response_model=SubscriptionResponse)
def cancel_subscription(
    subscription_id: str,
    principal: Principal = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.cancel(principal.user_id, subscription_id)
    return SubscriptionResponse.from_entity(subscription, service.clock.today())
