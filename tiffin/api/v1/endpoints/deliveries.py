"""
Delivery group endpoints.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from tiffin.api.deps import Principal, get_current_user, get_delivery_service
from tiffin.schemas import DeliveryGroupCreate, DeliveryGroupResponse, MessageResponse
from tiffin.services import DeliveryService

router = APIRouter(prefix="/deliveries", tags=["Deliveries"])


@router.post("/groups", response_model=DeliveryGroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: DeliveryGroupCreate,
    principal: Principal = Depends(get_current_user),
    service: DeliveryService = Depends(get_delivery_service),
):
    group = service.group(
        principal.user_id,
        payload.service_date,
        payload.meal_instance_ids,
        payload.curry_order_ids,
        payload.delivery_slot_id,
    )
    return DeliveryGroupResponse.from_entity(group)


@router.get("/groups", response_model=List[DeliveryGroupResponse])
def list_groups(
    service_date: Optional[date] = None,
    principal: Principal = Depends(get_current_user),
    service: DeliveryService = Depends(get_delivery_service),
):
    return [DeliveryGroupResponse.from_entity(g) for g in service.list_groups(principal.user_id, service_date)]


@router.delete("/groups/{group_id}", response_model=MessageResponse)
def ungroup(
    group_id: str,
    principal: Principal = Depends(get_current_user),
    service: DeliveryService = Depends(get_delivery_service),
):
    service.ungroup(principal.user_id, group_id)
    return MessageResponse(message="Delivery group dissolved")
