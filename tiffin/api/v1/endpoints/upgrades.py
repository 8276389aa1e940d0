"""
Subscription upgrade endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from tiffin.api.deps import Principal, get_current_user, get_upgrade_service
from tiffin.schemas import MessageResponse, UpgradeApplyRequest, UpgradeResponse
from tiffin.services import UpgradeService

router = APIRouter(prefix="/upgrades", tags=["Upgrades"])


@router.post("", response_model=UpgradeResponse, status_code=status.HTTP_201_CREATED)
def apply_upgrade(
    payload: UpgradeApplyRequest,
    principal: Principal = Depends(get_current_user),
    service: UpgradeService = Depends(get_upgrade_service),
):
    return service.apply(
        principal.user_id,
        payload.upgrade_type,
        payload.scope,
        payload.meal_type,
        payload.start_date,
        payload.end_date,
    )


@router.get("/active", response_model=List[UpgradeResponse])
def list_active_upgrades(
    principal: Principal = Depends(get_current_user),
    service: UpgradeService = Depends(get_upgrade_service),
):
    return service.list_active(principal.user_id)


@router.delete("/{upgrade_id}", response_model=MessageResponse)
def remove_upgrade(
    upgrade_id: str,
    principal: Principal = Depends(get_current_user),
    service: UpgradeService = Depends(get_upgrade_service),
):
    service.remove(principal.user_id, upgrade_id)
    return MessageResponse(message="Upgrade removed")
