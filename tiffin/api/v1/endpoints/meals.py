"""
Meal schedule, pause and delivery slot endpoints.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends

from tiffin.api.deps import Principal, get_current_user, get_meal_service
from tiffin.schemas import MealInstanceResponse, PauseRecordResponse, PauseRequest, SlotReassignRequest
from tiffin.services import MealService

router = APIRouter(prefix="/meals", tags=["Meals"])


@router.get("/schedule", response_model=List[MealInstanceResponse])
def get_schedule(
    principal: Principal = Depends(get_current_user),
    service: MealService = Depends(get_meal_service),
):
    """Today's and tomorrow's meals."""
    return service.get_schedule(principal.user_id)


@router.post("/pause", response_model=List[MealInstanceResponse])
def pause_meal(
    payload: PauseRequest,
    principal: Principal = Depends(get_current_user),
    service: MealService = Depends(get_meal_service),
):
    return service.pause(principal.user_id, payload.meal_date, payload.meal_type)


@router.post("/unpause", response_model=List[MealInstanceResponse])
def unpause_meal(
    payload: PauseRequest,
    principal: Principal = Depends(get_current_user),
    service: MealService = Depends(get_meal_service),
):
    return service.unpause(principal.user_id, payload.meal_date, payload.meal_type)


@router.get("/pauses", response_model=List[PauseRecordResponse])
def list_pause_records(
    meal_date: Optional[date] = None,
    principal: Principal = Depends(get_current_user),
    service: MealService = Depends(get_meal_service),
):
    return service.list_pause_records(principal.user_id, meal_date)


@router.put("/{instance_id}/slot", response_model=MealInstanceResponse)
def reassign_slot(
    instance_id: str,
    payload: SlotReassignRequest,
    principal: Principal = Depends(get_current_user),
    service: MealService = Depends(get_meal_service),
):
    return service.reassign_slot(principal.user_id, instance_id, payload.delivery_slot_id)
