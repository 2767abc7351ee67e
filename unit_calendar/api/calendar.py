"""Calendar read endpoints.

Statuses are corrected lazily: each read re-derives the status of the returned
entities from the current time and persists the ones that changed.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from unit_calendar.api.dependencies.auth import get_current_user_id
from unit_calendar.api.dependencies.clock import get_clock
from unit_calendar.api.schemas import CampaignResponse, MissionResponse, TrainingRecordResponse
from unit_calendar.calendar import status_service
from unit_calendar.db.session import get_db

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/campaigns", response_model=list[CampaignResponse])
def get_campaigns(
    _user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> list[CampaignResponse]:
    return [
        CampaignResponse.model_validate(entry.campaign).model_copy(
            update={"missions": [MissionResponse.model_validate(m) for m in entry.missions]}
        )
        for entry in status_service.list_campaigns(db, clock())
    ]


@router.get("/trainings", response_model=list[TrainingRecordResponse])
def get_trainings(
    _user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> list[TrainingRecordResponse]:
    return [TrainingRecordResponse.model_validate(t) for t in status_service.list_training_records(db, clock())]


@router.get("/missions", response_model=list[MissionResponse])
def get_missions_in_range(
    start: str = Query(description="First date, YYYY-MM-DD"),
    end: str = Query(description="Last date, YYYY-MM-DD"),
    _user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> list[MissionResponse]:
    try:
        missions = status_service.list_missions_in_range(db, start, end, clock())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return [MissionResponse.model_validate(m) for m in missions]


@router.get("/trainings/range", response_model=list[TrainingRecordResponse])
def get_trainings_in_range(
    start: str = Query(description="First date, YYYY-MM-DD"),
    end: str = Query(description="Last date, YYYY-MM-DD"),
    _user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> list[TrainingRecordResponse]:
    try:
        trainings = status_service.list_trainings_in_range(db, start, end, clock())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return [TrainingRecordResponse.model_validate(t) for t in trainings]
