"""Admin endpoints for recurring training templates.

Every route requires an admin caller; the check runs before any work.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from loguru import logger
from sqlalchemy.orm import Session

from unit_calendar.api.admin.utils import require_admin
from unit_calendar.api.dependencies.auth import get_current_user_id
from unit_calendar.api.dependencies.clock import get_clock
from unit_calendar.db.session import get_db
from unit_calendar.recurring import service
from unit_calendar.recurring.errors import RecurringTrainingNotFoundError
from unit_calendar.recurring.types import (
    CreateRecurringTrainingData,
    ProcessingResponse,
    RecurringTrainingInstanceView,
    RecurringTrainingWithStats,
    UpdateRecurringTrainingData,
)

router = APIRouter(prefix="/admin/recurring-trainings", tags=["admin", "recurring-trainings"])


def _raise_not_found(e: RecurringTrainingNotFoundError) -> None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post("", status_code=status.HTTP_201_CREATED)
def create_recurring_training(
    data: CreateRecurringTrainingData,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, str]:
    require_admin(user_id, db)
    recurring_id = service.create_recurring_training(db, data, created_by=user_id)
    return {"id": recurring_id}


@router.get("", response_model=list[RecurringTrainingWithStats])
def list_recurring_trainings(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> list[RecurringTrainingWithStats]:
    require_admin(user_id, db)
    return service.get_recurring_trainings(db)


@router.post("/process", response_model=ProcessingResponse)
def process_recurring_trainings(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ProcessingResponse:
    """Materialize sessions for the upcoming horizon ("Process Now")."""
    require_admin(user_id, db)
    logger.info(f"[RECURRING] Processing run triggered by user_id={user_id}")
    results = service.process_recurring_trainings(db, now=clock)
    return ProcessingResponse(results=results, summary=service.summarize_results(results))


@router.patch("/{recurring_id}")
def update_recurring_training(
    recurring_id: str,
    data: UpdateRecurringTrainingData,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, str | bool]:
    require_admin(user_id, db)
    try:
        template = service.update_recurring_training(db, recurring_id, data)
    except RecurringTrainingNotFoundError as e:
        _raise_not_found(e)
    return {"id": template.id, "is_active": template.is_active}


@router.delete("/{recurring_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recurring_training(
    recurring_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Response:
    require_admin(user_id, db)
    try:
        service.delete_recurring_training(db, recurring_id)
    except RecurringTrainingNotFoundError as e:
        _raise_not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{recurring_id}/instances", response_model=list[RecurringTrainingInstanceView])
def list_recurring_training_instances(
    recurring_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> list[RecurringTrainingInstanceView]:
    require_admin(user_id, db)
    try:
        return service.get_recurring_training_instances(db, recurring_id)
    except RecurringTrainingNotFoundError as e:
        _raise_not_found(e)
