# backend/dispensary/routers/recurring_sessions.py
# Duplicate (doctor, dispensary, weekday) = 409

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import RecurringSessions as DBRecurringSessions
from ..redis_client import redis_client
from ..schemas.recurring_sessions import (
    RecurringSessionCreate,
    RecurringSessionRead,
)
from ..services import schedule_config

router = APIRouter(prefix="/recurring_sessions", tags=["recurring_sessions"])


@router.get("/", response_model=list[RecurringSessionRead])
def list_recurring_sessions(
    doctor_id: Optional[int] = None,
    dispensary_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return schedule_config.list_recurring_sessions(db, doctor_id, dispensary_id)


@router.get("/{id}", response_model=RecurringSessionRead)
def get_recurring_session(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBRecurringSessions, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post(
    "/", response_model=RecurringSessionRead, status_code=status.HTTP_201_CREATED
)
def create_recurring_session(
    data: RecurringSessionCreate,
    db: Session = Depends(get_db),
):
    return schedule_config.create_recurring_session(db, data, redis=redis_client)


@router.put("/{id}", response_model=RecurringSessionRead)
def replace_recurring_session(
    id: int,
    data: RecurringSessionCreate,
    db: Session = Depends(get_db),
):
    obj = schedule_config.replace_recurring_session(db, id, data, redis=redis_client)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recurring_session(id: int, db: Session = Depends(get_db)):
    if not schedule_config.delete_recurring_session(db, id, redis=redis_client):
        raise HTTPException(status_code=404, detail="Not found")
