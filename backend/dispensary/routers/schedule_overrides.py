# backend/dispensary/routers/schedule_overrides.py
# PATCH = 405 (delete and re-create instead), DELETE = ALLOWED (hard)

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import ScheduleOverrides as DBScheduleOverrides
from ..redis_client import redis_client
from ..schemas.common import CalendarDate
from ..schemas.schedule_overrides import (
    ScheduleOverrideCreate,
    ScheduleOverrideRead,
)
from ..services import schedule_config

router = APIRouter(prefix="/schedule_overrides", tags=["schedule_overrides"])


@router.get("/", response_model=list[ScheduleOverrideRead])
def list_schedule_overrides(
    doctor_id: int,
    dispensary_id: int,
    start_date: CalendarDate = Query(...),
    end_date: CalendarDate = Query(...),
    db: Session = Depends(get_db),
):
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date is before start_date")
    return schedule_config.list_overrides(db, doctor_id, dispensary_id, start_date, end_date)


@router.get("/{id}", response_model=ScheduleOverrideRead)
def get_schedule_override(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBScheduleOverrides, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post(
    "/", response_model=ScheduleOverrideRead, status_code=status.HTTP_201_CREATED
)
def create_schedule_override(
    data: ScheduleOverrideCreate,
    db: Session = Depends(get_db),
):
    return schedule_config.create_override(db, data, redis=redis_client)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule_override(id: int, db: Session = Depends(get_db)):
    if not schedule_config.delete_override(db, id, redis=redis_client):
        raise HTTPException(status_code=404, detail="Not found")
