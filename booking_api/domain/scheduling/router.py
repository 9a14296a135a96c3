"""Scheduling router - availability lookups and admin schedule configuration"""

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from .availability_service import AvailabilityService, format_slot
from .repository import ScheduleRepository
from .schemas import (
    BlockedDateCreate,
    BlockedDateResponse,
    DisabledDatesResponse,
    SlotsResponse,
    WorkingHourResponse,
    WorkingHourUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Availability"])

# Longest range the booking calendar may request at once
MAX_DISABLED_RANGE_DAYS = 92


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


# ============================================================================
# PUBLIC AVAILABILITY
# ============================================================================


@router.get("/availability/slots", response_model=SlotsResponse)
async def get_available_slots(
    target_date: date = Query(..., alias="date", description="YYYY-MM-DD"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Get offerable time slots for a date"""
    if service.is_date_disabled(target_date):
        return SlotsResponse(date=target_date, slots=[], disabled=True)
    slots = service.get_available_slots(target_date)
    return SlotsResponse(date=target_date, slots=[format_slot(s) for s in slots])


@router.get("/availability/disabled-dates", response_model=DisabledDatesResponse)
async def get_disabled_dates(
    start: date = Query(...),
    end: Optional[date] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Get unselectable dates (past, blocked, closed) in a range"""
    end = end or start + timedelta(days=30)
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    if (end - start).days > MAX_DISABLED_RANGE_DAYS:
        raise HTTPException(
            status_code=400, detail=f"Range cannot exceed {MAX_DISABLED_RANGE_DAYS} days"
        )
    return DisabledDatesResponse(
        start=start, end=end, disabled_dates=service.get_disabled_dates(start, end)
    )


# ============================================================================
# ADMIN: WORKING HOURS
# ============================================================================


@router.get(
    "/admin/working-hours",
    response_model=list[WorkingHourResponse],
    dependencies=[Depends(require_admin)],
)
async def list_working_hours(db: Session = Depends(get_db)):
    return ScheduleRepository.get_working_hours(db)


@router.put(
    "/admin/working-hours/{day_of_week}",
    response_model=WorkingHourResponse,
    dependencies=[Depends(require_admin)],
)
async def update_working_hour(
    day_of_week: int, body: WorkingHourUpdate, db: Session = Depends(get_db)
):
    """Create or replace the rule for a weekday (0 = Monday)"""
    if not 0 <= day_of_week <= 6:
        raise HTTPException(status_code=400, detail="day_of_week must be between 0 and 6")
    rule = ScheduleRepository.upsert_working_hour(db, day_of_week, **body.model_dump())
    logger.info(
        f"🕐 Working hours for day {day_of_week} set to {rule.start_time}-{rule.end_time} "
        f"({rule.slot_duration_minutes}min, active={rule.is_active})"
    )
    return rule


@router.delete("/admin/working-hours/{day_of_week}", dependencies=[Depends(require_admin)])
async def delete_working_hour(day_of_week: int, db: Session = Depends(get_db)):
    """Remove a weekday's rule, closing that day"""
    rule = ScheduleRepository.get_working_hour_for_day(db, day_of_week)
    if not rule:
        raise HTTPException(status_code=404, detail="Working hours not found")
    ScheduleRepository.delete_working_hour(db, rule)
    return {"success": True}


# ============================================================================
# ADMIN: BLOCKED DATES
# ============================================================================


@router.get(
    "/admin/blocked-dates",
    response_model=list[BlockedDateResponse],
    dependencies=[Depends(require_admin)],
)
async def list_blocked_dates(db: Session = Depends(get_db)):
    return ScheduleRepository.get_blocked_dates(db)


@router.post(
    "/admin/blocked-dates",
    response_model=BlockedDateResponse,
    dependencies=[Depends(require_admin)],
)
async def add_blocked_date(body: BlockedDateCreate, db: Session = Depends(get_db)):
    """Block a date; blocking an already-blocked date is a no-op"""
    row, created = ScheduleRepository.add_blocked_date(db, body.blocked_date, body.reason)
    if created:
        logger.info(f"🚫 Blocked date added: {row.blocked_date}")
    return row


@router.delete("/admin/blocked-dates/{blocked_id}", dependencies=[Depends(require_admin)])
async def delete_blocked_date(blocked_id: int, db: Session = Depends(get_db)):
    row = ScheduleRepository.get_blocked_date_by_id(db, blocked_id)
    if not row:
        raise HTTPException(status_code=404, detail="Blocked date not found")
    ScheduleRepository.delete_blocked_date(db, row)
    return {"success": True}
