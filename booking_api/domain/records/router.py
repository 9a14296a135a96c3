"""Records router - confirmation polling and admin management of paid records"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ... import config
from ...auth import require_admin
from ...database import get_db
from ...services.notification_service import (
    NotificationDispatcher,
    build_appointment_notifications,
    get_notification_dispatcher,
)
from ..checkout.codec import KIND_APPOINTMENT, KIND_RENTAL_LISTING
from .repository import RecordRepository
from .schemas import (
    AppointmentResponse,
    BatchDeleteRequest,
    ConfirmationResponse,
    RecordStatusUpdate,
    RentalListingResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Records"])


def _confirmation(db: Session, kind: str, session_id: str) -> ConfirmationResponse:
    record = RecordRepository.get_by_session_id(db, kind, session_id)
    return ConfirmationResponse(
        found=record is not None,
        session_id=session_id,
        status=record.status if record else None,
        record_id=record.id if record else None,
        poll_interval_seconds=config.CONFIRMATION_POLL_INTERVAL_SECONDS,
        max_attempts=config.CONFIRMATION_POLL_MAX_ATTEMPTS,
    )


# ============================================================================
# CONFIRMATION POLLING
# ============================================================================


@router.get("/appointments/confirmation/{session_id}", response_model=ConfirmationResponse)
async def get_appointment_confirmation(session_id: str, db: Session = Depends(get_db)):
    """Has the webhook committed the appointment for this checkout session yet?"""
    return _confirmation(db, KIND_APPOINTMENT, session_id)


@router.get("/rental-listings/confirmation/{session_id}", response_model=ConfirmationResponse)
async def get_rental_listing_confirmation(session_id: str, db: Session = Depends(get_db)):
    return _confirmation(db, KIND_RENTAL_LISTING, session_id)


# ============================================================================
# ADMIN: APPOINTMENTS
# ============================================================================


@router.get(
    "/admin/appointments",
    response_model=list[AppointmentResponse],
    dependencies=[Depends(require_admin)],
)
async def list_appointments(
    status: Optional[str] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    needs_review: Optional[bool] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return RecordRepository.list_appointments(
        db,
        status=status,
        start=start,
        end=end,
        needs_review=needs_review,
        limit=limit,
        offset=offset,
    )


@router.patch(
    "/admin/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    dependencies=[Depends(require_admin)],
)
async def update_appointment(
    appointment_id: int, body: RecordStatusUpdate, db: Session = Depends(get_db)
):
    appointment = RecordRepository.get_appointment(db, appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    updates = body.model_dump(exclude_none=True)
    updated = RecordRepository.update_record(db, appointment, **updates)
    logger.info(f"📝 Appointment {appointment_id} updated: status={updated.status}")
    return updated


@router.post("/admin/appointments/batch-delete", dependencies=[Depends(require_admin)])
async def batch_delete_appointments(body: BatchDeleteRequest, db: Session = Depends(get_db)):
    deleted = RecordRepository.delete_appointments(db, body.ids)
    logger.info(f"🗑️ Deleted {deleted} appointments")
    return {"success": True, "deleted": deleted}


@router.delete("/admin/appointments/{appointment_id}", dependencies=[Depends(require_admin)])
async def delete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    if not RecordRepository.delete_appointments(db, [appointment_id]):
        raise HTTPException(status_code=404, detail="Appointment not found")
    logger.info(f"🗑️ Appointment {appointment_id} deleted")
    return {"success": True}


@router.post(
    "/admin/appointments/{appointment_id}/resend-confirmation",
    dependencies=[Depends(require_admin)],
)
async def resend_appointment_confirmation(
    appointment_id: int,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Re-send the customer's confirmation; reports per-channel delivery"""
    appointment = RecordRepository.get_appointment(db, appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")

    payload = AppointmentResponse.model_validate(appointment).model_dump(mode="json")
    payload["appointment_time"] = appointment.appointment_time.strftime("%H:%M")
    notifications = build_appointment_notifications(payload, include_admin=False)
    results = await dispatcher.send_all(notifications)
    return {"success": any(results.values()), "results": results}


# ============================================================================
# ADMIN: RENTAL LISTINGS
# ============================================================================


@router.get(
    "/admin/rental-listings",
    response_model=list[RentalListingResponse],
    dependencies=[Depends(require_admin)],
)
async def list_rental_listings(
    status: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return RecordRepository.list_rental_listings(
        db, status=status, user_id=user_id, limit=limit, offset=offset
    )


@router.patch(
    "/admin/rental-listings/{listing_id}",
    response_model=RentalListingResponse,
    dependencies=[Depends(require_admin)],
)
async def update_rental_listing(
    listing_id: int, body: RecordStatusUpdate, db: Session = Depends(get_db)
):
    listing = RecordRepository.get_rental_listing(db, listing_id)
    if not listing:
        raise HTTPException(status_code=404, detail="Rental listing not found")
    updates = body.model_dump(exclude_none=True)
    updated = RecordRepository.update_record(db, listing, **updates)
    logger.info(f"📝 Rental listing {listing_id} updated: status={updated.status}")
    return updated
