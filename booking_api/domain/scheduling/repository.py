"""Schedule repository - Database operations for working hours and blocked dates"""

import logging
from datetime import date, time
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import STATUS_CANCELLED, Appointment, BlockedDate, WorkingHour

logger = logging.getLogger(__name__)


class ScheduleRepository:
    """Repository for schedule configuration reads and admin writes"""

    @staticmethod
    def get_working_hours(db: Session) -> list[WorkingHour]:
        """Get all working-hour rules ordered by weekday"""
        return db.query(WorkingHour).order_by(WorkingHour.day_of_week).all()

    @staticmethod
    def get_working_hour_for_day(db: Session, day_of_week: int) -> Optional[WorkingHour]:
        return db.query(WorkingHour).filter(WorkingHour.day_of_week == day_of_week).first()

    @staticmethod
    def upsert_working_hour(db: Session, day_of_week: int, **values) -> WorkingHour:
        """Create or replace the single rule for a weekday"""
        rule = db.query(WorkingHour).filter(WorkingHour.day_of_week == day_of_week).first()
        if rule is None:
            rule = WorkingHour(day_of_week=day_of_week, **values)
            db.add(rule)
        else:
            for key, value in values.items():
                setattr(rule, key, value)
        db.commit()
        db.refresh(rule)
        return rule

    @staticmethod
    def delete_working_hour(db: Session, rule: WorkingHour) -> None:
        db.delete(rule)
        db.commit()

    @staticmethod
    def get_blocked_dates(
        db: Session, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[BlockedDate]:
        query = db.query(BlockedDate)
        if start is not None:
            query = query.filter(BlockedDate.blocked_date >= start)
        if end is not None:
            query = query.filter(BlockedDate.blocked_date <= end)
        return query.order_by(BlockedDate.blocked_date).all()

    @classmethod
    def get_blocked_date_values(
        cls, db: Session, start: Optional[date] = None, end: Optional[date] = None
    ) -> set[date]:
        return {b.blocked_date for b in cls.get_blocked_dates(db, start, end)}

    @staticmethod
    def get_blocked_date_by_id(db: Session, blocked_id: int) -> Optional[BlockedDate]:
        return db.query(BlockedDate).filter(BlockedDate.id == blocked_id).first()

    @staticmethod
    def add_blocked_date(
        db: Session, blocked_date: date, reason: Optional[str] = None
    ) -> tuple[BlockedDate, bool]:
        """
        Block a date. Idempotent: an already-blocked date returns the existing row.

        Returns:
            Tuple of (blocked_date_row, created)
        """
        existing = db.query(BlockedDate).filter(BlockedDate.blocked_date == blocked_date).first()
        if existing:
            return existing, False

        row = BlockedDate(blocked_date=blocked_date, reason=reason)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # Another admin request blocked the same date first
            db.rollback()
            existing = (
                db.query(BlockedDate).filter(BlockedDate.blocked_date == blocked_date).one()
            )
            return existing, False
        db.refresh(row)
        return row, True

    @staticmethod
    def delete_blocked_date(db: Session, row: BlockedDate) -> None:
        db.delete(row)
        db.commit()

    @staticmethod
    def get_booked_times(db: Session, target_date: date) -> list[time]:
        """Times already taken by non-cancelled appointments on a date"""
        rows = (
            db.query(Appointment.appointment_time)
            .filter(
                Appointment.appointment_date == target_date,
                Appointment.status != STATUS_CANCELLED,
            )
            .all()
        )
        return [row[0] for row in rows]
