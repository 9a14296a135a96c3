from datetime import date, time, timedelta
from types import SimpleNamespace

import pytest

from booking_api.domain.scheduling.availability_service import (
    MAX_SLOTS_PER_DAY,
    compute_slots,
    format_slot,
    generate_candidate_slots,
    is_date_disabled,
)
from booking_api.models import STATUS_CANCELLED, Appointment, BlockedDate

# 2024-01-01 is a Monday
MONDAY = date(2024, 1, 1)


def make_rule(day=0, start="09:00", end="12:00", duration=30, active=True):
    return SimpleNamespace(
        day_of_week=day,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        slot_duration_minutes=duration,
        is_active=active,
    )


def labels(slots):
    return [format_slot(s) for s in slots]


class TestComputeSlots:
    def test_booked_slot_is_removed(self):
        slots = compute_slots(MONDAY, [make_rule()], [], [time(9, 30)])
        assert labels(slots) == ["09:00", "10:00", "10:30", "11:00", "11:30"]

    def test_booked_times_accept_strings_with_seconds(self):
        slots = compute_slots(MONDAY, [make_rule()], [], ["09:30:00", "11:30"])
        assert labels(slots) == ["09:00", "10:00", "10:30", "11:00"]

    @pytest.mark.parametrize(
        "start,end,duration",
        [("09:00", "12:00", 30), ("09:00", "12:10", 30), ("08:15", "17:00", 45), ("10:00", "10:20", 30)],
    )
    def test_slot_count_is_floor_of_window(self, start, end, duration):
        rule = make_rule(start=start, end=end, duration=duration)
        slots = compute_slots(MONDAY, [rule], [], [])

        window = (
            (rule.end_time.hour * 60 + rule.end_time.minute)
            - (rule.start_time.hour * 60 + rule.start_time.minute)
        )
        assert len(slots) == window // duration
        assert all(s < rule.end_time for s in slots)
        assert slots == sorted(slots)

    def test_partial_trailing_window_is_not_offered(self):
        slots = compute_slots(MONDAY, [make_rule(start="09:00", end="10:10", duration=30)], [], [])
        assert labels(slots) == ["09:00", "09:30"]

    def test_blocked_date_returns_nothing(self):
        assert compute_slots(MONDAY, [make_rule()], [MONDAY], []) == []

    def test_no_rule_for_weekday(self):
        tuesday = MONDAY + timedelta(days=1)
        assert compute_slots(tuesday, [make_rule(day=0)], [], []) == []

    def test_inactive_rule(self):
        assert compute_slots(MONDAY, [make_rule(active=False)], [], []) == []

    @pytest.mark.parametrize("duration", [0, -15, None])
    def test_invalid_duration_generates_nothing(self, duration, caplog):
        assert generate_candidate_slots(make_rule(duration=duration)) == []
        assert "Invalid slot duration" in caplog.text

    def test_generation_is_capped(self, caplog):
        rule = make_rule(start="00:00", end="23:59", duration=1)
        slots = generate_candidate_slots(rule)
        assert len(slots) == MAX_SLOTS_PER_DAY
        assert "max slot generation limit" in caplog.text


class TestIsDateDisabled:
    def test_past_date(self):
        assert is_date_disabled(MONDAY, [make_rule()], [], today=MONDAY + timedelta(days=1))

    def test_today_is_selectable(self):
        assert not is_date_disabled(MONDAY, [make_rule()], [], today=MONDAY)

    def test_blocked(self):
        assert is_date_disabled(MONDAY, [make_rule()], [MONDAY], today=MONDAY)

    def test_closed_day(self):
        assert is_date_disabled(MONDAY + timedelta(days=2), [make_rule()], [], today=MONDAY)


class TestAvailabilityEndpoints:
    def test_slots_exclude_booked_and_ignore_cancelled(
        self, client, db_session, monday, monday_hours
    ):
        common = dict(
            full_name="Someone",
            email="s@example.com",
            contact_method="email",
            location="US",
            state="NY",
            city="NYC",
            services=["x"],
            appointment_date=monday,
        )
        db_session.add(
            Appointment(**common, appointment_time=time(9, 30), provider_session_id="cs_a")
        )
        db_session.add(
            Appointment(
                **common,
                appointment_time=time(10, 0),
                provider_session_id="cs_b",
                status=STATUS_CANCELLED,
            )
        )
        db_session.commit()

        response = client.get("/availability/slots", params={"date": monday.isoformat()})

        assert response.status_code == 200
        body = response.json()
        assert body["disabled"] is False
        assert body["slots"] == ["09:00", "10:00", "10:30", "11:00", "11:30"]

    def test_blocked_date_is_disabled(self, client, db_session, monday, monday_hours):
        db_session.add(BlockedDate(blocked_date=monday, reason="Holiday"))
        db_session.commit()

        response = client.get("/availability/slots", params={"date": monday.isoformat()})

        assert response.json() == {"date": monday.isoformat(), "slots": [], "disabled": True}

    def test_disabled_dates_range(self, client, monday, monday_hours):
        end = monday + timedelta(days=6)
        response = client.get(
            "/availability/disabled-dates",
            params={"start": monday.isoformat(), "end": end.isoformat()},
        )

        assert response.status_code == 200
        disabled = response.json()["disabled_dates"]
        # Only Monday has working hours
        assert monday.isoformat() not in disabled
        assert len(disabled) == 6

    def test_disabled_dates_range_too_long(self, client, monday):
        response = client.get(
            "/availability/disabled-dates",
            params={"start": monday.isoformat(), "end": (monday + timedelta(days=200)).isoformat()},
        )
        assert response.status_code == 400
