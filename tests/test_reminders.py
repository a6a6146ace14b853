"""
tests.test_reminders

Cron-triggered PTO and milestone reminder e-mails.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, time

import httpx
import pytest

from hr_portal.db.models import HrEmployee, HrEmployeeEventReminder, HrSettings
from hr_portal.services.reminders import ReminderService, local_now, us_date
from tests.fakes import Outbox, email_client, email_http

CRON = {"x-cron-secret": "cron-secret"}
URL = "/functions/v1/send-pto-reminders"


def _settings(**fields) -> HrSettings:
    fields.setdefault("admin_email", "hr@school.test")
    fields.setdefault("reminders_enabled", True)
    return HrSettings(id=True, **fields)


def test_us_date_has_no_leading_zeros() -> None:
    assert us_date(date(2026, 3, 9)) == "3/9/2026"
    assert us_date(date(2026, 12, 25)) == "12/25/2026"


def test_local_now_falls_back_to_utc_for_unknown_zones() -> None:
    now = datetime(2026, 3, 10, 14, 0, tzinfo=UTC)
    assert local_now(now, "Not/AZone").hour == 14
    assert local_now(now, "America/New_York").hour == 10


@pytest.mark.asyncio
async def test_cron_secret_is_required(client: httpx.AsyncClient) -> None:
    for headers in ({}, {"x-cron-secret": "wrong"}):
        r = await client.post(URL, headers=headers)
        assert r.status_code == 401
        assert r.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_unset_or_disabled_settings(client: httpx.AsyncClient, seed, outbox: Outbox) -> None:
    r = await client.post(URL, headers=CRON)
    assert r.status_code == 200
    assert r.json() == {"total_sent": 0, "message": "hr_settings.admin_email not set"}

    await seed(_settings(reminders_enabled=False))
    r = await client.post(URL, headers=CRON)
    assert r.status_code == 200
    assert r.json() == {
        "total_sent": 0,
        "message": "Reminders disabled (hr_settings.reminders_enabled=false).",
    }
    assert outbox.messages == []


@pytest.mark.asyncio
async def test_missing_email_configuration(client: httpx.AsyncClient, app, seed) -> None:
    await seed(_settings())
    app.state.email = None
    r = await client.post(URL, headers=CRON)
    assert r.status_code == 500
    assert r.json() == {"error": "Missing e-mail API key."}


@pytest.mark.asyncio
async def test_email_failure_is_reported(client: httpx.AsyncClient, seed, outbox: Outbox) -> None:
    today = datetime.now(UTC).date()
    await seed(
        _settings(reminders_time=time(0, 0), reminders_tz="UTC"),
        HrEmployee(
            id=uuid.uuid4(),
            legal_first_name="Mei",
            legal_last_name="Chen",
            has_pto=True,
            pto_reminder_date=today,
        ),
    )
    outbox.status = 500

    r = await client.post(URL, headers=CRON)
    assert r.status_code == 503
    body = r.json()
    assert body["error"] == "EMAIL_ERROR"
    assert "500" in body["message"]


@pytest.mark.asyncio
async def test_run_sends_due_reminders_once(app, seed, load, outbox: Outbox, settings) -> None:
    mei = HrEmployee(
        id=uuid.uuid4(),
        legal_first_name="Mei",
        legal_last_name="Chen",
        has_pto=True,
        pto_reminder_date=date(2026, 3, 10),
    )
    later = HrEmployee(
        id=uuid.uuid4(),
        legal_first_name="Tom",
        legal_last_name="Ng",
        has_pto=True,
        pto_reminder_date=date(2026, 3, 11),
    )
    no_pto = HrEmployee(
        id=uuid.uuid4(),
        legal_first_name="Ann",
        legal_last_name="Li",
        has_pto=False,
        pto_reminder_date=date(2026, 3, 1),
    )
    anniversary = HrEmployeeEventReminder(
        id=uuid.uuid4(),
        employee_id=later.id,
        event_type_name="Work anniversary",
        event_date=date(2026, 3, 17),
        days_before=7,
    )
    not_yet = HrEmployeeEventReminder(
        id=uuid.uuid4(),
        employee_id=mei.id,
        event_type_name="Contract renewal",
        event_date=date(2026, 3, 20),
        days_before=3,
    )
    await seed(
        _settings(reminders_time=time(9, 0), reminders_tz="America/New_York"),
        mei,
        later,
        no_pto,
        anniversary,
        not_yet,
    )

    async with email_http(outbox) as http:
        mailer = email_client(settings, http)

        # 08:00 in New York.
        async with app.state.sessionmaker() as session:
            early = await ReminderService(session=session, email=mailer).run(
                now=datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
            )
        assert early.total_sent == 0
        assert early.message == "Not time yet. Local now=08:00 America/New_York, scheduled=09:00"
        assert early.as_dict() == {"total_sent": 0, "message": early.message}

        # 10:00 in New York.
        async with app.state.sessionmaker() as session:
            result = await ReminderService(session=session, email=mailer).run(
                now=datetime(2026, 3, 10, 14, 0, tzinfo=UTC)
            )
        assert result.as_dict() == {
            "total_sent": 2,
            "message": "Sent 2 reminder(s).",
            "pto_sent": 1,
            "milestone_sent": 1,
            "timezone": "America/New_York",
            "ran_for_local_date": "2026-03-10",
        }

        pto, milestone = outbox.messages
        assert pto["to"] == ["hr@school.test"]
        assert pto["subject"] == "SING HR System Message: PTO Reminder"
        assert pto["text"] == "SING HR System Message:\nEmployee: Mei Chen\nPTO Reminder for 3/10/2026"
        assert milestone["subject"] == "SING HR System Message: Milestone Reminder"
        assert milestone["text"] == (
            "SING HR System Message:\n"
            "Employee: Tom Ng\n"
            "Event: Work anniversary\n"
            "Event Date: 3/17/2026\n"
            "Reminder: 7 day(s) until this event"
        )

        assert (await load(HrEmployee, mei.id)).pto_reminder_sent_at is not None
        assert (await load(HrEmployee, later.id)).pto_reminder_sent_at is None
        assert (await load(HrEmployeeEventReminder, anniversary.id)).sent_at is not None
        assert (await load(HrEmployeeEventReminder, not_yet.id)).sent_at is None
        assert (await load(HrSettings, True)).reminders_last_ran_at is not None

        async with app.state.sessionmaker() as session:
            again = await ReminderService(session=session, email=mailer).run(
                now=datetime(2026, 3, 10, 15, 0, tzinfo=UTC)
            )
        assert again.total_sent == 0
        assert again.message == "No due reminders (PTO or milestones)."
        assert len(outbox.messages) == 2


@pytest.mark.asyncio
async def test_endpoint_reports_counts(client: httpx.AsyncClient, seed, outbox: Outbox) -> None:
    await seed(_settings(reminders_time=time(0, 0), reminders_tz="UTC"))

    r = await client.post(URL, headers=CRON)
    assert r.status_code == 200
    body = r.json()
    assert body["total_sent"] == 0
    assert body["pto_sent"] == 0
    assert body["milestone_sent"] == 0
    assert body["timezone"] == "UTC"
    assert body["message"] == "No due reminders (PTO or milestones)."
