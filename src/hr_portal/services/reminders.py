"""
hr_portal.services.reminders

Daily HR reminder run (PTO and milestone e-mails to the HR admin).

Responsibilities:
- Decide whether the run is due in the organisation's time zone.
- E-mail every unsent PTO and milestone reminder due up to the local date.
- Mark reminders as sent and record the run time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.ext.asyncio import AsyncSession

from hr_portal.clients.email import EmailClient
from hr_portal.db.repositories.reminders import ReminderRepo
from hr_portal.observability.logging import get_logger

log = get_logger(__name__)

DEFAULT_TIME = time(9, 0)
SUBJECT_PREFIX = "SING HR System Message"


class RemindersNotConfigured(Exception):
    pass


@dataclass(frozen=True, slots=True)
class ReminderRunResult:
    total_sent: int
    message: str
    pto_sent: int = 0
    milestone_sent: int = 0
    timezone: str | None = None
    ran_for_local_date: str | None = None

    def as_dict(self) -> dict[str, object]:
        body: dict[str, object] = {"total_sent": self.total_sent, "message": self.message}
        if self.timezone is not None:
            body.update(
                pto_sent=self.pto_sent,
                milestone_sent=self.milestone_sent,
                timezone=self.timezone,
                ran_for_local_date=self.ran_for_local_date,
            )
        return body


def us_date(value: date) -> str:
    # M/D/YYYY without leading zeros.
    return f"{value.month}/{value.day}/{value.year}"


def local_now(now: datetime, tz_name: str) -> datetime:
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning("unknown_timezone", timezone=tz_name)
        zone = ZoneInfo("UTC")
    return now.astimezone(zone)


class ReminderService:
    def __init__(self, *, session: AsyncSession, email: EmailClient | None) -> None:
        self._session = session
        self._email = email
        self._repo = ReminderRepo(session)

    async def run(self, *, now: datetime | None = None) -> ReminderRunResult:
        settings = await self._repo.get_settings()
        if settings is None or not settings.admin_email:
            return ReminderRunResult(0, "hr_settings.admin_email not set")
        if not settings.reminders_enabled:
            return ReminderRunResult(
                0, "Reminders disabled (hr_settings.reminders_enabled=false)."
            )
        email = self._email
        if email is None:
            raise RemindersNotConfigured("Missing e-mail API key.")

        tz_name = settings.reminders_tz or "UTC"
        scheduled = settings.reminders_time or DEFAULT_TIME
        local = local_now(now or datetime.now(UTC), tz_name)

        if (local.hour, local.minute) < (scheduled.hour, scheduled.minute):
            return ReminderRunResult(
                0,
                f"Not time yet. Local now={local:%H:%M} {tz_name}, "
                f"scheduled={scheduled.hour:02d}:{scheduled.minute:02d}",
            )

        today = local.date()
        to = settings.admin_email
        pto_sent = await self._send_pto(email, to, today)
        milestone_sent = await self._send_milestones(email, to, today)
        total = pto_sent + milestone_sent

        if total:
            await self._repo.touch_last_ran()
        await self._session.commit()

        log.info("reminders_run", pto_sent=pto_sent, milestone_sent=milestone_sent, local_date=today.isoformat())
        return ReminderRunResult(
            total_sent=total,
            pto_sent=pto_sent,
            milestone_sent=milestone_sent,
            timezone=tz_name,
            ran_for_local_date=today.isoformat(),
            message="No due reminders (PTO or milestones)." if total == 0 else f"Sent {total} reminder(s).",
        )

    async def _send_pto(self, email: EmailClient, to: str, today: date) -> int:
        sent = 0
        for emp in await self._repo.due_pto(today):
            when = us_date(emp.pto_reminder_date or today)
            await email.send_text(
                to=to,
                subject=f"{SUBJECT_PREFIX}: PTO Reminder",
                text=(
                    f"{SUBJECT_PREFIX}:\n"
                    f"Employee: {emp.legal_first_name} {emp.legal_last_name}\n"
                    f"PTO Reminder for {when}"
                ),
            )
            await self._repo.mark_pto_sent(emp.id)
            log.info("reminder_sent", kind="pto", employee_id=str(emp.id))
            # Commit per e-mail so a later failure does not resend this one.
            await self._session.commit()
            sent += 1
        return sent

    async def _send_milestones(self, email: EmailClient, to: str, today: date) -> int:
        due = await self._repo.due_milestones(today)
        names = await self._repo.employee_names({r.employee_id for r in due})
        sent = 0
        for reminder in due:
            first, last = names.get(reminder.employee_id, ("Unknown", "Employee"))
            await email.send_text(
                to=to,
                subject=f"{SUBJECT_PREFIX}: Milestone Reminder",
                text=(
                    f"{SUBJECT_PREFIX}:\n"
                    f"Employee: {first} {last}\n"
                    f"Event: {reminder.event_type_name}\n"
                    f"Event Date: {us_date(reminder.event_date)}\n"
                    f"Reminder: {reminder.days_before} day(s) until this event"
                ),
            )
            await self._repo.mark_milestone_sent(reminder.id)
            log.info("reminder_sent", kind="milestone", reminder_id=str(reminder.id))
            await self._session.commit()
            sent += 1
        return sent
