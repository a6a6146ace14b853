"""
hr_portal.db.repositories.reminders

Repository for scheduled HR reminders.

Responsibilities:
- Read the single `hr_settings` row.
- Query unsent PTO and milestone reminders due on or before a local date.
- Mark reminders as sent and record the run time.
"""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hr_portal.db.models import HrEmployee, HrEmployeeEventReminder, HrSettings, utcnow


class ReminderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_settings(self) -> HrSettings | None:
        return await self._session.get(HrSettings, True)

    async def due_pto(self, today: date) -> list[HrEmployee]:
        stmt = (
            select(HrEmployee)
            .where(
                HrEmployee.has_pto.is_(True),
                HrEmployee.pto_reminder_date.is_not(None),
                HrEmployee.pto_reminder_date <= today,
                HrEmployee.pto_reminder_sent_at.is_(None),
            )
            .order_by(HrEmployee.pto_reminder_date)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def due_milestones(self, today: date) -> list[HrEmployeeEventReminder]:
        # Due date is derived (event_date - days_before), so filter in Python.
        stmt = (
            select(HrEmployeeEventReminder)
            .where(
                HrEmployeeEventReminder.sent_at.is_(None),
                HrEmployeeEventReminder.event_date.is_not(None),
            )
            .order_by(HrEmployeeEventReminder.event_date)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [r for r in rows if r.due_date <= today]

    async def employee_names(self, employee_ids: set[uuid.UUID]) -> dict[uuid.UUID, tuple[str, str]]:
        if not employee_ids:
            return {}
        stmt = select(HrEmployee).where(HrEmployee.id.in_(employee_ids))
        return {
            e.id: (e.legal_first_name, e.legal_last_name)
            for e in (await self._session.execute(stmt)).scalars()
        }

    async def mark_pto_sent(self, employee_id: uuid.UUID) -> None:
        await self._session.execute(
            update(HrEmployee)
            .where(HrEmployee.id == employee_id)
            .values(pto_reminder_sent_at=utcnow())
        )

    async def mark_milestone_sent(self, reminder_id: uuid.UUID) -> None:
        await self._session.execute(
            update(HrEmployeeEventReminder)
            .where(HrEmployeeEventReminder.id == reminder_id)
            .values(sent_at=utcnow())
        )

    async def touch_last_ran(self) -> None:
        await self._session.execute(
            update(HrSettings).where(HrSettings.id.is_(True)).values(reminders_last_ran_at=utcnow())
        )
