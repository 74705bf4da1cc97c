"""Attendance aggregation into allowance breakdowns."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from allowance_server.modules.allowances.models import Breakdown
from allowance_server.modules.allowances.periods import period_bounds

from .models import CorrectionStatus, InternProfile, LeaveStatus, TimeCorrection, WorkMode
from .repository import AttendanceRepository


def _later(a: Optional[date], b: Optional[date]) -> Optional[date]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def _earlier(a: Optional[date], b: Optional[date]) -> Optional[date]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _within(day: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


@dataclass(slots=True)
class AttendanceAggregator:
    repository: AttendanceRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AttendanceAggregator":
        from allowance_server.infrastructure.database.repositories.attendance_repository import (
            SqlAttendanceRepository,
        )

        return cls(SqlAttendanceRepository(session))

    async def get_profile(self, intern_id: str) -> InternProfile | None:
        return await self.repository.get_profile(intern_id)

    async def pending_corrections(self, intern_id: str) -> list[TimeCorrection]:
        corrections = await self.repository.list_pending_corrections(intern_id)
        return [
            correction
            for correction in corrections
            if correction.intern_id == intern_id and correction.status is CorrectionStatus.PENDING
        ]

    async def breakdown_for(self, intern_id: str, period_key: str) -> Breakdown:
        """Count work-from-office, work-from-home and leave days in a period.

        The window is the period intersected with the internship lifecycle.
        Only days with a clock-in count as worked. Every day counts at most
        once per category.
        """
        start, end = period_bounds(period_key)
        profile = await self.repository.get_profile(intern_id)
        if profile is not None:
            start = _later(start, profile.start_date)
            end = _earlier(end, profile.end_date)
        if start is not None and end is not None and start > end:
            return Breakdown()

        modes: dict[date, WorkMode] = {}
        for record in await self.repository.list_attendance(intern_id, start, end):
            if record.intern_id != intern_id or not record.is_worked:
                continue
            if not _within(record.work_date, start, end):
                continue
            modes[record.work_date] = record.work_mode

        leave_days: set[date] = set()
        for leave in await self.repository.list_approved_leaves(intern_id, start, end):
            if leave.intern_id != intern_id or leave.status is not LeaveStatus.APPROVED:
                continue
            first = _later(leave.start_date, start)
            last = _earlier(leave.end_date, end)
            day = first
            while day <= last:
                leave_days.add(day)
                day += timedelta(days=1)

        wfo = sum(1 for mode in modes.values() if mode is WorkMode.WFO)
        return Breakdown(wfo=wfo, wfh=len(modes) - wfo, leaves=len(leave_days))
