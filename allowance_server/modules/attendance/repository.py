"""Repository protocol for attendance and leave data."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .models import AttendanceRecord, InternProfile, LeaveRecord, TimeCorrection


class AttendanceRepository(Protocol):
    """Read access to records owned by the attendance and leave collaborators.

    ``None`` bounds mean the range is open on that side.
    """

    async def get_profile(self, intern_id: str) -> InternProfile | None:
        ...

    async def list_attendance(
        self,
        intern_id: str,
        start: Optional[date],
        end: Optional[date],
    ) -> Sequence[AttendanceRecord]:
        ...

    async def list_approved_leaves(
        self,
        intern_id: str,
        start: Optional[date],
        end: Optional[date],
    ) -> Sequence[LeaveRecord]:
        ...

    async def list_pending_corrections(self, intern_id: str) -> Sequence[TimeCorrection]:
        ...
