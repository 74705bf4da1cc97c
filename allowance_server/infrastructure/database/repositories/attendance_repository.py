"""SQLAlchemy implementation of the attendance repository."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from allowance_server.db.models import (
    AttendanceRecord as AttendanceModel,
    InternProfile as ProfileModel,
    LeaveRequest as LeaveModel,
    TimeCorrectionRequest as CorrectionModel,
)
from allowance_server.infrastructure.database.errors import execute
from allowance_server.modules.attendance.models import (
    AttendanceRecord,
    CorrectionStatus,
    InternProfile,
    LeaveRecord,
    LeaveStatus,
    LifecycleStatus,
    TimeCorrection,
    WorkMode,
)


class SqlAttendanceRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_profile(self, intern_id: str) -> InternProfile | None:
        stmt = select(ProfileModel).where(ProfileModel.id == intern_id)
        result = await execute(self.session, stmt)
        model = result.scalars().first()
        if model is None:
            return None
        return InternProfile(
            intern_id=model.id,
            start_date=model.start_date,
            end_date=model.end_date,
            lifecycle_status=LifecycleStatus(model.lifecycle_status or LifecycleStatus.ACTIVE.value),
        )

    async def list_attendance(
        self,
        intern_id: str,
        start: Optional[date],
        end: Optional[date],
    ) -> list[AttendanceRecord]:
        """Return the days the intern clocked in on, oldest first."""
        stmt = select(AttendanceModel).where(
            AttendanceModel.intern_id == intern_id,
            AttendanceModel.clock_in_at.is_not(None),
        )
        if start is not None:
            stmt = stmt.where(AttendanceModel.work_date >= start)
        if end is not None:
            stmt = stmt.where(AttendanceModel.work_date <= end)
        result = await execute(self.session, stmt.order_by(AttendanceModel.work_date))
        return [
            AttendanceRecord(
                intern_id=model.intern_id,
                work_date=model.work_date,
                work_mode=WorkMode.WFH if model.work_mode == WorkMode.WFH.value else WorkMode.WFO,
                clock_in_at=model.clock_in_at,
            )
            for model in result.scalars().all()
        ]

    async def list_approved_leaves(
        self,
        intern_id: str,
        start: Optional[date],
        end: Optional[date],
    ) -> list[LeaveRecord]:
        stmt = select(LeaveModel).where(
            LeaveModel.intern_id == intern_id,
            LeaveModel.status == LeaveStatus.APPROVED.value,
        )
        if start is not None:
            stmt = stmt.where(LeaveModel.end_date >= start)
        if end is not None:
            stmt = stmt.where(LeaveModel.start_date <= end)
        result = await execute(self.session, stmt.order_by(LeaveModel.start_date))
        return [
            LeaveRecord(
                intern_id=model.intern_id,
                start_date=model.start_date,
                end_date=model.end_date,
                status=LeaveStatus(model.status),
            )
            for model in result.scalars().all()
        ]

    async def list_pending_corrections(self, intern_id: str) -> list[TimeCorrection]:
        stmt = (
            select(CorrectionModel)
            .where(
                CorrectionModel.intern_id == intern_id,
                CorrectionModel.status == CorrectionStatus.PENDING.value,
            )
            .order_by(CorrectionModel.work_date)
        )
        result = await execute(self.session, stmt)
        return [
            TimeCorrection(
                intern_id=model.intern_id,
                work_date=model.work_date,
                status=CorrectionStatus(model.status),
            )
            for model in result.scalars().all()
        ]
