from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from allowance_server.db import models  # noqa: F401
from allowance_server.infrastructure.database.base import Base
from allowance_server.infrastructure.memory import InMemoryClaimStore
from allowance_server.modules.allowances import AllowanceRules
from allowance_server.modules.attendance import (
    AttendanceAggregator,
    AttendanceRecord,
    CorrectionStatus,
    InternProfile,
    LeaveRecord,
    LeaveStatus,
    LifecycleStatus,
    TimeCorrection,
    WorkMode,
)


@dataclass
class InMemoryAttendance:
    profiles: dict[str, InternProfile] = field(default_factory=dict)
    records: list[AttendanceRecord] = field(default_factory=list)
    leaves: list[LeaveRecord] = field(default_factory=list)
    corrections: list[TimeCorrection] = field(default_factory=list)

    def add_profile(
        self,
        intern_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: LifecycleStatus = LifecycleStatus.ACTIVE,
    ) -> InternProfile:
        profile = InternProfile(intern_id=intern_id, start_date=start, end_date=end, lifecycle_status=status)
        self.profiles[intern_id] = profile
        return profile

    def add_days(self, intern_id: str, first: date, count: int, mode: WorkMode = WorkMode.WFO) -> None:
        for offset in range(count):
            day = first + timedelta(days=offset)
            self.records.append(AttendanceRecord(intern_id, day, mode, clock_in_at=datetime.combine(day, time(9))))

    def add_leave(
        self,
        intern_id: str,
        start: date,
        end: date,
        status: LeaveStatus = LeaveStatus.APPROVED,
    ) -> None:
        self.leaves.append(LeaveRecord(intern_id, start, end, status))

    def add_correction(
        self,
        intern_id: str,
        work_date: date,
        status: CorrectionStatus = CorrectionStatus.PENDING,
    ) -> TimeCorrection:
        correction = TimeCorrection(intern_id, work_date, status)
        self.corrections.append(correction)
        return correction

    async def get_profile(self, intern_id: str) -> Optional[InternProfile]:
        return self.profiles.get(intern_id)

    async def list_attendance(self, intern_id, start, end):
        return [
            record
            for record in self.records
            if record.intern_id == intern_id
            and (start is None or record.work_date >= start)
            and (end is None or record.work_date <= end)
        ]

    async def list_approved_leaves(self, intern_id, start, end):
        return [
            leave
            for leave in self.leaves
            if leave.intern_id == intern_id
            and leave.status is LeaveStatus.APPROVED
            and (start is None or leave.end_date >= start)
            and (end is None or leave.start_date <= end)
        ]

    async def list_pending_corrections(self, intern_id):
        return [
            correction
            for correction in self.corrections
            if correction.intern_id == intern_id and correction.status is CorrectionStatus.PENDING
        ]


class UnreachableSession:
    """Session double whose every round trip fails like a dropped connection."""

    @staticmethod
    def _failure() -> OperationalError:
        return OperationalError("SELECT 1", {}, ConnectionRefusedError("db down"))

    async def execute(self, *args, **kwargs):
        raise self._failure()

    async def commit(self):
        raise self._failure()

    async def rollback(self):
        return None


@pytest.fixture
def rules() -> AllowanceRules:
    return AllowanceRules()


@pytest.fixture
def attendance() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def aggregator(attendance: InMemoryAttendance) -> AttendanceAggregator:
    return AttendanceAggregator(attendance)


@pytest.fixture
def memory_store() -> InMemoryClaimStore:
    return InMemoryClaimStore()


@pytest.fixture
def unreachable_session() -> UnreachableSession:
    return UnreachableSession()


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'allowances.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
