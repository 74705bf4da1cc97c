"""Read-only attendance, leave and intern lifecycle models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class WorkMode(str, Enum):
    WFO = "WFO"
    WFH = "WFH"


class LeaveStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class CorrectionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LifecycleStatus(str, Enum):
    ACTIVE = "ACTIVE"
    WITHDRAWAL_REQUESTED = "WITHDRAWAL_REQUESTED"
    OFFBOARDING_REQUESTED = "OFFBOARDING_REQUESTED"
    WITHDRAWN = "WITHDRAWN"
    COMPLETED = "COMPLETED"


@dataclass(slots=True)
class InternProfile:
    intern_id: str
    start_date: Optional[date]
    end_date: Optional[date]
    lifecycle_status: LifecycleStatus = LifecycleStatus.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.lifecycle_status is LifecycleStatus.COMPLETED


@dataclass(slots=True)
class AttendanceRecord:
    intern_id: str
    work_date: date
    work_mode: WorkMode
    clock_in_at: Optional[datetime] = None

    @property
    def is_worked(self) -> bool:
        return self.clock_in_at is not None


@dataclass(slots=True)
class LeaveRecord:
    intern_id: str
    start_date: date
    end_date: date
    status: LeaveStatus


@dataclass(slots=True)
class TimeCorrection:
    """A request to amend a day's clock-in or clock-out times."""

    intern_id: str
    work_date: date
    status: CorrectionStatus
