"""Attendance aggregation exports."""

from .aggregator import AttendanceAggregator
from .models import (
    AttendanceRecord,
    CorrectionStatus,
    InternProfile,
    LeaveRecord,
    LeaveStatus,
    LifecycleStatus,
    TimeCorrection,
    WorkMode,
)
from .repository import AttendanceRepository

__all__ = [
    "AttendanceAggregator",
    "AttendanceRecord",
    "AttendanceRepository",
    "CorrectionStatus",
    "InternProfile",
    "LeaveRecord",
    "LeaveStatus",
    "LifecycleStatus",
    "TimeCorrection",
    "WorkMode",
]
