from .batch import (
    BatchCreate,
    BatchResponse,
    BatchSchedule,
    BatchUpdate,
    CourseBatchCreate,
    RosterAdd,
    RosterEntryResponse,
    SessionAttendance,
    SessionAttendanceMark,
    SessionCreate,
    SessionResponse,
)

__all__ = [
    "BatchCreate",
    "BatchResponse",
    "BatchSchedule",
    "BatchUpdate",
    "CourseBatchCreate",
    "RosterAdd",
    "RosterEntryResponse",
    "SessionAttendance",
    "SessionAttendanceMark",
    "SessionCreate",
    "SessionResponse",
]
