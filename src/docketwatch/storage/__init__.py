from .database import create_session_factory, init_db
from .models import (
    Base,
    CaseTypeRecord,
    DocketRecord,
    DocketStaffRecord,
    NotificationRecord,
    ReminderEventRecord,
    ReminderRunRecord,
    StaffRecord,
)
from .store import SeedStats, SqlCaseStore, SqlNotificationSink, seed_from_fixture

__all__ = [
    "Base",
    "CaseTypeRecord",
    "DocketRecord",
    "DocketStaffRecord",
    "NotificationRecord",
    "ReminderEventRecord",
    "ReminderRunRecord",
    "SeedStats",
    "SqlCaseStore",
    "SqlNotificationSink",
    "StaffRecord",
    "create_session_factory",
    "init_db",
    "seed_from_fixture",
]
