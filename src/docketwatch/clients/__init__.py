from .base import CaseStore, NotificationSink
from .fixture import FixtureCaseStore, StaffMember
from .rest import RestDocketClient

__all__ = [
    "CaseStore",
    "FixtureCaseStore",
    "NotificationSink",
    "RestDocketClient",
    "StaffMember",
]
