from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import selectinload, sessionmaker

from docketwatch.clients.base import CaseStore, NotificationSink
from docketwatch.clients.fixture import FixtureCaseStore
from docketwatch.errors import InvalidInputError
from docketwatch.messages import notification_type, render_reminder
from docketwatch.status import parse_raw_status
from docketwatch.storage.models import (
    CaseTypeRecord,
    DocketRecord,
    DocketStaffRecord,
    NotificationRecord,
    ReminderEventRecord,
    StaffRecord,
)
from docketwatch.types import Case, RawStatus, ReminderEvent, ReminderKind

logger = logging.getLogger(__name__)


class SqlCaseStore(CaseStore):
    """Case store reading the ``dockets`` tables through SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def resolve_case_type_id(self, name: str) -> str | None:
        with self.session_factory() as session:
            return session.scalar(select(CaseTypeRecord.id).where(CaseTypeRecord.name == name))

    def list_open_cases(self, case_type_id: str) -> Iterable[Case]:
        # Materialized so the whole scan either succeeds or fails before any reminder is sent.
        with self.session_factory() as session:
            records = session.scalars(
                select(DocketRecord)
                .options(selectinload(DocketRecord.staff))
                .where(DocketRecord.type_of_request_id == case_type_id)
                .where(DocketRecord.status == RawStatus.PENDING.value)
                .order_by(DocketRecord.date_received, DocketRecord.id)
            ).all()
            return list(_readable_cases(records))

    def list_cases(self, case_type_id: str | None = None) -> Iterable[Case]:
        query = select(DocketRecord).options(selectinload(DocketRecord.staff))
        if case_type_id is not None:
            query = query.where(DocketRecord.type_of_request_id == case_type_id)
        with self.session_factory() as session:
            records = session.scalars(query.order_by(DocketRecord.date_received, DocketRecord.id)).all()
            return list(_readable_cases(records))

    def get_case_by_number(self, case_number: str) -> Case | None:
        with self.session_factory() as session:
            record = session.scalar(
                select(DocketRecord)
                .options(selectinload(DocketRecord.staff))
                .where(DocketRecord.docket_number == case_number)
            )
            return _case_from_record(record) if record is not None else None


class SqlNotificationSink(NotificationSink):
    """Writes reminder events and one in-app notification per recipient."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def record_reminder(self, event: ReminderEvent) -> None:
        title, message = render_reminder(event)
        with self.session_factory() as session:
            event_record = ReminderEventRecord(
                docket_id=event.case_id,
                docket_number=event.case_number,
                kind=event.kind.value,
                trigger_day=event.trigger_day,
                deadline=event.deadline,
                recipients=list(event.recipients),
                run_id=event.run_id,
                created_at=event.created_at,
            )
            session.add(event_record)
            session.flush()
            for recipient in event.recipients:
                session.add(
                    NotificationRecord(
                        user_id=recipient,
                        title=title,
                        message=message,
                        notification_type=notification_type(event),
                        docket_id=event.case_id,
                        reminder_event_id=event_record.id,
                        is_read=False,
                        created_at=event.created_at,
                    )
                )
            session.commit()

    def has_reminder(self, case_id: str, kind: ReminderKind, trigger_day: int) -> bool:
        with self.session_factory() as session:
            existing = session.scalar(
                select(ReminderEventRecord.id)
                .where(ReminderEventRecord.docket_id == case_id)
                .where(ReminderEventRecord.kind == kind.value)
                .where(ReminderEventRecord.trigger_day == trigger_day)
                .limit(1)
            )
            return existing is not None


@dataclass
class SeedStats:
    case_types: int = 0
    staff: int = 0
    dockets: int = 0


def seed_from_fixture(session_factory: sessionmaker, fixture: FixtureCaseStore) -> SeedStats:
    """Upsert the fixture's case types, staff, and dockets in a single transaction."""

    stats = SeedStats()
    with session_factory() as session:
        for type_id, name in fixture.case_types.items():
            session.merge(CaseTypeRecord(id=type_id, name=name))
            stats.case_types += 1
        for member in fixture.staff:
            session.merge(
                StaffRecord(
                    id=member.id,
                    first_name=member.first_name,
                    last_name=member.last_name,
                    email=member.email,
                    role=member.role,
                )
            )
            stats.staff += 1
        session.flush()
        for case in fixture.cases:
            record = session.merge(
                DocketRecord(
                    id=case.id,
                    docket_number=case.case_number,
                    date_received=case.date_received,
                    deadline=case.deadline,
                    status=case.raw_status.value if case.raw_status else None,
                    type_of_request_id=case.case_type_id,
                    metadata_json=dict(case.metadata),
                )
            )
            wanted = set(case.assigned_staff_ids)
            current = {link.user_id for link in record.staff}
            record.staff = [link for link in record.staff if link.user_id in wanted] + [
                DocketStaffRecord(user_id=staff_id) for staff_id in sorted(wanted - current)
            ]
            stats.dockets += 1
        session.commit()
    logger.info("Seeded fixture data", extra=stats.__dict__)
    return stats


def _case_from_record(record: DocketRecord) -> Case:
    return Case(
        id=record.id,
        case_number=record.docket_number,
        date_received=record.date_received,
        deadline=record.deadline,
        raw_status=parse_raw_status(record.status),
        case_type_id=record.type_of_request_id,
        assigned_staff_ids=tuple(sorted(link.user_id for link in record.staff)),
        metadata=record.metadata_json or {},
    )


def _readable_cases(records: Iterable[DocketRecord]) -> Iterable[Case]:
    for record in records:
        try:
            yield _case_from_record(record)
        except InvalidInputError as exc:
            logger.warning(
                "Skipping unreadable docket",
                extra={"docket_id": record.id, "docket_number": record.docket_number, "error": str(exc)},
            )
