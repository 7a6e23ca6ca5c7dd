from datetime import date

from sqlalchemy import func, inspect, select

from docketwatch.clients import FixtureCaseStore
from docketwatch.reminders import ReminderScheduler
from docketwatch.storage import (
    DocketRecord,
    NotificationRecord,
    ReminderEventRecord,
    ReminderRunRecord,
    SqlCaseStore,
    SqlNotificationSink,
    create_session_factory,
    init_db,
    seed_from_fixture,
)
from docketwatch.types import ReminderKind

RUN_DATE = date(2024, 2, 16)


def _seeded(tmp_path, fixture_path):
    session_factory, engine = create_session_factory(f"sqlite:///{tmp_path / 'dockets.db'}")
    init_db(engine)
    seed_from_fixture(session_factory, FixtureCaseStore(fixture_path))
    return session_factory


def test_seed_is_repeatable(tmp_path, fixture_path):
    session_factory = _seeded(tmp_path, fixture_path)
    stats = seed_from_fixture(session_factory, FixtureCaseStore(fixture_path))

    assert stats.dockets == 6
    with session_factory() as session:
        assert session.scalar(select(func.count()).select_from(DocketRecord)) == 6


def test_sql_case_store_lists_open_investigations(tmp_path, fixture_path):
    store = SqlCaseStore(_seeded(tmp_path, fixture_path))

    type_id = store.resolve_case_type_id("Legal Investigation")
    open_cases = list(store.list_open_cases(type_id))

    assert type_id == "type-li"
    assert [case.case_number for case in open_cases] == [
        "CHR-VII-2024-005",
        "CHR-VII-2024-001",
        "CHR-VII-2024-002",
    ]
    assert open_cases[1].assigned_staff_ids == ("staff-001", "staff-002")
    assert store.resolve_case_type_id("Unknown Type") is None
    assert store.get_case_by_number("CHR-VII-2024-404") is None
    assert len(list(store.list_cases())) == 6


def test_scheduler_run_writes_events_notifications_and_run_record(tmp_path, fixture_path):
    session_factory = _seeded(tmp_path, fixture_path)
    scheduler = ReminderScheduler(
        SqlCaseStore(session_factory),
        SqlNotificationSink(session_factory),
        session_factory=session_factory,
    )

    report = scheduler.run(RUN_DATE)

    assert report.status == "success"
    assert report.cases_scanned == 3
    assert {(item.case_number, item.kind, item.trigger_day) for item in report.outcomes} == {
        ("CHR-VII-2024-001", ReminderKind.PRE_DEADLINE, 45),
        ("CHR-VII-2024-005", ReminderKind.OVERDUE, 30),
    }

    with session_factory() as session:
        events = session.scalars(select(ReminderEventRecord).order_by(ReminderEventRecord.id)).all()
        assert len(events) == 2
        notifications = session.scalars(
            select(NotificationRecord).order_by(NotificationRecord.user_id)
        ).all()
        assert [n.user_id for n in notifications] == ["staff-001", "staff-002"]
        assert notifications[0].notification_type == "deadline"
        assert notifications[0].title == "Investigation Reminder: Day 45"
        assert "15 days remaining until the deadline on 03/02/2024" in notifications[0].message

        run = session.get(ReminderRunRecord, report.run_id)
        assert run is not None
        assert run.status == "success"
        assert run.trigger == "cron"
        assert run.attempts == 2
        assert run.finished_at is not None


def test_sql_sink_dedupe_lookup(tmp_path, fixture_path):
    session_factory = _seeded(tmp_path, fixture_path)
    sink = SqlNotificationSink(session_factory)
    scheduler = ReminderScheduler(SqlCaseStore(session_factory), sink, dedupe=True)

    scheduler.run(RUN_DATE)
    second = scheduler.run(RUN_DATE)

    assert sink.has_reminder("docket-001", ReminderKind.PRE_DEADLINE, 45)
    assert not sink.has_reminder("docket-001", ReminderKind.PRE_DEADLINE, 50)
    assert second.skipped == 2
    with session_factory() as session:
        assert session.scalar(select(func.count()).select_from(ReminderEventRecord)) == 2


def test_docket_with_unknown_status_is_left_out_of_listings(tmp_path, fixture_path):
    session_factory = _seeded(tmp_path, fixture_path)
    with session_factory() as session:
        session.add(
            DocketRecord(
                id="docket-900",
                docket_number="CHR-VII-2024-900",
                date_received=date(2024, 1, 2),
                deadline=date(2024, 3, 2),
                status="ARCHIVED",
                type_of_request_id="type-li",
            )
        )
        session.commit()

    cases = list(SqlCaseStore(session_factory).list_cases())

    assert len(cases) == 6
    assert "CHR-VII-2024-900" not in {case.case_number for case in cases}


def test_init_db_creates_reminder_tables(tmp_path):
    session_factory, engine = create_session_factory(f"sqlite:///{tmp_path / 'fresh.db'}")
    init_db(engine)

    assert {"dockets", "reminder_runs"} <= set(inspect(engine).get_table_names())
    with session_factory() as session:
        assert session.scalar(select(func.count()).select_from(ReminderRunRecord)) == 0
