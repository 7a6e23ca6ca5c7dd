from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.orm import sessionmaker

from docketwatch.clients import CaseStore, NotificationSink, RestDocketClient
from docketwatch.config import Settings
from docketwatch.errors import ConfigurationError
from docketwatch.reminders import ReminderScheduler
from docketwatch.storage import SqlCaseStore, SqlNotificationSink, create_session_factory, init_db


@dataclass
class Backends:
    """The case store, notification sink, and optional run ledger chosen by configuration."""

    store: CaseStore
    sink: NotificationSink
    session_factory: sessionmaker | None = None
    close: Callable[[], None] = field(default=lambda: None)

    def scheduler(self, settings: Settings) -> ReminderScheduler:
        return ReminderScheduler.from_settings(
            settings, self.store, self.sink, session_factory=self.session_factory
        )

    def __enter__(self) -> "Backends":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


def build_backends(settings: Settings) -> Backends:
    if settings.case_store == "rest":
        if not settings.rest_api_key:
            raise ConfigurationError("DOCKETWATCH_REST_API_KEY is required for the rest case store")
        client = RestDocketClient(
            settings.rest_base_url,
            settings.rest_api_key,
            timeout=settings.rest_timeout,
            user_agent=settings.user_agent,
            max_retries=settings.rest_max_retries,
            backoff_seconds=settings.rest_backoff_seconds,
            max_backoff_seconds=settings.rest_max_backoff_seconds,
        )
        return Backends(store=client, sink=client, close=client.close)

    session_factory, engine = create_session_factory(settings.database_url)
    init_db(engine)
    return Backends(
        store=SqlCaseStore(session_factory),
        sink=SqlNotificationSink(session_factory),
        session_factory=session_factory,
        close=engine.dispose,
    )
