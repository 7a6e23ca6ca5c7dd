from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False
    )


class CaseTypeRecord(Base):
    """Lookup of request types such as "Legal Investigation" or "Legal Assistance"."""

    __tablename__ = "request_types"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)


class StaffRecord(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    role: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="ACTIVE")


class DocketRecord(TimestampMixin, Base):
    """One complaint or investigation file."""

    __tablename__ = "dockets"
    __table_args__ = (
        CheckConstraint("deadline >= date_received", name="ck_dockets_deadline_after_received"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    docket_number: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    date_received: Mapped[date] = mapped_column(Date, nullable=False)
    deadline: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str | None] = mapped_column(String, nullable=True, default="PENDING", index=True)
    type_of_request_id: Mapped[str | None] = mapped_column(
        ForeignKey("request_types.id"), nullable=True, index=True
    )
    metadata_json: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    case_type: Mapped[CaseTypeRecord | None] = relationship()
    staff: Mapped[list[DocketStaffRecord]] = relationship(
        back_populates="docket", cascade="all, delete-orphan", passive_deletes=True
    )


class DocketStaffRecord(Base):
    """Assignment of a staff member to a docket."""

    __tablename__ = "docket_staff"

    docket_id: Mapped[str] = mapped_column(
        ForeignKey("dockets.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    docket: Mapped[DocketRecord] = relationship(back_populates="staff")


class ReminderRunRecord(Base):
    """
    One row per scheduler invocation.

    Lets operators tell a clean run from a run with per-case failures and from one
    that aborted before scanning.
    """

    __tablename__ = "reminder_runs"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    trigger: Mapped[str] = mapped_column(String, nullable=False)  # cron|manual
    run_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)  # running|success|partial|failed
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), nullable=False
    )
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cases_scanned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    successes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failures: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    skipped: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)


class ReminderEventRecord(Base):
    __tablename__ = "reminder_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    docket_id: Mapped[str] = mapped_column(
        ForeignKey("dockets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    docket_number: Mapped[str] = mapped_column(String, nullable=False)
    kind: Mapped[str] = mapped_column(String, nullable=False)  # pre-deadline|overdue
    trigger_day: Mapped[int] = mapped_column(Integer, nullable=False)
    deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    recipients: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    run_id: Mapped[str | None] = mapped_column(
        ForeignKey("reminder_runs.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), nullable=False
    )

    notifications: Mapped[list[NotificationRecord]] = relationship(back_populates="reminder_event")


class NotificationRecord(Base):
    """In-app notification shown to a single recipient."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[str] = mapped_column(String, nullable=False)
    docket_id: Mapped[str | None] = mapped_column(
        ForeignKey("dockets.id", ondelete="SET NULL"), nullable=True
    )
    reminder_event_id: Mapped[int | None] = mapped_column(
        ForeignKey("reminder_events.id", ondelete="SET NULL"), nullable=True
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), nullable=False
    )

    reminder_event: Mapped[ReminderEventRecord | None] = relationship(back_populates="notifications")
