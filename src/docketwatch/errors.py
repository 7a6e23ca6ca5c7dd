from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docketwatch.types import ReminderRunReport


class DocketWatchError(Exception):
    """Base class for errors raised by docketwatch."""


class InvalidInputError(DocketWatchError, ValueError):
    """A date, status, or case number could not be interpreted."""


class ConfigurationError(DocketWatchError):
    """The deployment is missing something a run needs before it can start."""


class UnauthorizedError(ConfigurationError):
    """The presented trigger secret does not match the configured one."""


class ManualTriggerError(DocketWatchError, ValueError):
    """A manual reminder trigger was rejected before anything was emitted."""


class CaseNotFoundError(DocketWatchError, LookupError):
    """No case exists with the requested case number."""


class ReminderRunError(DocketWatchError):
    """
    Fatal error for a whole scheduler run.

    The aborted run's report is attached so callers can still show what happened.
    """

    def __init__(self, message: str, report: ReminderRunReport | None = None) -> None:
        super().__init__(message)
        self.report = report


class CaseTypeLookupError(ReminderRunError, ConfigurationError):
    """The targeted case type could not be resolved to an identifier."""


class CaseFetchError(ReminderRunError):
    """The open-case scan failed."""


class RunBudgetExceeded(ReminderRunError):
    """The run could not finish the full scan within its time budget."""
