"""Typed failures surfaced by timers, the Jira client and worklog reconciliation."""

from __future__ import annotations


class TimesheetError(Exception):
    """Base class for every error the core reports to its callers."""


class ConfigurationError(TimesheetError):
    pass


# =============================================================================
# Timer registry
# =============================================================================
class TimerError(TimesheetError):
    pass


class DuplicateTimer(TimerError):
    def __init__(self, issue_key: str):
        super().__init__(f"Timer already running for {issue_key}")
        self.issue_key = issue_key


class TimerNotFound(TimerError):
    def __init__(self, timer_id: int):
        super().__init__(f"Timer not found: {timer_id}")
        self.timer_id = timer_id


class AlreadyPaused(TimerError):
    def __init__(self, timer_id: int):
        super().__init__(f"Timer already paused: {timer_id}")
        self.timer_id = timer_id


class NotPaused(TimerError):
    def __init__(self, timer_id: int):
        super().__init__(f"Timer is not paused: {timer_id}")
        self.timer_id = timer_id


class WorklogTooShort(TimesheetError):
    def __init__(self, elapsed_seconds: int, minimum_seconds: int):
        super().__init__(f"Worklog must be at least {minimum_seconds // 60} minute(s), got {elapsed_seconds}s")
        self.elapsed_seconds = elapsed_seconds
        self.minimum_seconds = minimum_seconds


# =============================================================================
# Reconciliation input
# =============================================================================
class InvalidDateRange(TimesheetError, ValueError):
    pass


# =============================================================================
# Upstream (Jira) failures
# =============================================================================
class UpstreamError(TimesheetError, RuntimeError):
    """A Jira call failed; ``stage`` names the request that failed."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage


class UpstreamRequestFailed(UpstreamError):
    def __init__(self, stage: str, cause: BaseException | str):
        super().__init__(stage, f"Request failed: {cause}")
        self.cause = cause


class UpstreamBadStatus(UpstreamError):
    def __init__(self, stage: str, status: int | None, body: str):
        super().__init__(stage, f"Jira API error {status}: {body[:200]}")
        self.status = status
        self.body = body


class UpstreamMalformedResponse(UpstreamError):
    def __init__(self, stage: str, detail: str):
        super().__init__(stage, f"Parse error: {detail}")
        self.detail = detail
