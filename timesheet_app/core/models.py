"""Domain data models for timers, worklogs, timesheet rows and Jira tickets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class Timer:
    id: int
    issue_key: str
    summary: str
    started_at: datetime
    elapsed_seconds: int = 0
    paused: bool = False
    # Start of the interval not yet credited: pause instant or last resume
    pause_start: datetime | None = None


@dataclass(slots=True, frozen=True)
class HistoryEntry:
    issue_key: str
    summary: str
    elapsed_seconds: int
    logged: bool
    stopped_at: datetime


@dataclass(slots=True, frozen=True)
class TimesheetEntry:
    issue_key: str
    summary: str
    date: str
    time_spent_seconds: int


@dataclass(slots=True)
class WorklogEntry:
    author_account_id: str
    time_spent_seconds: int
    started: str


@dataclass(slots=True)
class WorklogContainer:
    total: int
    max_results: int
    worklogs: list[WorklogEntry] = field(default_factory=list)

    @property
    def is_truncated(self) -> bool:
        return self.total > len(self.worklogs)


@dataclass(slots=True)
class WorklogIssue:
    key: str
    summary: str
    worklog: WorklogContainer | None = None


# Jira browsing records ------------------------------------------------------
@dataclass(slots=True)
class JiraProject:
    key: str
    name: str


@dataclass(slots=True)
class JiraTicket:
    key: str
    summary: str
    status: str
    time_spent_seconds: int = 0


@dataclass(slots=True)
class JiraTransition:
    id: str
    name: str


@dataclass(slots=True)
class JiraTicketDetail:
    key: str
    summary: str
    status: str
    description: str = ""
    priority: str = ""
    assignee: str = ""
    reporter: str = ""
    issue_type: str = ""
    labels: list[str] = field(default_factory=list)
    created: str = ""
    updated: str = ""
    time_spent_seconds: int = 0
    time_estimate_seconds: int = 0
    time_remaining_seconds: int = 0
