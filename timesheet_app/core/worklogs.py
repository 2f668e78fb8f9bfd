"""WorklogReconciler: turn the current user's Jira worklogs into a sorted timesheet."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import UTC, date, datetime

from .config import (
    WORKLOG_FETCH_MAX_WORKERS,
    WORKLOG_FETCH_MIN_PARALLEL,
    WORKLOG_SEARCH_PAGE_SIZE,
)
from .errors import InvalidDateRange
from .jira_client import IssueSearchClient
from .models import TimesheetEntry, WorklogEntry, WorklogIssue

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]

DATE_FORMAT = "%Y-%m-%d"


def parse_day(value: str) -> date | None:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        return None


def worklog_day(started: str) -> str:
    """Calendar day of a worklog ``started`` stamp (e.g. ``2024-01-15T09:00:00.000+0000``).

    Deliberately a prefix cut, not a timezone-aware parse: Jira reports the
    day in the author's own offset and that is the day the timesheet shows.
    """
    return started[:10]


def build_worklog_jql(start: date, end: date) -> str:
    return (
        f'worklogAuthor = currentUser() AND worklogDate >= "{start.strftime(DATE_FORMAT)}" '
        f'AND worklogDate <= "{end.strftime(DATE_FORMAT)}"'
    )


def midnight_utc_millis(day: date) -> int:
    return int(datetime(day.year, day.month, day.day, tzinfo=UTC).timestamp() * 1000)


class WorklogReconciler:
    def __init__(
        self,
        client: IssueSearchClient,
        *,
        page_size: int = WORKLOG_SEARCH_PAGE_SIZE,
        max_workers: int = WORKLOG_FETCH_MAX_WORKERS,
        min_parallel: int = WORKLOG_FETCH_MIN_PARALLEL,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.client = client
        self.page_size = page_size
        self.max_workers = max_workers
        self.min_parallel = min_parallel

    def reconcile(
        self,
        start_date: str,
        end_date: str,
        *,
        progress: ProgressCallback | None = None,
    ) -> list[TimesheetEntry]:
        """Collect every worklog the current user logged within ``[start_date, end_date]``.

        Parameters
        ----------
        start_date, end_date : str
            Inclusive calendar bounds, ``YYYY-MM-DD``.
        progress : callback, optional
            Progress reporter, ``(message, current, total)``.

        Returns
        -------
        list[TimesheetEntry]
            Sorted by date, then issue key.

        Raises
        ------
        InvalidDateRange
            Unparseable or inverted bounds; raised before any request is made.
        UpstreamError
            Any failing Jira call aborts the whole reconciliation.
        """
        start = parse_day(start_date)
        end = parse_day(end_date)
        if start is None:
            raise InvalidDateRange(f"Invalid start_date: {start_date!r}")
        if end is None:
            raise InvalidDateRange(f"Invalid end_date: {end_date!r}")
        if start > end:
            raise InvalidDateRange(f"start_date {start_date} is after end_date {end_date}")

        if progress:
            progress("Resolving current Jira user", None, None)
        account_id = self.client.resolve_current_user()

        issues = self._search_all(build_worklog_jql(start, end), progress)
        worklogs = self._collect_worklogs(issues, midnight_utc_millis(start), progress)

        entries: list[TimesheetEntry] = []
        for issue in issues:
            for worklog in worklogs[issue.key]:
                if worklog.author_account_id != account_id:
                    continue
                day = worklog_day(worklog.started)
                parsed = parse_day(day)
                # Re-check the window: worklogDate in JQL is not an exact day match
                if parsed is None or parsed < start or parsed > end:
                    continue
                entries.append(
                    TimesheetEntry(
                        issue_key=issue.key,
                        summary=issue.summary,
                        date=day,
                        time_spent_seconds=worklog.time_spent_seconds,
                    )
                )
        entries.sort(key=lambda e: (e.date, e.issue_key))
        logger.info(
            "Reconciled %s worklog(s) across %s issue(s) for %s..%s",
            len(entries),
            len(issues),
            start_date,
            end_date,
        )
        return entries

    # ------------------ Internal Helpers ------------------
    def _search_all(self, jql: str, progress: ProgressCallback | None) -> list[WorklogIssue]:
        out: list[WorklogIssue] = []
        offset = 0
        while True:
            if progress:
                progress("Searching issues with your worklogs", len(out), None)
            page, fetched = self.client.search_issues(jql, self.page_size, offset)
            out.extend(page)
            if fetched < self.page_size:
                break
            offset += self.page_size
        # An issue can straddle two pages if the result set shifts between requests
        unique: dict[str, WorklogIssue] = {}
        for issue in out:
            unique.setdefault(issue.key, issue)
        return list(unique.values())

    def _collect_worklogs(
        self,
        issues: list[WorklogIssue],
        started_after_ms: int,
        progress: ProgressCallback | None,
    ) -> dict[str, list[WorklogEntry]]:
        """Embedded worklogs per issue, re-fetched for issues whose list was truncated."""
        result: dict[str, list[WorklogEntry]] = {}
        work: list[str] = []
        for issue in issues:
            container = issue.worklog
            if container is None or container.is_truncated:
                work.append(issue.key)
            else:
                result[issue.key] = list(container.worklogs)
        if not work:
            return result
        logger.debug("Fetching full worklogs for %s truncated issue(s)", len(work))

        if progress:
            progress("Loading complete worklog history", 0, len(work))
        if len(work) < self.min_parallel:
            for idx, key in enumerate(work, start=1):
                result[key] = self.client.fetch_issue_worklogs(key, started_after_ms)
                if progress:
                    progress("Loading complete worklog history", idx, len(work))
            return result

        # Parallel fetch using threads (I/O bound HTTP calls). The first failure
        # cancels the fetches still queued and aborts the reconciliation.
        pool = ThreadPoolExecutor(max_workers=self.max_workers)
        futures = {pool.submit(self.client.fetch_issue_worklogs, key, started_after_ms): key for key in work}
        try:
            for idx, fut in enumerate(as_completed(futures), start=1):
                result[futures[fut]] = fut.result()
                if progress:
                    progress("Loading complete worklog history", idx, len(work))
        except BaseException:
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        pool.shutdown()
        return result
