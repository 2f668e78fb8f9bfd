"""TimesheetService: the operations the UI invokes (timers, history, timesheet, tickets)."""

from __future__ import annotations

import logging

from .config import MIN_WORKLOG_SECONDS, AppConfig
from .errors import ConfigurationError, WorklogTooShort
from .jira_client import JiraAPI
from .models import (
    HistoryEntry,
    JiraProject,
    JiraTicket,
    JiraTicketDetail,
    JiraTransition,
    Timer,
    TimesheetEntry,
)
from .timers import TimerRegistry
from .worklogs import ProgressCallback, WorklogReconciler

logger = logging.getLogger(__name__)


class TimesheetService:
    def __init__(
        self,
        api: JiraAPI,
        registry: TimerRegistry | None = None,
        reconciler: WorklogReconciler | None = None,
    ):
        self.api = api
        self.registry = registry or TimerRegistry()
        self.reconciler = reconciler or WorklogReconciler(api)

    def verify_connection(self) -> str:
        """Check the credentials against Jira; returns the authenticated account id."""
        account_id = self.api.resolve_current_user()
        logger.info("Connected to %s as %s", self.api.server, account_id)
        return account_id

    # ------------------ Timers ------------------
    def start_timer(self, issue_key: str, summary: str) -> Timer:
        return self.registry.start(issue_key, summary)

    def pause_timer(self, timer_id: int) -> Timer:
        return self.registry.pause(timer_id)

    def resume_timer(self, timer_id: int) -> Timer:
        return self.registry.resume(timer_id)

    def stop_timer(self, timer_id: int) -> Timer:
        return self.registry.stop(timer_id)

    def set_timer_elapsed(self, timer_id: int, elapsed_seconds: int) -> Timer:
        return self.registry.set_elapsed(timer_id, elapsed_seconds)

    def list_timers(self) -> list[Timer]:
        return self.registry.list()

    def get_history(self) -> list[HistoryEntry]:
        return self.registry.history()

    def discard_timer(self, timer_id: int) -> HistoryEntry:
        """Stop a timer without logging it to Jira."""
        timer = self.registry.stop(timer_id)
        return self.registry.record_history(timer, logged=False)

    def stop_and_log(self, timer_id: int) -> int:
        """Stop a timer and post its time as a Jira worklog.

        Timers under a minute are refused and keep running, since Jira would
        reject the worklog. If the post itself fails the timer is already
        stopped; it lands in history as not logged and the error propagates.
        """
        current = self.registry.get(timer_id)
        if current.elapsed_seconds < MIN_WORKLOG_SECONDS:
            raise WorklogTooShort(current.elapsed_seconds, MIN_WORKLOG_SECONDS)

        timer = self.registry.stop(timer_id)
        try:
            self.api.log_worklog(timer.issue_key, timer.elapsed_seconds)
        except Exception:
            self.registry.record_history(timer, logged=False)
            logger.warning("Worklog for %s not logged; kept in history", timer.issue_key)
            raise
        self.registry.record_history(timer, logged=True)
        return timer.elapsed_seconds

    # ------------------ Timesheet ------------------
    def get_my_worklogs(
        self,
        start_date: str,
        end_date: str,
        *,
        progress: ProgressCallback | None = None,
    ) -> list[TimesheetEntry]:
        return self.reconciler.reconcile(start_date, end_date, progress=progress)

    # ------------------ Tickets ------------------
    def list_projects(self) -> list[JiraProject]:
        return self.api.list_projects()

    def search_tickets(self, project_key: str) -> list[JiraTicket]:
        return self.api.search_project_tickets(project_key)

    def get_issue_detail(self, issue_key: str) -> JiraTicketDetail:
        return self.api.get_issue_detail(issue_key)

    def get_transitions(self, issue_key: str) -> list[JiraTransition]:
        return self.api.get_transitions(issue_key)

    def transition_issue(self, issue_key: str, transition_id: str) -> None:
        self.api.transition_issue(issue_key, transition_id)


def build_service(config: AppConfig, registry: TimerRegistry | None = None) -> TimesheetService:
    """Create a service for ``config``; pass ``registry`` to keep running timers across reconnects."""
    if not config.is_complete:
        raise ConfigurationError("Jira not configured. Please set URL, email and API token in Setup.")
    return TimesheetService(JiraAPI(config.jira_url, config.email, config.api_token), registry=registry)
