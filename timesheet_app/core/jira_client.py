"""Jira API client wrapper (REST v3): worklog search, ticket browsing, worklog posting."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import requests
from jira import JIRA, JIRAError

from .config import (
    ISSUE_DETAIL_FIELDS,
    PROJECT_LIST_LIMIT,
    TICKET_SEARCH_FIELDS,
    TICKET_SEARCH_LIMIT,
    WORKLOG_SEARCH_FIELDS,
)
from .errors import UpstreamBadStatus, UpstreamMalformedResponse, UpstreamRequestFailed
from .mappers import (
    map_issue_detail,
    map_project,
    map_ticket,
    map_transition,
    map_worklog_issue,
    map_worklog_page,
)
from .models import (
    JiraProject,
    JiraTicket,
    JiraTicketDetail,
    JiraTransition,
    WorklogEntry,
    WorklogIssue,
)

logger = logging.getLogger(__name__)


class IssueSearchClient(Protocol):
    """What worklog reconciliation needs from an issue tracker."""

    def search_issues(self, jql: str, page_size: int, offset: int) -> tuple[list[WorklogIssue], int]: ...

    def fetch_issue_worklogs(self, issue_key: str, started_after_ms: int) -> list[WorklogEntry]: ...

    def resolve_current_user(self) -> str: ...


class JiraAPI:
    def __init__(self, server: str, email: str, token: str):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token),
            options={"server": self.server, "rest_api_version": "3"},
            get_server_info=False,
        )

    # ------------------ Transport ------------------
    def _request(
        self,
        stage: str,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        expect_json: bool = True,
    ) -> Any:
        session = getattr(self.client, "_session", None)
        if session is None:
            raise UpstreamRequestFailed(stage, "JIRA session unavailable")
        url = f"{self.server}/rest/api/3/{path}"
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = params
        if body is not None:
            kwargs["data"] = json.dumps(body)
        try:
            resp = session.request(method, url, **kwargs)
        except JIRAError as exc:
            raise UpstreamBadStatus(stage, exc.status_code, exc.text or str(exc)) from exc
        except requests.RequestException as exc:
            raise UpstreamRequestFailed(stage, exc) from exc
        if resp.status_code >= 400:
            raise UpstreamBadStatus(stage, resp.status_code, resp.text)
        if not expect_json:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamMalformedResponse(stage, str(exc)) from exc

    # ------------------ Worklog Search ------------------
    def resolve_current_user(self) -> str:
        data = self._request("myself", "GET", "myself")
        account_id = data.get("accountId") if isinstance(data, dict) else None
        if not isinstance(account_id, str) or not account_id:
            raise UpstreamMalformedResponse("myself", "missing 'accountId'")
        return account_id

    def search_issues(self, jql: str, page_size: int, offset: int) -> tuple[list[WorklogIssue], int]:
        params = {
            "jql": jql,
            "fields": ",".join(WORKLOG_SEARCH_FIELDS),
            "maxResults": page_size,
            "startAt": offset,
        }
        data = self._request("search", "GET", "search", params=params)
        raw_issues = data.get("issues") if isinstance(data, dict) else None
        if not isinstance(raw_issues, list):
            raise UpstreamMalformedResponse("search", "missing 'issues'")
        issues = [map_worklog_issue(raw, "search") for raw in raw_issues]
        logger.debug("Search page at offset %s returned %s issue(s)", offset, len(issues))
        return issues, len(issues)

    def fetch_issue_worklogs(self, issue_key: str, started_after_ms: int) -> list[WorklogEntry]:
        data = self._request(
            "worklog",
            "GET",
            f"issue/{issue_key}/worklog",
            params={"startedAfter": started_after_ms},
        )
        return map_worklog_page(data, "worklog")

    # ------------------ Ticket Browsing ------------------
    def list_projects(self) -> list[JiraProject]:
        data = self._request("projects", "GET", "project/search", params={"maxResults": PROJECT_LIST_LIMIT})
        values = data.get("values") if isinstance(data, dict) else None
        if not isinstance(values, list):
            raise UpstreamMalformedResponse("projects", "missing 'values'")
        return [map_project(v) for v in values]

    def search_project_tickets(self, project_key: str) -> list[JiraTicket]:
        jql = f"project = {project_key} AND assignee = currentUser() AND status != Done"
        params = {
            "jql": jql,
            "fields": ",".join(TICKET_SEARCH_FIELDS),
            "maxResults": TICKET_SEARCH_LIMIT,
        }
        data = self._request("tickets", "GET", "search/jql", params=params)
        raw_issues = data.get("issues") if isinstance(data, dict) else None
        if not isinstance(raw_issues, list):
            raise UpstreamMalformedResponse("tickets", "missing 'issues'")
        return [map_ticket(raw) for raw in raw_issues]

    def get_issue_detail(self, issue_key: str) -> JiraTicketDetail:
        data = self._request("issue", "GET", f"issue/{issue_key}", params={"fields": ",".join(ISSUE_DETAIL_FIELDS)})
        return map_issue_detail(data)

    def get_transitions(self, issue_key: str) -> list[JiraTransition]:
        data = self._request("transitions", "GET", f"issue/{issue_key}/transitions")
        raw = data.get("transitions") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            raise UpstreamMalformedResponse("transitions", "missing 'transitions'")
        return [map_transition(t) for t in raw]

    def transition_issue(self, issue_key: str, transition_id: str) -> None:
        self._request(
            "transition",
            "POST",
            f"issue/{issue_key}/transitions",
            body={"transition": {"id": transition_id}},
            expect_json=False,
        )

    def log_worklog(self, issue_key: str, seconds: int) -> None:
        self._request(
            "log_worklog",
            "POST",
            f"issue/{issue_key}/worklog",
            body={"timeSpentSeconds": int(seconds)},
            expect_json=False,
        )
        logger.info("Logged %ss to %s", seconds, issue_key)
