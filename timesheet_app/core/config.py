"""Central configuration, constants, and Jira connection settings."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, replace
from pathlib import Path

import yaml

from .errors import ConfigurationError

# =============================================================================
# Jira Connection Settings
# =============================================================================
JIRA_DEFAULT_SERVER = "https://your-domain.atlassian.net"
TIMEZONE = "UTC"

# Environment variables consulted by load_config()
ENV_JIRA_URL = "JIRA_URL"
ENV_JIRA_EMAIL = "JIRA_EMAIL"
ENV_JIRA_TOKEN = "JIRA_TOKEN"
ENV_CONFIG_FILE = "JIRA_TIMESHEET_CONFIG"

# =============================================================================
# Worklog Reconciliation
# =============================================================================
WORKLOG_SEARCH_PAGE_SIZE: int = 100

# Per-issue worklog fetches are I/O bound HTTP calls on a synchronous client,
# so they run on threads. Keep the worker count moderate for Jira rate limits.
WORKLOG_FETCH_MAX_WORKERS: int = 8
WORKLOG_FETCH_MIN_PARALLEL: int = 4  # below this, stay sequential

WORKLOG_SEARCH_FIELDS = ["summary", "worklog"]

# =============================================================================
# Timers
# =============================================================================
# Jira rejects worklogs shorter than a minute
MIN_WORKLOG_SECONDS: int = 60

# =============================================================================
# Ticket Browsing
# =============================================================================
PROJECT_LIST_LIMIT: int = 50
TICKET_SEARCH_LIMIT: int = 50
TICKET_SEARCH_FIELDS = ["summary", "status", "timetracking"]
ISSUE_DETAIL_FIELDS = [
    "summary",
    "status",
    "description",
    "priority",
    "assignee",
    "reporter",
    "issuetype",
    "labels",
    "created",
    "updated",
    "timetracking",
]

# =============================================================================
# Rich text (Atlassian Document Format)
# =============================================================================
ADF_BLOCK_NODE_TYPES: frozenset[str] = frozenset(
    {
        "paragraph",
        "heading",
        "bulletList",
        "orderedList",
        "listItem",
        "codeBlock",
        "blockquote",
    }
)
ADF_LIST_ITEM_PREFIX = "- "

# =============================================================================
# UI Default Values
# =============================================================================
DEFAULT_TIMESHEET_DAYS: int = 7  # Default lookback period for the timesheet picker


@dataclass(slots=True)
class AppConfig:
    jira_url: str = ""
    email: str = ""
    api_token: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.jira_url and self.email and self.api_token)


def load_config(environ: dict[str, str] | None = None) -> AppConfig:
    """Build the connection settings from the environment and an optional YAML file.

    Environment variables ``JIRA_URL``, ``JIRA_EMAIL`` and ``JIRA_TOKEN`` are
    read first. When ``JIRA_TIMESHEET_CONFIG`` names an existing file, values
    under its ``jira:`` section override them::

        jira:
          url: https://example.atlassian.net
          email: me@example.com
          api_token: secret
    """
    env = os.environ if environ is None else environ
    config = AppConfig(
        jira_url=env.get(ENV_JIRA_URL, ""),
        email=env.get(ENV_JIRA_EMAIL, ""),
        api_token=env.get(ENV_JIRA_TOKEN, ""),
    )
    path = env.get(ENV_CONFIG_FILE)
    if not path:
        return config
    yaml_path = Path(path)
    if not yaml_path.exists():
        return config
    try:
        data = yaml.safe_load(yaml_path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in config file {yaml_path}: {exc}") from exc
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {yaml_path} must contain a mapping at the top level")
    section = data.get("jira") or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config file {yaml_path}: 'jira' must be a mapping")
    return replace(
        config,
        jira_url=section.get("url") or config.jira_url,
        email=section.get("email") or config.email,
        api_token=section.get("api_token") or config.api_token,
    )


class ConfigState:
    """Live connection settings shared by request handlers (in memory only)."""

    def __init__(self, config: AppConfig | None = None):
        self._lock = threading.Lock()
        self._config = config if config is not None else load_config()

    def get(self) -> AppConfig:
        with self._lock:
            return replace(self._config)

    def save(self, jira_url: str, email: str, api_token: str) -> AppConfig:
        with self._lock:
            self._config = AppConfig(jira_url=jira_url.strip(), email=email.strip(), api_token=api_token.strip())
            return replace(self._config)
