"""
Environment Config Provider - Load configuration from environment variables.

Supports:
- Environment variables (GITHUB_TOKEN, CLICKUP_LIST_ID, TRELLO_LIST_ID, SLACK_WEBHOOK_URL, ...)
- .env files
- Command line argument overrides
"""

import os
from pathlib import Path
from typing import Any, Optional

from ...core.domain.enums import FeedbackStatus, SinkKind
from ...core.exceptions import ConfigError
from ...core.ports.config_provider import (
    AppConfig,
    ConfigProviderPort,
    ProjectSyncConfig,
    RuntimeConfig,
    SinkConfig,
)


class EnvironmentConfigProvider(ConfigProviderPort):
    """
    Configuration provider that loads from environment variables and .env files.

    Describes a single project; deployments serving several projects build
    their ProjectSyncConfig values elsewhere and pass them explicitly.
    """

    ENV_PREFIX = "FEEDBACKBRIDGE_"

    # Environment/.env variable -> config key
    ENV_MAPPING = {
        "FEEDBACKBRIDGE_PROJECT_ID": "project_id",
        "FEEDBACKBRIDGE_PROJECT_NAME": "project_name",
        "FEEDBACKBRIDGE_TIMEOUT": "request_timeout",
        "FEEDBACKBRIDGE_BULK_WORKERS": "bulk_max_workers",
        "FEEDBACKBRIDGE_DISPATCH_WORKERS": "dispatcher_max_workers",
        "FEEDBACKBRIDGE_DRY_RUN": "dry_run",
        "GITHUB_TOKEN": "github_token",
        "GITHUB_REPO": "github_repo",
        "GITHUB_API_URL": "github_api_url",
        "GITHUB_SYNC_STATUS": "github_sync_status",
        "GITHUB_SYNC_COMMENTS": "github_sync_comments",
        "CLICKUP_TOKEN": "clickup_token",
        "CLICKUP_LIST_ID": "clickup_list_id",
        "CLICKUP_API_URL": "clickup_api_url",
        "CLICKUP_VOTES_FIELD_ID": "clickup_votes_field_id",
        "CLICKUP_SYNC_STATUS": "clickup_sync_status",
        "CLICKUP_SYNC_COMMENTS": "clickup_sync_comments",
        "TRELLO_API_KEY": "trello_api_key",
        "TRELLO_TOKEN": "trello_token",
        "TRELLO_LIST_ID": "trello_list_id",
        "TRELLO_STATUS_LISTS": "trello_status_lists",
        "TRELLO_SYNC_STATUS": "trello_sync_status",
        "TRELLO_SYNC_COMMENTS": "trello_sync_comments",
        "SLACK_WEBHOOK_URL": "slack_webhook_url",
        "SLACK_NOTIFY_NEW_FEEDBACK": "slack_notify_new_feedback",
        "SLACK_NOTIFY_COMMENTS": "slack_notify_comments",
        "SLACK_NOTIFY_STATUS_CHANGES": "slack_notify_status_changes",
    }

    def __init__(
        self,
        env_file: Optional[Path] = None,
        cli_overrides: Optional[dict[str, Any]] = None,
        environ: Optional[dict[str, str]] = None,
    ):
        """
        Initialize the config provider.

        Args:
            env_file: Path to .env file (auto-detected if not specified)
            cli_overrides: Command line argument overrides
            environ: Environment mapping (defaults to os.environ)
        """
        self._values: dict[str, Any] = {}
        self._env_file = env_file
        self._cli_overrides = {
            self._normalize(k): v for k, v in (cli_overrides or {}).items() if v is not None
        }
        self._environ = os.environ if environ is None else environ

        # Later sources win: .env < environment < CLI
        self._load_env_file()
        self._load_environment()

    # -------------------------------------------------------------------------
    # ConfigProviderPort Implementation
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "Environment"

    def load(self) -> AppConfig:
        """Load complete configuration."""
        runtime = RuntimeConfig(
            request_timeout=float(self.get("request_timeout", 10.0)),
            bulk_max_workers=int(self.get("bulk_max_workers", 4)),
            dispatcher_max_workers=int(self.get("dispatcher_max_workers", 4)),
            dry_run=self._flag("dry_run", False),
        )

        github = SinkConfig(
            kind=SinkKind.ISSUE_TRACKER,
            enabled=bool(self.get("github_token")),
            token=self.get("github_token", ""),
            base_url=self.get("github_api_url"),
            target=self.get("github_repo", ""),
            sync_status=self._flag("github_sync_status", True),
            sync_comments=self._flag("github_sync_comments", True),
        )

        clickup = SinkConfig(
            kind=SinkKind.TASK_TRACKER,
            enabled=bool(self.get("clickup_token")),
            token=self.get("clickup_token", ""),
            base_url=self.get("clickup_api_url"),
            target=self.get("clickup_list_id", ""),
            sync_status=self._flag("clickup_sync_status", True),
            sync_comments=self._flag("clickup_sync_comments", True),
            vote_field_id=self.get("clickup_votes_field_id") or None,
        )

        try:
            status_lists = self._status_lists(self.get("trello_status_lists", ""))
        except ValueError as e:
            raise ConfigError(f"Invalid TRELLO_STATUS_LISTS: {e}", cause=e) from e

        trello = SinkConfig(
            kind=SinkKind.BOARD,
            enabled=bool(self.get("trello_token")),
            token=self.get("trello_token", ""),
            api_key=self.get("trello_api_key", ""),
            target=self.get("trello_list_id", ""),
            status_targets=status_lists,
            sync_status=self._flag("trello_sync_status", True),
            sync_comments=self._flag("trello_sync_comments", True),
        )

        slack = SinkConfig(
            kind=SinkKind.NOTIFICATION,
            enabled=bool(self.get("slack_webhook_url")),
            target=self.get("slack_webhook_url", ""),
            notify_new_feedback=self._flag("slack_notify_new_feedback", True),
            notify_comments=self._flag("slack_notify_comments", True),
            notify_status_changes=self._flag("slack_notify_status_changes", True),
        )

        project = ProjectSyncConfig(
            project_id=self.get("project_id", "default"),
            project_name=self.get("project_name", ""),
            sinks=(github, clickup, trello, slack),
        )

        return AppConfig(runtime=runtime, projects=(project,))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        key = self._normalize(key)

        # Check CLI overrides first
        if key in self._cli_overrides:
            return self._cli_overrides[key]

        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        self._values[self._normalize(key)] = value

    def validate(self) -> list[str]:
        """Validate configuration."""
        errors = []

        repo = self.get("github_repo")
        if self.get("github_token") and not repo:
            errors.append("GITHUB_TOKEN is set but GITHUB_REPO is missing")
        if repo and "/" not in repo:
            errors.append(f"GITHUB_REPO must be 'owner/repo', got '{repo}'")

        if self.get("clickup_token") and not self.get("clickup_list_id"):
            errors.append("CLICKUP_TOKEN is set but CLICKUP_LIST_ID is missing")

        if self.get("trello_token"):
            if not self.get("trello_list_id"):
                errors.append("TRELLO_TOKEN is set but TRELLO_LIST_ID is missing")
            if not self.get("trello_api_key"):
                errors.append("TRELLO_TOKEN is set but TRELLO_API_KEY is missing")
        try:
            self._status_lists(self.get("trello_status_lists", ""))
        except ValueError as e:
            errors.append(f"TRELLO_STATUS_LISTS: {e}")

        webhook = self.get("slack_webhook_url")
        if webhook and not webhook.startswith("https://hooks.slack.com/"):
            errors.append("SLACK_WEBHOOK_URL must start with https://hooks.slack.com/")

        for key in ("request_timeout", "bulk_max_workers", "dispatcher_max_workers"):
            raw = self.get(key)
            if raw is None:
                continue
            try:
                if float(raw) <= 0:
                    errors.append(f"{key} must be positive")
            except (TypeError, ValueError):
                errors.append(f"{key} must be a number, got '{raw}'")

        return errors

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _normalize(key: str) -> str:
        return key.lower().replace("-", "_")

    @staticmethod
    def _status_lists(raw: str) -> tuple[tuple[FeedbackStatus, str], ...]:
        """Parse "completed=list1,rejected=list2" into status/list pairs."""
        pairs = []
        for entry in str(raw or "").split(","):
            entry = entry.strip()
            if not entry:
                continue
            status, sep, list_id = entry.partition("=")
            if not sep or not list_id.strip():
                raise ValueError(f"expected status=list_id, got '{entry}'")
            pairs.append((FeedbackStatus.from_string(status), list_id.strip()))
        return tuple(pairs)

    def _flag(self, key: str, default: bool) -> bool:
        value = self.get(key, default)
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("true", "1", "yes")

    def _store(self, env_key: str, raw_value: str) -> None:
        config_key = self.ENV_MAPPING.get(env_key.upper())
        if config_key is None:
            return

        # Convert boolean-ish values
        final_value: Any
        if raw_value.lower() in ("true", "yes"):
            final_value = True
        elif raw_value.lower() in ("false", "no"):
            final_value = False
        else:
            final_value = raw_value

        self._values[config_key] = final_value

    def _load_env_file(self) -> None:
        """Load values from .env file."""
        env_file = self._find_env_file()
        if not env_file:
            return

        for line in env_file.read_text().splitlines():
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, value = line.split("=", 1)
            self._store(key.strip(), value.strip().strip('"').strip("'"))

    def _find_env_file(self) -> Optional[Path]:
        """Find .env file."""
        if self._env_file is not None:
            return self._env_file if self._env_file.exists() else None

        cwd_env = Path.cwd() / ".env"
        if cwd_env.exists():
            return cwd_env

        return None

    def _load_environment(self) -> None:
        """Load values from environment variables."""
        for env_key in self.ENV_MAPPING:
            raw_value = self._environ.get(env_key)
            if raw_value is not None:
                self._store(env_key, raw_value)
