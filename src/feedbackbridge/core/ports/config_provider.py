"""
Config Provider Port - Configuration values passed explicitly to services.

ProjectSyncConfig is a value object: projection calls receive it as an
argument instead of reading ambient/global state.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from ..domain.enums import FeedbackStatus, SinkKind


@dataclass(frozen=True)
class SinkConfig:
    """Per-project settings for one sink."""

    kind: SinkKind
    enabled: bool = False
    token: str = ""
    # Application key for APIs that authenticate with key + token (Trello)
    api_key: str = ""
    base_url: Optional[str] = None
    # Repository ("owner/repo"), list id, or webhook URL depending on sink
    target: str = ""
    # Status -> list id, for boards where a card's list is its status
    status_targets: tuple[tuple[FeedbackStatus, str], ...] = ()

    sync_status: bool = True
    sync_comments: bool = True
    # Numeric custom field receiving the vote count (task tracker only)
    vote_field_id: Optional[str] = None

    # Notification toggles
    notify_new_feedback: bool = True
    notify_comments: bool = True
    notify_status_changes: bool = True

    @property
    def is_active(self) -> bool:
        return self.enabled and bool(self.target)

    def status_target(self, status: FeedbackStatus) -> Optional[str]:
        for mapped, target in self.status_targets:
            if mapped == status:
                return target
        return None


@dataclass(frozen=True)
class ProjectSyncConfig:
    """Which sinks a project projects into, and how."""

    project_id: str
    project_name: str = ""
    sinks: tuple[SinkConfig, ...] = ()

    def sink(self, kind: SinkKind) -> Optional[SinkConfig]:
        for sink_config in self.sinks:
            if sink_config.kind == kind:
                return sink_config
        return None

    def enabled_sinks(self) -> list[SinkConfig]:
        return [s for s in self.sinks if s.is_active]

    def with_sink(self, sink_config: SinkConfig) -> "ProjectSyncConfig":
        others = tuple(s for s in self.sinks if s.kind != sink_config.kind)
        return replace(self, sinks=others + (sink_config,))


@dataclass(frozen=True)
class RuntimeConfig:
    """Process-wide tuning for sink traffic."""

    request_timeout: float = 10.0
    bulk_max_workers: int = 4
    dispatcher_max_workers: int = 4
    dry_run: bool = False


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""

    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    projects: tuple[ProjectSyncConfig, ...] = ()

    def project(self, project_id: str) -> Optional[ProjectSyncConfig]:
        for project in self.projects:
            if project.project_id == project_id:
                return project
        return None


class ConfigProviderPort(ABC):
    """Abstract interface for configuration sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """Return a list of validation errors (empty if valid)."""
        ...
