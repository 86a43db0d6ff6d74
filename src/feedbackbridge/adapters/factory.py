"""
Sink Factory - Build sink adapters from configuration.
"""

import logging

from ..core.domain.enums import SinkKind
from ..core.ports.config_provider import ProjectSyncConfig, RuntimeConfig
from ..core.ports.sink import SinkPort
from .clickup import TaskTrackerSink
from .github import IssueTrackerSink
from .slack import NotificationSink
from .trello import BoardSink


logger = logging.getLogger("SinkFactory")


def build_sinks(project: ProjectSyncConfig, runtime: RuntimeConfig) -> list[SinkPort]:
    """Instantiate an adapter for every active sink of a project."""
    sinks: list[SinkPort] = []
    for sink_config in project.enabled_sinks():
        timeout = runtime.request_timeout
        if sink_config.kind == SinkKind.ISSUE_TRACKER:
            sink: SinkPort = IssueTrackerSink(sink_config, timeout=timeout)
        elif sink_config.kind == SinkKind.TASK_TRACKER:
            sink = TaskTrackerSink(sink_config, project_name=project.project_name, timeout=timeout)
        elif sink_config.kind == SinkKind.BOARD:
            sink = BoardSink(sink_config, project_name=project.project_name, timeout=timeout)
        else:
            sink = NotificationSink(sink_config, project_name=project.project_name, timeout=timeout)
        logger.debug(f"Built {sink.name} sink for project {project.project_id}")
        sinks.append(sink)
    return sinks
