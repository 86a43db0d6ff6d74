"""
Bootstrap - Wire ports, adapters and services together.
"""

import logging
from typing import Optional

from .adapters.factory import build_sinks
from .adapters.memory import InMemoryFeedbackStore
from .application import (
    BulkOperationRunner,
    FeedbackService,
    MergeCoordinator,
    ProjectionDispatcher,
    SyncProjector,
)
from .core.domain.events import EventBus
from .core.exceptions import ConfigError
from .core.ports.config_provider import AppConfig
from .core.ports.persistence import FeedbackStorePort


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging for embedding applications and scripts."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_service(
    config: AppConfig,
    store: Optional[FeedbackStorePort] = None,
    event_bus: Optional[EventBus] = None,
) -> FeedbackService:
    """
    Build a FeedbackService for a single-project configuration.

    Raises:
        ConfigError: If the configuration does not describe exactly one project
    """
    if len(config.projects) != 1:
        raise ConfigError(f"Expected one project, got {len(config.projects)}")
    project = config.projects[0]
    runtime = config.runtime

    store = store or InMemoryFeedbackStore()
    event_bus = event_bus or EventBus()
    projector = SyncProjector(
        build_sinks(project, runtime),
        bulk_runner=BulkOperationRunner(max_workers=runtime.bulk_max_workers),
        event_bus=event_bus,
        dry_run=runtime.dry_run,
    )

    return FeedbackService(
        store=store,
        projector=projector,
        dispatcher=ProjectionDispatcher(max_workers=runtime.dispatcher_max_workers),
        config_lookup=config.project,
        merge_coordinator=MergeCoordinator(store, event_bus),
        event_bus=event_bus,
    )
