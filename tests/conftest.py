"""Shared fixtures for the feedbackbridge test-suite."""

from unittest.mock import Mock

import pytest

from feedbackbridge.adapters.memory import InMemoryFeedbackStore
from feedbackbridge.core.domain import (
    EventBus,
    FeedbackItem,
    SinkCapability,
    SinkKind,
)
from feedbackbridge.core.ports import ProjectSyncConfig, SinkConfig


# Everything a full task tracker offers; announcing is left to notification sinks
TRACKER_CAPABILITIES = frozenset(SinkCapability) - {SinkCapability.ANNOUNCE}


def make_sink(kind, capabilities=TRACKER_CAPABILITIES, requires_remote_ref=True):
    """A Mock sink that answers supports() from ``capabilities``."""
    sink = Mock()
    sink.kind = kind
    sink.name = kind.value
    sink.capabilities = frozenset(capabilities)
    sink.requires_remote_ref = requires_remote_ref
    sink.supports.side_effect = lambda capability: capability in sink.capabilities
    return sink


def make_config(project_id="proj-1", overrides=None):
    """
    A ProjectSyncConfig with all three sinks active.

    ``overrides`` maps SinkKind to a replacement SinkConfig, or None to drop it.
    """
    sinks = {
        SinkKind.ISSUE_TRACKER: SinkConfig(
            kind=SinkKind.ISSUE_TRACKER, enabled=True, token="gh", target="acme/app",
        ),
        SinkKind.TASK_TRACKER: SinkConfig(
            kind=SinkKind.TASK_TRACKER, enabled=True, token="cu", target="list-1",
            vote_field_id="votes-field",
        ),
        SinkKind.NOTIFICATION: SinkConfig(
            kind=SinkKind.NOTIFICATION, enabled=True,
            target="https://hooks.slack.com/services/T/B/X",
        ),
    }
    sinks.update(overrides or {})
    return ProjectSyncConfig(
        project_id=project_id,
        project_name="Acme",
        sinks=tuple(s for s in sinks.values() if s is not None),
    )


@pytest.fixture
def store():
    return InMemoryFeedbackStore(lock_timeout=5.0)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def item_factory(store):
    """Insert and return a FeedbackItem in the store."""
    def factory(title="Dark mode", project_id="proj-1", **kwargs):
        return store.insert_item(FeedbackItem(project_id=project_id, title=title, **kwargs))
    return factory
