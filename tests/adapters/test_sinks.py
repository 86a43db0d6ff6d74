"""Tests for the GitHub, ClickUp, Slack and Trello sink adapters."""

from unittest.mock import Mock

import pytest

from feedbackbridge.adapters.clickup import TaskTrackerSink
from feedbackbridge.adapters.github import IssueTrackerSink
from feedbackbridge.adapters.slack import NotificationSink
from feedbackbridge.adapters.trello import BoardSink
from feedbackbridge.core.domain import (
    Comment,
    FeedbackCategory,
    FeedbackItem,
    FeedbackStatus,
    RemoteRef,
    SinkCapability,
    SinkKind,
)
from feedbackbridge.core.exceptions import ConfigError, UnsupportedCapability
from feedbackbridge.core.ports import SinkConfig


@pytest.fixture
def item():
    return FeedbackItem(
        project_id="proj-1",
        title="Dark mode",
        description="Please add a dark theme",
        id="f1",
        category=FeedbackCategory.FEATURE_REQUEST,
        vote_count=4,
        user_email="user@example.com",
    )


class TestIssueTrackerSink:
    """Tests for the GitHub adapter."""

    REF = RemoteRef("https://github.com/acme/app/issues/12", "12")

    @pytest.fixture
    def client(self):
        return Mock()

    @pytest.fixture
    def sink(self, client):
        config = SinkConfig(kind=SinkKind.ISSUE_TRACKER, enabled=True, token="t", target="acme/app")
        return IssueTrackerSink(config, client=client)

    def test_capabilities(self, sink):
        assert sink.supports(SinkCapability.CLOSE)
        assert sink.supports(SinkCapability.UPDATE_STATUS)
        assert not sink.supports(SinkCapability.SET_METRIC)
        assert not sink.supports(SinkCapability.ANNOUNCE)

    def test_create(self, sink, client, item):
        client.post.return_value = {"number": 12, "html_url": self.REF.url}

        ref = sink.create(item)

        assert ref == self.REF
        endpoint = client.post.call_args[0][0]
        payload = client.post.call_args[1]["json"]
        assert endpoint == "repos/acme/app/issues"
        assert payload["title"] == "Dark mode"
        assert payload["labels"] == ["feature_request"]
        assert "**Votes:** 4" in payload["body"]

    def test_close(self, sink, client, item):
        item.status = FeedbackStatus.REJECTED
        client.get.return_value = {"state": "open"}

        sink.close(self.REF, item)

        client.patch.assert_called_once_with(
            "repos/acme/app/issues/12",
            json={"state": "closed", "state_reason": "not_planned"},
        )

    def test_close_already_closed(self, sink, client, item):
        item.status = FeedbackStatus.COMPLETED
        client.get.return_value = {"state": "closed", "state_reason": "completed"}

        sink.close(self.REF, item)

        client.patch.assert_not_called()

    def test_reopen(self, sink, client, item):
        client.get.return_value = {"state": "closed"}

        sink.reopen(self.REF, item)

        client.patch.assert_called_once_with("repos/acme/app/issues/12", json={"state": "open"})

    def test_terminal_to_terminal_updates_reason(self, sink, client, item):
        item.status = FeedbackStatus.REJECTED
        client.get.return_value = {"state": "closed", "state_reason": "completed"}

        sink.update_status(self.REF, item, FeedbackStatus.COMPLETED)

        client.patch.assert_called_once_with(
            "repos/acme/app/issues/12",
            json={"state": "closed", "state_reason": "not_planned"},
        )

    def test_open_to_open_update_is_noop(self, sink, client, item):
        item.status = FeedbackStatus.IN_PROGRESS

        sink.update_status(self.REF, item, FeedbackStatus.APPROVED)

        client.get.assert_not_called()
        client.patch.assert_not_called()

    def test_comment(self, sink, client, item):
        sink.add_comment(self.REF, item, Comment("f1", "u1", "Thanks!"))

        endpoint = client.post.call_args[0][0]
        body = client.post.call_args[1]["json"]["body"]
        assert endpoint == "repos/acme/app/issues/12/comments"
        assert body.startswith("**[User] Comment:**")
        assert "Thanks!" in body

    def test_set_metric_unsupported(self, sink):
        with pytest.raises(UnsupportedCapability):
            sink.set_metric(self.REF, "votes", 1)

    def test_bad_repo(self):
        with pytest.raises(ConfigError):
            IssueTrackerSink(SinkConfig(kind=SinkKind.ISSUE_TRACKER, target="acme"), client=Mock())


class TestTaskTrackerSink:
    """Tests for the ClickUp adapter."""

    REF = RemoteRef("https://app.clickup.com/t/abc", "abc")

    @pytest.fixture
    def client(self):
        return Mock()

    @pytest.fixture
    def sink(self, client):
        config = SinkConfig(kind=SinkKind.TASK_TRACKER, enabled=True, token="pk", target="list-9")
        return TaskTrackerSink(config, project_name="Acme", client=client)

    def test_capabilities(self, sink):
        assert all(sink.supports(c) for c in SinkCapability if c != SinkCapability.ANNOUNCE)
        assert not sink.supports(SinkCapability.ANNOUNCE)

    def test_create(self, sink, client, item):
        client.post.return_value = {"id": "abc", "url": self.REF.url}

        ref = sink.create(item)

        assert ref == self.REF
        assert client.post.call_args[0][0] == "list/list-9/task"
        payload = client.post.call_args[1]["json"]
        assert payload["name"] == "Dark mode"
        assert payload["tags"] == ["feature_request"]

    def test_description(self, sink, item):
        description = sink.build_description(item)

        assert description.startswith("## Feature Request")
        assert "**Project:** Acme" in description
        assert "**Votes:** 4" in description
        assert description.endswith("**Submitted by:** user@example.com")

    @pytest.mark.parametrize("status,expected", [
        (FeedbackStatus.COMPLETED, "complete"),
        (FeedbackStatus.REJECTED, "closed"),
    ])
    def test_close(self, sink, client, item, status, expected):
        item.status = status

        sink.close(self.REF, item)

        client.put.assert_called_once_with("task/abc", json={"status": expected})

    def test_update_status(self, sink, client, item):
        item.status = FeedbackStatus.TESTFLIGHT

        sink.update_status(self.REF, item, FeedbackStatus.IN_PROGRESS)

        client.put.assert_called_once_with("task/abc", json={"status": "in review"})

    def test_comment(self, sink, client, item):
        sink.add_comment(self.REF, item, Comment("f1", "admin", "Shipped", is_admin=True))

        client.post.assert_called_once_with(
            "task/abc/comment",
            json={
                "comment_text": (
                    "**[Admin] Comment:**\n\nShipped\n\n---\n_Synced from feedbackbridge_"
                ),
                "notify_all": False,
            },
        )

    def test_set_metric(self, sink, client):
        sink.set_metric(self.REF, "field-1", 7)

        client.post.assert_called_once_with("task/abc/field/field-1", json={"value": 7})


class TestNotificationSink:
    """Tests for the Slack adapter."""

    WEBHOOK = "https://hooks.slack.com/services/T/B/X"

    @pytest.fixture
    def client(self):
        return Mock()

    @pytest.fixture
    def sink(self, client):
        config = SinkConfig(kind=SinkKind.NOTIFICATION, enabled=True, target=self.WEBHOOK)
        return NotificationSink(config, project_name="Acme", client=client)

    def test_no_refs(self, sink):
        assert not sink.requires_remote_ref
        assert not sink.supports(SinkCapability.CREATE)

    def test_create_unsupported(self, sink, item):
        with pytest.raises(UnsupportedCapability):
            sink.create(item)

    def test_status_update(self, sink, client, item):
        item.status = FeedbackStatus.IN_PROGRESS

        sink.update_status(None, item, FeedbackStatus.APPROVED)

        url = client.post.call_args[0][0]
        text = client.post.call_args[1]["json"]["text"]
        assert url == self.WEBHOOK
        assert "Approved -> In Progress" in text
        assert "Acme" in text

    def test_close(self, sink, client, item):
        item.status = FeedbackStatus.COMPLETED

        sink.close(None, item)

        assert "is now Completed" in client.post.call_args[1]["json"]["text"]

    def test_comment(self, sink, client, item):
        sink.add_comment(None, item, Comment("f1", "u1", "Love it"))

        text = client.post.call_args[1]["json"]["text"]
        assert "from *User*" in text
        assert "Love it" in text

    def test_admin_comment(self, sink, client, item):
        sink.add_comment(None, item, Comment("f1", "admin", "On it", is_admin=True))

        assert "from *Admin* :shield:" in client.post.call_args[1]["json"]["text"]

    def test_announce(self, sink, client, item):
        sink.announce(item)

        text = client.post.call_args[1]["json"]["text"]
        assert "New feature request *Dark mode* in Acme" in text
        assert "Please add a dark theme" in text

    def test_rejects_non_slack_url(self):
        config = SinkConfig(kind=SinkKind.NOTIFICATION, target="https://example.com/hook")
        with pytest.raises(ConfigError):
            NotificationSink(config, client=Mock())


class TestBoardSink:
    """Tests for the Trello adapter."""

    REF = RemoteRef("https://trello.com/c/Xy12", "card-1")
    AUTH = {"key": "app-key", "token": "member-token"}

    @pytest.fixture
    def client(self):
        return Mock()

    @pytest.fixture
    def sink(self, client):
        config = SinkConfig(
            kind=SinkKind.BOARD,
            enabled=True,
            token="member-token",
            api_key="app-key",
            target="list-new",
            status_targets=(
                (FeedbackStatus.IN_PROGRESS, "list-doing"),
                (FeedbackStatus.COMPLETED, "list-done"),
            ),
        )
        return BoardSink(config, project_name="Acme", client=client)

    def test_capabilities(self, sink):
        assert sink.supports(SinkCapability.CREATE)
        assert sink.supports(SinkCapability.UPDATE_STATUS)
        assert not sink.supports(SinkCapability.SET_METRIC)

    def test_create(self, sink, client, item):
        client.post.return_value = {"id": "card-1", "url": self.REF.url}

        ref = sink.create(item)

        assert ref == self.REF
        assert client.post.call_args[0][0] == "cards"
        assert client.post.call_args[1]["params"] == self.AUTH
        payload = client.post.call_args[1]["json"]
        assert payload["idList"] == "list-new"
        assert payload["name"] == "Dark mode"
        assert payload["pos"] == "bottom"

    def test_description(self, sink, item):
        description = sink.build_description(item)

        assert description.startswith("## Feature Request")
        assert "**Status:** Pending" in description
        assert "**Submitted by:** user@example.com" in description
        assert description.endswith("*Synced from feedbackbridge*")

    def test_status_moves_card(self, sink, client, item):
        item.status = FeedbackStatus.IN_PROGRESS

        sink.update_status(self.REF, item, FeedbackStatus.APPROVED)

        client.put.assert_called_once_with(
            "cards/card-1", params=self.AUTH, json={"idList": "list-doing"}
        )

    def test_close_moves_to_done_list(self, sink, client, item):
        item.status = FeedbackStatus.COMPLETED

        sink.close(self.REF, item)

        client.put.assert_called_once_with(
            "cards/card-1", params=self.AUTH, json={"idList": "list-done"}
        )

    def test_unmapped_status_leaves_card(self, sink, client, item):
        item.status = FeedbackStatus.REJECTED

        sink.close(self.REF, item)

        client.put.assert_not_called()

    def test_comment(self, sink, client, item):
        sink.add_comment(self.REF, item, Comment("f1", "admin", "Planned", is_admin=True))

        assert client.post.call_args[0][0] == "cards/card-1/actions/comments"
        assert client.post.call_args[1]["params"] == self.AUTH
        assert client.post.call_args[1]["json"]["text"].startswith("**[Admin] Comment:**")

    def test_requires_api_key(self):
        config = SinkConfig(kind=SinkKind.BOARD, token="t", target="list-new")
        with pytest.raises(ConfigError):
            BoardSink(config, client=Mock())
