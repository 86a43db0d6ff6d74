"""Tests for StatusMapper."""

import pytest

from feedbackbridge.core.domain import FeedbackStatus, SinkKind, StatusMapper


class TestMap:
    """Tests for vocabulary lookups."""

    @pytest.mark.parametrize("status,expected", [
        (FeedbackStatus.PENDING, "open"),
        (FeedbackStatus.IN_PROGRESS, "open"),
        (FeedbackStatus.COMPLETED, "closed"),
        (FeedbackStatus.REJECTED, "closed"),
    ])
    def test_issue_tracker(self, status, expected):
        assert StatusMapper.map(status, SinkKind.ISSUE_TRACKER) == expected

    @pytest.mark.parametrize("status,expected", [
        (FeedbackStatus.PENDING, "to do"),
        (FeedbackStatus.APPROVED, "approved"),
        (FeedbackStatus.IN_PROGRESS, "in progress"),
        (FeedbackStatus.TESTFLIGHT, "in review"),
        (FeedbackStatus.COMPLETED, "complete"),
        (FeedbackStatus.REJECTED, "closed"),
    ])
    def test_task_tracker(self, status, expected):
        assert StatusMapper.map(status, SinkKind.TASK_TRACKER) == expected

    def test_every_kind_covers_every_status(self):
        for kind in SinkKind:
            for status in FeedbackStatus:
                assert StatusMapper.map(status, kind)

    def test_board_list_names(self):
        assert StatusMapper.map(FeedbackStatus.COMPLETED, SinkKind.BOARD) == "Done"
        assert StatusMapper.map(FeedbackStatus.TESTFLIGHT, SinkKind.BOARD) == "TestFlight"


class TestTransitionKind:
    """Tests for classifying status changes."""

    def test_entering_terminal_closes(self):
        assert StatusMapper.transition_kind(
            FeedbackStatus.IN_PROGRESS, FeedbackStatus.COMPLETED
        ) == StatusMapper.CLOSE

    def test_leaving_terminal_reopens(self):
        assert StatusMapper.transition_kind(
            FeedbackStatus.REJECTED, FeedbackStatus.APPROVED
        ) == StatusMapper.REOPEN

    def test_between_terminals_is_update(self):
        assert StatusMapper.transition_kind(
            FeedbackStatus.COMPLETED, FeedbackStatus.REJECTED
        ) == StatusMapper.UPDATE

    def test_between_open_statuses_is_update(self):
        assert StatusMapper.transition_kind(
            FeedbackStatus.PENDING, FeedbackStatus.APPROVED
        ) == StatusMapper.UPDATE

    def test_no_change(self):
        assert StatusMapper.transition_kind(
            FeedbackStatus.PENDING, FeedbackStatus.PENDING
        ) is None


class TestFeedbackStatus:
    """Tests for FeedbackStatus parsing."""

    @pytest.mark.parametrize("raw", ["in_progress", "inProgress", "In Progress", "in-progress"])
    def test_from_string(self, raw):
        assert FeedbackStatus.from_string(raw) == FeedbackStatus.IN_PROGRESS

    def test_from_string_unknown(self):
        with pytest.raises(ValueError):
            FeedbackStatus.from_string("shipped")

    def test_terminal(self):
        terminal = {s for s in FeedbackStatus if s.is_terminal()}
        assert terminal == {FeedbackStatus.COMPLETED, FeedbackStatus.REJECTED}
