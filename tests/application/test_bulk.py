"""Tests for BulkOperationRunner."""

import threading
import time

import pytest

from feedbackbridge.application.sync import BulkOperationRunner, WorkUnit
from feedbackbridge.core.domain import RemoteRef
from feedbackbridge.core.exceptions import RateLimitError, SinkError


def ok(value):
    return lambda: value


def boom(error):
    def unit():
        raise error
    return unit


class TestBulkOperationRunner:
    """Tests for partitioning and concurrency."""

    def test_partial_failure(self):
        runner = BulkOperationRunner(max_workers=3)
        units = [
            WorkUnit("a", ok(RemoteRef("https://x/1", "1"))),
            WorkUnit("b", boom(SinkError("server error", status_code=502, retryable=True))),
            WorkUnit("c", ok(RemoteRef("https://x/3", "3"))),
        ]

        result = runner.run(units)

        assert [key for key, _ in result.succeeded] == ["a", "c"]
        assert result.failed_keys == ["b"]
        assert result.failed[0].status_code == 502
        assert result.failed[0].retryable
        assert not result.all_succeeded
        assert result.to_dict() == {
            "created": [
                {"itemId": "a", "remoteUrl": "https://x/1", "remoteId": "1"},
                {"itemId": "c", "remoteUrl": "https://x/3", "remoteId": "3"},
            ],
            "failed": ["b"],
            "skipped": [],
        }

    def test_every_unit_accounted_for(self):
        runner = BulkOperationRunner(max_workers=2)
        units = [
            WorkUnit(str(i), boom(ValueError("bad")) if i % 3 == 0 else ok(i))
            for i in range(10)
        ]

        result = runner.run(units)

        assert result.total == 10
        assert len(result.failed) == 4
        assert [key for key, _ in result.succeeded] == ["1", "2", "4", "5", "7", "8"]

    def test_empty(self):
        result = BulkOperationRunner().run([])
        assert result.total == 0
        assert result.all_succeeded

    def test_bounded_concurrency(self):
        runner = BulkOperationRunner(max_workers=2)
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}

        def unit():
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.02)
            with lock:
                state["active"] -= 1
            return True

        result = runner.run([WorkUnit(str(i), unit) for i in range(8)])

        assert len(result.succeeded) == 8
        assert state["peak"] <= 2

    def test_cancel_before_start(self):
        cancel = threading.Event()
        cancel.set()

        result = BulkOperationRunner().run([WorkUnit("a", ok(1))], cancel_event=cancel)

        assert result.cancelled == ["a"]
        assert result.to_dict()["failed"] == ["a"]

    def test_cancel_midway_keeps_in_flight(self):
        cancel = threading.Event()

        def first():
            cancel.set()
            return "done"

        units = [WorkUnit("a", first)] + [WorkUnit(k, ok(k)) for k in ("b", "c", "d")]

        result = BulkOperationRunner(max_workers=1).run(units, cancel_event=cancel)

        assert [key for key, _ in result.succeeded] == ["a"]
        assert result.cancelled == ["b", "c", "d"]

    def test_failure_metadata(self):
        result = BulkOperationRunner().run([
            WorkUnit("a", boom(RateLimitError("throttled", retry_after=5, status_code=429))),
        ])

        failure = result.failed[0]
        assert failure.retryable
        assert "HTTP 429" in str(failure)

    def test_invalid_workers(self):
        with pytest.raises(ValueError):
            BulkOperationRunner(max_workers=0)
