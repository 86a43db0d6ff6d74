"""
Bulk Operation Runner - Bounded fan-out / fan-in over independent work units.

One unit's exception never reaches another unit or the caller; every unit
ends up in exactly one of succeeded, failed, or cancelled, keyed by the
identity it was submitted with so callers can retry individually.
"""

import logging
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence


@dataclass
class WorkUnit:
    """An independent piece of work identified by ``key``."""

    key: str
    fn: Callable[[], Any]


@dataclass
class BulkFailure:
    """Why one unit failed."""

    key: str
    error: str
    status_code: Optional[int] = None
    retryable: bool = False

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.key}: {self.error} (HTTP {self.status_code})"
        return f"{self.key}: {self.error}"


@dataclass
class BulkResult:
    """Partitioned outcome of a bulk run."""

    succeeded: list[tuple[str, Any]] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    # (key, reason) for units the caller filtered out before running
    skipped: list[tuple[str, str]] = field(default_factory=list)

    @property
    def created(self) -> list[tuple[str, Any]]:
        return self.succeeded

    @property
    def failed_keys(self) -> list[str]:
        return [f.key for f in self.failed]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed and not self.cancelled

    @property
    def total(self) -> int:
        return (
            len(self.succeeded) + len(self.failed)
            + len(self.cancelled) + len(self.skipped)
        )

    def to_dict(self) -> dict[str, list]:
        """
        Serialize as the bulk API response.

        Cancelled units were never attempted, so they are reported as failed
        for the caller to retry.
        """
        created = []
        for key, value in self.succeeded:
            entry = {"itemId": key}
            if hasattr(value, "to_dict"):
                entry.update(value.to_dict())
            created.append(entry)
        return {
            "created": created,
            "failed": self.failed_keys + list(self.cancelled),
            "skipped": [key for key, _ in self.skipped],
        }


class BulkOperationRunner:
    """
    Executes work units on a bounded thread pool.

    At most ``max_workers`` units are in flight at once. Results are
    collected only on the calling thread as futures complete, so the result
    object is never touched by two threads.

    Usage:
        runner = BulkOperationRunner(max_workers=4)
        result = runner.run([WorkUnit("fb-1", lambda: sink.create(item)), ...])
    """

    def __init__(self, max_workers: int = 4):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.logger = logging.getLogger("BulkOperationRunner")

    def run(
        self,
        units: Sequence[WorkUnit],
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkResult:
        """
        Run all units and partition their outcomes.

        Args:
            units: Work to run; keys should be unique
            cancel_event: When set, no new units are dispatched; in-flight
                units still finish and are recorded

        Returns:
            BulkResult, ordered like ``units`` within each partition
        """
        order = {unit.key: index for index, unit in enumerate(units)}
        result = BulkResult()
        if not units:
            return result

        pending = deque(units)
        in_flight: dict[Future, WorkUnit] = {}

        with ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="bulk",
        ) as pool:
            while pending or in_flight:
                if cancel_event is not None and cancel_event.is_set() and pending:
                    self.logger.warning(
                        f"Bulk run cancelled, {len(pending)} unit(s) not dispatched"
                    )
                    result.cancelled.extend(unit.key for unit in pending)
                    pending.clear()

                while pending and len(in_flight) < self.max_workers:
                    unit = pending.popleft()
                    in_flight[pool.submit(unit.fn)] = unit

                if not in_flight:
                    break

                done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
                for future in done:
                    self._record(result, in_flight.pop(future), future)

        result.succeeded.sort(key=lambda entry: order[entry[0]])
        result.failed.sort(key=lambda failure: order[failure.key])
        result.cancelled.sort(key=lambda key: order[key])

        self.logger.info(
            f"Bulk run finished: {len(result.succeeded)} succeeded, "
            f"{len(result.failed)} failed, {len(result.cancelled)} cancelled"
        )
        return result

    def _record(self, result: BulkResult, unit: WorkUnit, future: Future) -> None:
        error = future.exception()
        if error is None:
            result.succeeded.append((unit.key, future.result()))
            return

        self.logger.error(f"Bulk unit {unit.key} failed: {error}")
        result.failed.append(BulkFailure(
            key=unit.key,
            error=str(error) or type(error).__name__,
            status_code=getattr(error, "status_code", None),
            retryable=getattr(error, "retryable", False),
        ))
