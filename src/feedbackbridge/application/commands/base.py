"""
Command Base - Shared plumbing for write operations against sinks.

Commands validate, honour dry-run, and turn exceptions into CommandResults
so a failing call never escapes into the caller's loop.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from ...core.domain.events import EventBus
from ...core.exceptions import SinkError


@dataclass
class CommandResult:
    """Outcome of executing one command."""

    success: bool = True
    data: Any = None
    error: Optional[str] = None
    exception: Optional[Exception] = None
    dry_run: bool = False
    skipped: bool = False

    @classmethod
    def ok(cls, data: Any = None, dry_run: bool = False) -> "CommandResult":
        return cls(success=True, data=data, dry_run=dry_run)

    @classmethod
    def fail(cls, error: str, exception: Optional[Exception] = None) -> "CommandResult":
        return cls(success=False, error=error, exception=exception)

    @classmethod
    def skip(cls, reason: str) -> "CommandResult":
        return cls(success=True, skipped=True, data=reason)

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.exception, "status_code", None)


class Command(ABC):
    """
    A single write operation.

    Subclasses implement ``name``, ``validate()`` and ``_do_execute()``;
    ``execute()`` wraps them with dry-run handling and error capture.
    """

    def __init__(self, event_bus: Optional[EventBus] = None, dry_run: bool = False):
        self.event_bus = event_bus
        self.dry_run = dry_run
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    def validate(self) -> Optional[str]:
        """Return an error message if the command cannot run."""
        return None

    @abstractmethod
    def _do_execute(self) -> Any:
        ...

    def execute(self) -> CommandResult:
        error = self.validate()
        if error:
            return CommandResult.fail(error)

        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would {self.name}")
            return CommandResult.ok(dry_run=True)

        try:
            return CommandResult.ok(self._do_execute())
        except SinkError as e:
            self.logger.error(f"{self.name} failed: {e}")
            return CommandResult.fail(str(e), exception=e)
        except Exception as e:
            self.logger.exception(f"{self.name} raised unexpectedly")
            return CommandResult.fail(f"{type(e).__name__}: {e}", exception=e)


class CommandBatch:
    """
    Executes a list of commands, optionally stopping on the first failure.

    Usage:
        batch = CommandBatch(stop_on_error=False)
        batch.add(cmd1).add(cmd2)
        batch.execute_all()
    """

    def __init__(self, stop_on_error: bool = False):
        self.stop_on_error = stop_on_error
        self.commands: list[Command] = []
        self.results: list[CommandResult] = []

    def add(self, command: Command) -> "CommandBatch":
        self.commands.append(command)
        return self

    def execute_all(self) -> list[CommandResult]:
        self.results = []
        for command in self.commands:
            result = command.execute()
            self.results.append(result)
            if not result.success and self.stop_on_error:
                break
        return self.results

    @property
    def executed_count(self) -> int:
        return sum(1 for r in self.results if r.success and not r.skipped and not r.dry_run)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def all_succeeded(self) -> bool:
        return all(r.success for r in self.results)
