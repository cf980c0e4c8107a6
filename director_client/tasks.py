"""Asynchronous task handling: submit a mutation, then wait for its outcome."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, TYPE_CHECKING

from .exceptions import TaskFailedError, TaskTimeoutError, TransportError
from .models import EntityKind, Task, TaskError, TaskStatus, deserialize

if TYPE_CHECKING:
    from .client import DirectorClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskOutcome:
    """Terminal observation of a task."""
    task: Task
    elapsed: float
    polls: int

    @property
    def status(self) -> str:
        return self.task.status

    @property
    def error(self) -> TaskError | None:
        """Server error detail; only set for ERROR, CANCELLED and ABORTED."""
        if self.task.status in TaskStatus.FAILED:
            return self.task.error
        return None

    @property
    def succeeded(self) -> bool:
        return self.task.status == TaskStatus.SUCCESS

    def raise_for_status(self) -> TaskOutcome:
        """Raise TaskFailedError unless the task succeeded."""
        if not self.succeeded:
            raise TaskFailedError(self.task, self.task.status, self.error)
        return self


@dataclass
class TaskService:
    """
    Submits mutating requests and waits for the tasks they return.

    Usage:
        task = client.tasks.submit("PUT", locator, {"value": "VALUE"})
        outcome = client.tasks.wait(task, timeout=60)
        outcome.raise_for_status()
    """
    _client: DirectorClient = field(repr=False, compare=False)
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], float] = time.monotonic

    def submit(self, method: str, locator: str, payload: dict[str, Any] | None = None) -> Task:
        """Issue a mutating request and return the task tracking it."""
        transport = self._client.transport
        if method == "PUT":
            data = transport.put(locator, payload or {})
        elif method == "POST":
            data = transport.post(locator, payload or {})
        elif method == "DELETE":
            data = transport.delete(locator)
        else:
            raise ValueError(f"Not a mutating method: {method}")
        task = deserialize(data, EntityKind.TASK)
        logger.debug(f"Submitted {method} {locator} -> task {task.locator} ({task.status})")
        return task

    def get(self, task: Task | str) -> Task:
        """Fetch the current state of a task."""
        locator = task.locator if isinstance(task, Task) else self._client.resolver.resolve_any(task)
        return deserialize(self._client.transport.get(locator), EntityKind.TASK)

    def wait(
        self,
        task: Task,
        poll_interval: float | None = None,
        timeout: float | None = None,
    ) -> TaskOutcome:
        """
        Block until the task reaches a terminal state.

        The first poll happens immediately, so an already finished task
        returns without sleeping. Failed polls are retried up to
        task_poll_retries times in a row; a failed poll is never taken
        as a task failure.

        Args:
            task: Task handle returned by a mutating call
            poll_interval: Seconds between polls (default: config.task_poll_interval)
            timeout: Seconds to wait in total (default: config.task_timeout)

        Returns:
            TaskOutcome for the terminal state

        Raises:
            TaskTimeoutError: If the task is still running after timeout;
                the server-side task is left alone
            TransportError: If more than task_poll_retries polls fail in a row
        """
        config = self._client.config
        poll_interval = config.task_poll_interval if poll_interval is None else poll_interval
        timeout = config.task_timeout if timeout is None else timeout
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        if task.locator is None:
            raise ValueError("Task handle has no locator to poll")

        start = self.clock()
        last_seen = task
        failures = 0
        polls = 0

        while True:
            polls += 1
            try:
                current = self.get(task)
            except TransportError as e:
                failures += 1
                if failures > config.task_poll_retries:
                    raise
                logger.warning(
                    f"Poll {polls} of task {task.locator} failed "
                    f"({failures}/{config.task_poll_retries}): {e}"
                )
            else:
                failures = 0
                last_seen = current
                logger.debug(f"Task {task.locator} is {current.status}")
                if current.is_terminal:
                    return TaskOutcome(task=current, elapsed=self.clock() - start, polls=polls)

            remaining = timeout - (self.clock() - start)
            if remaining <= 0:
                raise TaskTimeoutError(task, last_seen.status, timeout)
            self.sleep(min(poll_interval, remaining))

    def wait_all(
        self,
        tasks: list[Task],
        poll_interval: float | None = None,
        timeout: float | None = None,
    ) -> list[TaskOutcome]:
        """Wait for several tasks one after the other."""
        return [self.wait(t, poll_interval=poll_interval, timeout=timeout) for t in tasks]
