"""Background task manager - runs syncs without blocking the caller."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class TaskInfo:
    id: str
    operation: str
    status: str = "pending"  # pending, running, completed, failed
    result: Any = None
    error: str = ""
    exception: BaseException | None = None
    done: threading.Event = field(default_factory=threading.Event)


class TaskManager:
    """Runs operations in daemon threads and records a single outcome for each."""

    def __init__(self):
        self._tasks: dict[str, TaskInfo] = {}
        self._lock = threading.Lock()

    def create(self, operation: str) -> str:
        """Create a new task. Returns task_id."""
        task_id = str(uuid.uuid4())[:8]
        task = TaskInfo(id=task_id, operation=operation)
        with self._lock:
            self._tasks[task_id] = task
        return task_id

    def run_in_background(self, task_id: str, fn: Callable[..., Any], *args, **kwargs) -> None:
        """Run a function in a daemon thread, updating task status."""
        task = self.get(task_id)
        if not task:
            return

        def _run():
            task.status = "running"
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                self.fail(task_id, e)
            else:
                self.complete(task_id, result)
            finally:
                if task.status == "running":
                    task.status = "failed"
                task.done.set()

        thread = threading.Thread(target=_run, name=f"task-{task_id}", daemon=True)
        thread.start()

    def submit(self, operation: str, fn: Callable[..., Any], *args, **kwargs) -> str:
        """Create a task and start it. Returns task_id."""
        task_id = self.create(operation)
        self.run_in_background(task_id, fn, *args, **kwargs)
        return task_id

    def complete(self, task_id: str, result: Any) -> None:
        """Mark task as completed."""
        task = self.get(task_id)
        if not task:
            return
        task.status = "completed"
        task.result = result
        task.done.set()

    def fail(self, task_id: str, error: BaseException) -> None:
        """Mark task as failed."""
        task = self.get(task_id)
        if not task:
            return
        logger.debug("Task %s (%s) failed: %s", task_id, task.operation, error)
        task.status = "failed"
        task.error = str(error)
        task.exception = error
        task.done.set()

    def get(self, task_id: str) -> TaskInfo | None:
        with self._lock:
            return self._tasks.get(task_id)

    def wait(self, task_id: str, timeout: float | None = None) -> TaskInfo:
        """Block until the task finishes (or ``timeout`` passes) and return it."""
        task = self.get(task_id)
        if not task:
            raise KeyError(f"Unknown task: {task_id}")
        task.done.wait(timeout)
        return task
