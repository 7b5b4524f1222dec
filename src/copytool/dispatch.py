"""Launching detached copy tasks.

Every filesystem entry below the root is processed by its own task. The
dispatcher keeps retrying while the system refuses to create tasks, and
drops a single entry when task creation fails for any other reason.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from functools import partial
from queue import Queue

from copytool.filesystem import RETRY_SECONDS
from copytool.protocols import TaskLauncher
from copytool.stats import CopyStats
from copytool.types import PathPair

logger = logging.getLogger(__name__)


class TaskCapacityError(Exception):
    """Raised when no further task can be created at the moment."""


def _raise_for_start_failure(e: RuntimeError) -> None:
    # CPython reports a refused pthread_create as this RuntimeError
    if "can't start new thread" in str(e):
        raise TaskCapacityError(str(e)) from e
    raise e


class ThreadLauncher:
    """Starts one OS thread per task.

    Threads are never joined. They are not daemons, so the interpreter
    still lets them finish before it exits.
    """

    def launch(self, target: Callable[[], None], name: str) -> None:
        thread = threading.Thread(target=target, name=name)
        try:
            thread.start()
        except RuntimeError as e:
            _raise_for_start_failure(e)

    def shutdown(self) -> None:
        pass


class PoolLauncher:
    """Runs tasks on at most ``max_workers`` threads fed by an unbounded queue.

    Submitting never blocks, so a directory task queueing its children can
    not deadlock against the pool size. A worker is started only when a task
    arrives and none is idle; if the system refuses a new worker the pool
    carries on with the ones it has.
    """

    def __init__(self, max_workers: int) -> None:
        self.max_workers = max_workers
        self._queue: Queue[Callable[[], None] | None] = Queue()
        self._lock = threading.Lock()
        self._workers: list[threading.Thread] = []
        self._idle = 0
        self._closed = False

    def launch(self, target: Callable[[], None], name: str) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("cannot launch tasks after shutdown")
            if self._idle:
                self._idle -= 1
            else:
                self._start_worker()
            self._queue.put(target)

    def shutdown(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            workers = list(self._workers)
        for _ in workers:
            self._queue.put(None)
        for worker in workers:
            worker.join()

    def _start_worker(self) -> None:
        # Called with self._lock held
        if len(self._workers) >= self.max_workers:
            return
        worker = threading.Thread(
            target=self._worker,
            name=f"copytool-{len(self._workers)}",
            daemon=True,
        )
        try:
            worker.start()
        except RuntimeError as e:
            if self._workers:
                logger.debug("Pool limited to %d workers: %s", len(self._workers), e)
                return
            _raise_for_start_failure(e)
        self._workers.append(worker)

    def _worker(self) -> None:
        while True:
            target = self._queue.get()
            if target is None:
                return
            try:
                target()
            except Exception:
                logger.exception("Pool task failed")
            with self._lock:
                self._idle += 1


class TaskTracker:
    """Counts in-flight tasks so a caller can wait for all of them."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = 0

    @property
    def pending(self) -> int:
        with self._cond:
            return self._pending

    def add(self) -> None:
        with self._cond:
            self._pending += 1

    def done(self) -> None:
        with self._cond:
            self._pending -= 1
            if self._pending <= 0:
                self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until no task is in flight.

        Returns:
            False if ``timeout`` expired first.
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._pending <= 0, timeout)


class TaskDispatcher:
    """Starts each path pair's processing as an independent task."""

    def __init__(
        self,
        launcher: TaskLauncher,
        tracker: TaskTracker | None = None,
        stats: CopyStats | None = None,
        retry_interval: float = RETRY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            launcher: Creates the concurrent tasks.
            tracker: Counts in-flight tasks (created if not provided).
            stats: Run counters, updated when a task fails unexpectedly.
            retry_interval: Seconds to wait while task creation is refused.
            sleep: Sleep function (injectable for tests).
        """
        self.launcher = launcher
        self.tracker = tracker or TaskTracker()
        self.stats = stats
        self.retry_interval = retry_interval
        self._sleep = sleep

    def dispatch(self, pair: PathPair, work: Callable[[PathPair], None]) -> bool:
        """Run ``work(pair)`` as a detached task.

        Ownership of ``pair`` passes to the new task. No result or error
        comes back from it.

        Args:
            pair: Pair to process.
            work: Callable executed by the task.

        Returns:
            True if the task was started, False if the pair was dropped.
        """
        self.tracker.add()
        task = partial(self._run, pair, work)
        while True:
            try:
                self.launcher.launch(task, name=f"copy:{pair.source}")
                return True
            except TaskCapacityError:
                logger.debug(
                    "%s: task limit reached, retrying in %.1fs", pair.source, self.retry_interval
                )
            except (RuntimeError, OSError, MemoryError) as e:
                logger.error("Unable to create task for %s: %s", pair.source, e)
                self.tracker.done()
                return False
            self._sleep(self.retry_interval)

    def _run(self, pair: PathPair, work: Callable[[PathPair], None]) -> None:
        try:
            work(pair)
        except Exception:
            logger.exception("Unexpected failure while copying %s", pair.source)
            if self.stats is not None:
                self.stats.record_error()
        finally:
            self.tracker.done()
