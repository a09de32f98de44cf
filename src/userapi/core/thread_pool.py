"""
Bounded worker pool for connections.

    pool = ThreadPool(min_workers=4, max_workers=16, queue_size=100)
    pool.start()
    if not pool.submit(handle, conn, max_wait=30):
        ...                      # queue full: answer 503
    pool.shutdown(timeout=30)

Jobs wait in a bounded FIFO. The pool starts min_workers threads and adds
one more (up to max_workers) whenever a submit finds more outstanding
jobs than threads. A job that sat in the queue longer than its max_wait
is dropped unrun: its client has most likely gone.
"""

import queue
import threading
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Job:
    func: Callable[..., Any]
    args: tuple = ()
    max_wait: Optional[float] = None
    enqueued_at: float = field(default_factory=time.monotonic)

    @property
    def expired(self) -> bool:
        return self.max_wait is not None and time.monotonic() - self.enqueued_at > self.max_wait


_STOP = None


class ThreadPool:
    """Self-growing pool of daemon worker threads over a bounded queue."""

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        queue_size: int = 100,
        name: str = "userapi-worker",
    ):
        if not 1 <= min_workers <= max_workers:
            raise ValueError("need 1 <= min_workers <= max_workers")
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.name = name

        self._jobs: "queue.Queue[Optional[Job]]" = queue.Queue(maxsize=queue_size)
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._busy = 0
        self._completed = 0
        self._failed = 0
        self._dropped = 0
        self._accepting = False

    @property
    def running(self) -> bool:
        return self._accepting

    def start(self):
        with self._lock:
            if self._accepting:
                return
            self._accepting = True
            for _ in range(self.min_workers):
                self._spawn_locked()
        logger.info(f"Thread pool started: {self.min_workers}-{self.max_workers} workers")

    def _spawn_locked(self):
        thread = threading.Thread(
            target=self._work,
            name=f"{self.name}-{len(self._threads)}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()

    def submit(self, func: Callable[..., Any], *args: Any, max_wait: Optional[float] = None) -> bool:
        """
        Queue func(*args) without blocking.

        Args:
            max_wait: Drop the job if it waits longer than this many seconds.

        Returns:
            False when the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._accepting:
            raise RuntimeError("Thread pool is not running")

        try:
            self._jobs.put_nowait(Job(func, args, max_wait))
        except queue.Full:
            return False

        with self._lock:
            outstanding = self._busy + self._jobs.qsize()
            if outstanding > len(self._threads) and len(self._threads) < self.max_workers:
                self._spawn_locked()
                logger.debug(f"Thread pool grew to {len(self._threads)} workers")
        return True

    def _work(self):
        while True:
            job = self._jobs.get()
            try:
                if job is _STOP:
                    return
                self._run(job)
            finally:
                self._jobs.task_done()

    def _run(self, job: Job):
        if job.expired:
            logger.warning(f"Dropped job that waited more than {job.max_wait}s in the queue")
            with self._lock:
                self._dropped += 1
            return

        with self._lock:
            self._busy += 1
        try:
            job.func(*job.args)
        except Exception as e:
            logger.exception(f"Job failed: {e}")
            with self._lock:
                self._failed += 1
        else:
            with self._lock:
                self._completed += 1
        finally:
            with self._lock:
                self._busy -= 1

    def shutdown(self, timeout: Optional[float] = 30.0):
        """
        Stop accepting jobs, let queued ones finish, then stop the workers.

        Args:
            timeout: Longest to wait for the queue to drain and the workers
                     to exit. None waits indefinitely.
        """
        with self._lock:
            if not self._accepting:
                return
            self._accepting = False
            threads = list(self._threads)

        logger.info("Thread pool shutting down")
        deadline = None if timeout is None else time.monotonic() + timeout

        for _ in threads:
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0.01)
            try:
                self._jobs.put(_STOP, timeout=remaining)
            except queue.Full:
                logger.warning("Thread pool queue did not drain before the shutdown timeout")
                break

        for thread in threads:
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0.01)
            thread.join(remaining)

        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            leftover = len(self._threads)
        if leftover:
            logger.warning(f"{leftover} worker threads still busy after shutdown")
        logger.info("Thread pool stopped")

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "workers": len(self._threads),
                "busy": self._busy,
                "queued": self._jobs.qsize(),
                "completed": self._completed,
                "failed": self._failed,
                "dropped": self._dropped,
            }
