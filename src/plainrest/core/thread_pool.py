"""
=============================================================================
THREAD POOL
=============================================================================

A fixed set of worker threads fed by a bounded queue. One connection is
one task; the accept loop never blocks on request processing.

    accept loop ──submit(conn)──► ┌─────────────────────┐
                                  │ queue.Queue(maxsize)│
                                  └──────────┬──────────┘
                         ┌───────────────────┼───────────────────┐
                         ▼                   ▼                   ▼
                    Worker-0            Worker-1            Worker-N
                   (get → run)         (get → run)         (get → run)

When the queue is full, submit() returns False and the caller answers
503 instead of letting the backlog grow without bound.

Shutdown pushes one ``None`` (poison pill) per worker.

=============================================================================
"""

from enum import Enum
from typing import Any, Callable, Optional
import logging
import queue
import threading
import time


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


class Worker(threading.Thread):
    """Pulls tasks off the shared queue until it receives a poison pill."""

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute(*task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute(self, func: Callable[..., Any], args: tuple):
        self.state = WorkerState.BUSY
        start_time = time.perf_counter()
        try:
            func(*args)
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            logger.exception(f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}")
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size worker pool with a bounded task queue.

    Usage:
        pool = ThreadPool(workers=8, queue_size=100)
        pool.start()
        if not pool.submit(handle, conn):
            reject(conn)        # overloaded
        pool.shutdown()
    """

    def __init__(self, workers: int = 8, queue_size: int = 100):
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.workers = workers
        self.queue_size = queue_size

        self._task_queue: "queue.Queue[Optional[tuple]]" = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    def start(self):
        with self._lock:
            if self._started:
                return
            logger.info(f"Starting thread pool with {self.workers} workers")
            for worker_id in range(self.workers):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()
            self._started = True
            self._shutdown = False

    def submit(self, func: Callable[..., Any], *args: Any) -> bool:
        """
        Queue ``func(*args)`` without blocking.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started or self._shutdown:
            raise RuntimeError("Thread pool is not running")

        try:
            self._task_queue.put_nowait((func, args))
            return True
        except queue.Full:
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop all workers.

        Args:
            wait: Let queued tasks finish before the workers exit.
            timeout: Upper bound in seconds on waiting for queued tasks.
        """
        with self._lock:
            if not self._started:
                return
            self._shutdown = True

        logger.info("Shutting down thread pool...")

        if wait:
            deadline = time.monotonic() + timeout if timeout else None
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.monotonic() > deadline:
                    logger.warning("Shutdown timeout, abandoning queued tasks")
                    break
                time.sleep(0.05)

        if not wait or self._task_queue.unfinished_tasks:
            self._drain()

        for _ in self._workers:
            self._task_queue.put(None)
        for worker in self._workers:
            worker.join(timeout=2.0)

        with self._lock:
            self._workers.clear()
            self._started = False
        logger.info("Thread pool shutdown complete")

    def _drain(self):
        while True:
            try:
                self._task_queue.get_nowait()
            except queue.Empty:
                return
            self._task_queue.task_done()

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    @property
    def active_workers(self) -> int:
        return sum(1 for w in self._workers if w.state != WorkerState.STOPPED)

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def pending_tasks(self) -> int:
        return self._task_queue.qsize()
