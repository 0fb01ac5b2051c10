"""Bounded thread pools with an explicit saturation policy.

``concurrent.futures.ThreadPoolExecutor`` queues without limit, so the pool
tracks in-flight work with a semaphore sized ``max_workers + queue_size``.
When every slot is taken the configured policy decides what happens:

- ``CALLER_RUNS``: the submitting thread runs the task itself and gets back
  an already-completed future. No work is ever dropped.
- ``REJECT``: ``submit`` returns a ``PoolSaturated`` value instead of a
  future. Callers check for it explicitly.
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Union

logger = logging.getLogger(__name__)

# How often a blocked join re-checks its cancellation token
JOIN_POLL_SECONDS = 0.2


class RejectionPolicy(str, Enum):
    CALLER_RUNS = "caller_runs"
    REJECT = "reject"


@dataclass(frozen=True)
class PoolConfig:
    """Sizing for one worker pool."""

    name: str
    max_workers: int
    queue_size: int
    policy: RejectionPolicy = RejectionPolicy.CALLER_RUNS

    @property
    def capacity(self) -> int:
        return self.max_workers + self.queue_size


@dataclass(frozen=True)
class PoolSaturated:
    """Returned by ``WorkerPool.submit`` when a REJECT pool is full."""

    pool_name: str
    capacity: int


class WorkerPool:
    """ThreadPoolExecutor wrapper with bounded queueing."""

    def __init__(self, config: PoolConfig):
        if config.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if config.queue_size < 0:
            raise ValueError("queue_size must be >= 0")
        self.config = config
        self._slots = threading.BoundedSemaphore(config.capacity)
        self._executor = ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix=f"{config.name}-",
        )

    @property
    def name(self) -> str:
        return self.config.name

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Union[Future, PoolSaturated]:
        """
        Schedule ``fn(*args, **kwargs)`` on the pool.

        Returns:
            A Future, or PoolSaturated when the pool is full and rejects work
        """
        if not self._slots.acquire(blocking=False):
            if self.config.policy is RejectionPolicy.CALLER_RUNS:
                logger.warning(
                    "[POOL] %s saturated (%d slots), running task in caller thread",
                    self.name,
                    self.config.capacity,
                )
                return self._run_in_caller(fn, *args, **kwargs)
            return PoolSaturated(pool_name=self.name, capacity=self.config.capacity)

        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except RuntimeError:
            # Executor already shut down
            self._slots.release()
            raise
        future.add_done_callback(lambda _: self._slots.release())
        return future

    def _run_in_caller(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        future.set_running_or_notify_cancel()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown(wait=True)


def join_all(
    futures: Iterable[Future],
    cancel: Optional[threading.Event] = None,
    poll_interval: float = JOIN_POLL_SECONDS,
) -> bool:
    """
    Wait for every future, re-checking ``cancel`` between polls.

    Returns:
        True if cancelled before all futures finished
    """
    pending = set(futures)
    while pending:
        if cancel is not None and cancel.is_set():
            return True
        _, pending = wait(pending, timeout=poll_interval, return_when=FIRST_COMPLETED)
    return False
