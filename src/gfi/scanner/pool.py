"""Bounded worker pool with an explicit task queue.

Tasks may submit further tasks while running, which is what a recursive
directory walk needs. Results go to a single consumer through a bounded
queue, so producers block while the consumer is busy. The outstanding-task
counter never leaves this module: the consumer only sees its iterator end.
"""
from __future__ import annotations

import logging
import os
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.05
_DONE = object()


@dataclass
class _Failure:
    """Unexpected exception raised by a task, re-raised in the consumer."""

    error: Exception


def default_workers() -> int:
    return os.cpu_count() or 1


class WorkerPool:
    def __init__(self, workers: int | None = None, queue_depth: int = 1, name: str = "gfi-worker") -> None:
        self.workers = workers or default_workers()
        self.name = name
        self._tasks: "queue.Queue[tuple[Callable[..., Any], tuple] | None]" = queue.Queue()
        self._results: "queue.Queue[Any]" = queue.Queue(maxsize=queue_depth)
        self._pending = 0
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._threads: list[threading.Thread] = []

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue a unit of work. Safe to call from inside a running task."""
        with self._lock:
            self._pending += 1
        self._tasks.put((fn, args))

    def emit(self, item: Any) -> bool:
        """Hand an item to the consumer, blocking while the result queue is full.

        Returns False once the pool has been stopped; the caller should give up.
        """
        while not self._stopped.is_set():
            try:
                self._results.put(item, timeout=_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def results(self) -> Iterator[Any]:
        """Yield emitted items until every submitted task has finished."""
        with self._lock:
            if self._pending == 0:
                return
        self._start()
        try:
            while True:
                item = self._results.get()
                if item is _DONE:
                    return
                if isinstance(item, _Failure):
                    raise item.error
                yield item
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Stop workers and wait for them. Items not yet consumed are dropped."""
        if self._stopped.is_set() and not self._threads:
            return
        self._stopped.set()
        for _ in self._threads:
            self._tasks.put(None)
        for t in self._threads:
            t.join()
        self._threads.clear()

    def _start(self) -> None:
        if self._threads:
            return
        logger.debug(f"Starting {self.workers} workers ({self.name})")
        for i in range(self.workers):
            t = threading.Thread(target=self._run, name=f"{self.name}-{i}", daemon=True)
            t.start()
            self._threads.append(t)

    def _run(self) -> None:
        while True:
            task = self._tasks.get()
            if task is None:
                return
            fn, args = task
            try:
                if not self._stopped.is_set():
                    fn(*args)
            except Exception as e:
                self.emit(_Failure(e))
            finally:
                self._finish_one()

    def _finish_one(self) -> None:
        with self._lock:
            self._pending -= 1
            done = self._pending == 0
        if done:
            self.emit(_DONE)
