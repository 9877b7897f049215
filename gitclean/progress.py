"""Generic "do work over items, report i of N" helper and progress sinks."""

from __future__ import annotations

import sys
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class ProgressEvent(Generic[T]):
    index: int  # 1-based count of finished items
    total: int
    item: T
    activity: str


ProgressSink = Callable[[ProgressEvent], None]


def for_each_with_progress(
    items: Sequence[T],
    worker: Callable[[T], R],
    activity: str,
    sink: Optional[ProgressSink] = None,
    workers: int = 1,
) -> list[R]:
    """Run ``worker`` on every item and report progress after each one.

    Results come back in input order. With ``workers > 1`` items run on a
    thread pool; progress events are then reported in completion order, one
    at a time.
    """
    total = len(items)
    if total == 0:
        return []

    if workers <= 1:
        results: list[R] = []
        for i, item in enumerate(items, 1):
            results.append(worker(item))
            if sink is not None:
                sink(ProgressEvent(i, total, item, activity))
        return results

    lock = threading.Lock()
    slots: list[Optional[R]] = [None] * total
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(worker, item): idx for idx, item in enumerate(items)}
        for i, future in enumerate(as_completed(futures), 1):
            idx = futures[future]
            slots[idx] = future.result()
            if sink is not None:
                with lock:
                    sink(ProgressEvent(i, total, items[idx], activity))
    return slots  # type: ignore[return-value]


class StderrProgress:
    """Single-line ``[i/N] name`` progress on stderr."""

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stderr

    def __call__(self, event: ProgressEvent) -> None:
        name = str(event.item).rstrip("/").split("/")[-1]
        print(
            f"\r  {event.activity} [{event.index}/{event.total}] {name:<30}",
            end="",
            file=self.stream,
        )
        if event.index == event.total:
            print(file=self.stream)


class RichProgress:
    """Rich progress bar sink, one task per activity. Use as a context manager."""

    def __init__(self, console=None, transient: bool = True) -> None:
        from rich.progress import (
            BarColumn,
            MofNCompleteColumn,
            Progress,
            TextColumn,
            TimeElapsedColumn,
        )

        from gitclean.theme import CYAN, GREEN

        self._progress = Progress(
            TextColumn(f"[bold {CYAN}]{{task.description}}"),
            BarColumn(bar_width=None, complete_style=GREEN),
            MofNCompleteColumn(),
            TextColumn("{task.fields[current]}", style="dim"),
            TimeElapsedColumn(),
            console=console,
            transient=transient,
        )
        self._tasks: dict[str, int] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> "RichProgress":
        self._progress.start()
        return self

    def __exit__(self, *exc) -> None:
        self._progress.stop()

    def __call__(self, event: ProgressEvent) -> None:
        with self._lock:
            task = self._tasks.get(event.activity)
            if task is None:
                task = self._progress.add_task(event.activity, total=event.total, current="")
                self._tasks[event.activity] = task
            name = str(event.item).rstrip("/").split("/")[-1]
            self._progress.update(task, completed=event.index, current=name)
