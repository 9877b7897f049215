"""Run pipeline: locate, classify, clean, summarize.

The phases run strictly in that order. Each repository is an independent
unit: a failing status check or clean is recorded against that repository and
the rest of the run carries on. Only an invalid root aborts a run, and it does
so before anything on disk is touched.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from gitclean.classify import Classification, StatusChecker, classify
from gitclean.disk import directory_size
from gitclean.errors import CleanupError, InvalidRootPath, StatusCheckError
from gitclean.executor import Cleaner, CleanupOutcome, Sizer, clean
from gitclean.git import DEFAULT_TIMEOUT, clean_repository, has_untracked_files
from gitclean.progress import ProgressSink, for_each_with_progress
from gitclean.scanner import resolve_root, scan_tree

logger = logging.getLogger(__name__)

REASON_UNTRACKED = "untracked files"
REASON_DECLINED = "declined"


@dataclass(frozen=True)
class RunConfig:
    root: str = "."
    depth: int = 3
    force: bool = False
    simulate: bool = False
    measure_size: bool = False
    timeout: float = DEFAULT_TIMEOUT
    workers: int = 1
    skip_dirs: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", resolve_root(self.root))

    def validate(self) -> None:
        """Raise InvalidRootPath or ValueError if the config cannot be run."""
        if not os.path.isdir(self.root):
            raise InvalidRootPath(self.root, "not an existing directory")
        if self.depth < 0:
            raise ValueError(f"depth must be >= 0, got {self.depth}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")


@dataclass(frozen=True)
class RepoError:
    repo: str
    stage: str  # "status" or "clean"
    message: str


@dataclass(frozen=True)
class RunSummary:
    root: str
    depth: int
    repos_found: int
    cleaned: tuple[str, ...]
    skipped: tuple[str, ...]
    errors: tuple[RepoError, ...]
    duration: timedelta
    bytes_reclaimed: Optional[int]
    simulated: bool = False
    cancelled: bool = False
    unprocessed: tuple[str, ...] = ()
    unreadable: tuple[str, ...] = ()
    skip_reasons: tuple[tuple[str, str], ...] = ()

    @property
    def skipped_reasons(self) -> Mapping[str, str]:
        """Read-only view of repo -> reason for every skipped repository."""
        return MappingProxyType(dict(self.skip_reasons))

    @property
    def errored(self) -> tuple[str, ...]:
        return tuple(e.repo for e in self.errors)


class SummaryBuilder:
    """Thread-safe accumulator that is frozen into a RunSummary at the end."""

    def __init__(self, root: str, depth: int, simulated: bool, measure_size: bool) -> None:
        self.root = root
        self.depth = depth
        self.simulated = simulated
        self.measure_size = measure_size
        self._lock = threading.Lock()
        self._found: list[str] = []
        self._unreadable: list[str] = []
        self._outcomes: list[CleanupOutcome] = []
        self._skipped: dict[str, str] = {}
        self._errors: list[RepoError] = []
        self._unprocessed: list[str] = []
        self._cancelled = False

    def add_found(self, repos: list[str], unreadable: list[str]) -> None:
        with self._lock:
            self._found.extend(repos)
            self._unreadable.extend(unreadable)

    def add_cleaned(self, outcome: CleanupOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)

    def add_skipped(self, repo: str, reason: str) -> None:
        with self._lock:
            self._skipped[repo] = reason

    def add_error(self, repo: str, stage: str, message: str) -> None:
        with self._lock:
            self._errors.append(RepoError(repo=repo, stage=stage, message=message))

    def add_unprocessed(self, repo: str) -> None:
        with self._lock:
            self._unprocessed.append(repo)
            self._cancelled = True

    def total_bytes(self) -> Optional[int]:
        """Sum of reclaimed bytes, or None if any cleaned repo was not measured."""
        if self.simulated or not self.measure_size:
            return None
        total = 0
        for outcome in self._outcomes:
            if outcome.bytes_reclaimed is None:
                return None
            total += outcome.bytes_reclaimed
        return total

    def build(self, duration: timedelta) -> RunSummary:
        with self._lock:
            return RunSummary(
                root=self.root,
                depth=self.depth,
                repos_found=len(self._found),
                cleaned=tuple(sorted(o.repo for o in self._outcomes)),
                skipped=tuple(sorted(self._skipped)),
                errors=tuple(sorted(self._errors, key=lambda e: e.repo)),
                duration=duration,
                bytes_reclaimed=self.total_bytes(),
                simulated=self.simulated,
                cancelled=self._cancelled,
                unprocessed=tuple(sorted(self._unprocessed)),
                unreadable=tuple(sorted(self._unreadable)),
                skip_reasons=tuple(sorted(self._skipped.items())),
            )


_UNPROCESSED = object()


def run_cleanup(
    config: RunConfig,
    *,
    status_checker: Optional[StatusChecker] = None,
    cleaner: Optional[Cleaner] = None,
    sizer: Sizer = directory_size,
    progress: Optional[ProgressSink] = None,
    confirm: Optional[Callable[[str], bool]] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> RunSummary:
    """Run a full locate -> classify -> clean pass and return its summary.

    ``confirm`` is asked once per eligible repository before it is cleaned
    (never in simulate mode); answering False marks it skipped. When
    ``should_cancel`` turns true, repositories not yet started are reported
    as unprocessed. The git collaborators default to the real git commands
    bound to ``config.timeout``.
    """
    start = time.monotonic()
    config.validate()

    if status_checker is None:
        status_checker = partial(has_untracked_files, timeout=config.timeout)
    if cleaner is None:
        cleaner = partial(clean_repository, timeout=config.timeout)

    scan = scan_tree(config.root, config.depth, config.skip_dirs)
    builder = SummaryBuilder(config.root, config.depth, config.simulate, config.measure_size)
    builder.add_found(scan.repos, scan.unreadable)

    cancel_flag = threading.Event()

    def _cancelled() -> bool:
        if not cancel_flag.is_set() and should_cancel is not None and should_cancel():
            logger.warning("Run cancelled; remaining repositories are left untouched")
            cancel_flag.set()
        return cancel_flag.is_set()

    def _check(repo: str):
        if _cancelled():
            return _UNPROCESSED
        try:
            return classify(repo, config.force, status_checker)
        except StatusCheckError as exc:
            logger.error("Status check failed for %s: %s", repo, exc.message)
            return exc

    checked = for_each_with_progress(
        scan.repos, _check, "Checking", progress, workers=config.workers,
    )

    eligible: list[str] = []
    for repo, result in zip(scan.repos, checked):
        if result is _UNPROCESSED:
            builder.add_unprocessed(repo)
        elif isinstance(result, StatusCheckError):
            builder.add_error(repo, "status", result.message)
        elif result is Classification.SKIPPED_UNTRACKED:
            builder.add_skipped(repo, REASON_UNTRACKED)
        else:
            eligible.append(repo)

    def _clean(repo: str) -> None:
        if _cancelled():
            builder.add_unprocessed(repo)
            return
        if confirm is not None and not config.simulate and not confirm(repo):
            logger.info("Skipping %s: declined", repo)
            builder.add_skipped(repo, REASON_DECLINED)
            return
        try:
            outcome = clean(repo, config.simulate, config.measure_size, cleaner, sizer)
        except CleanupError as exc:
            logger.error("Clean failed for %s: %s", repo, exc.message)
            builder.add_error(repo, "clean", exc.message)
            return
        builder.add_cleaned(outcome)

    # Prompts cannot be interleaved, so confirming forces one repo at a time
    clean_workers = 1 if confirm is not None else config.workers
    for_each_with_progress(
        eligible,
        _clean,
        "Simulating" if config.simulate else "Cleaning",
        progress,
        workers=clean_workers,
    )

    return builder.build(timedelta(seconds=time.monotonic() - start))
