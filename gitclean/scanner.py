"""Repo discovery: find git repositories under a directory, bounded by depth."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from gitclean.errors import InvalidRootPath, TraversalError

logger = logging.getLogger(__name__)

MARKER = ".git"


@dataclass
class TreeScan:
    """Result of one walk: repository roots plus paths that could not be read."""

    root: str
    repos: list[str] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)
    errors: list[TraversalError] = field(default_factory=list)

    def record_unreadable(self, path: str, exc: OSError, action: str) -> None:
        error = TraversalError(path, f"cannot {action}: {exc.strerror or exc}")
        logger.warning("%s", error)
        self.unreadable.append(path)
        self.errors.append(error)


def resolve_root(root: str) -> str:
    """Expand ``~`` and make ``root`` absolute without touching the filesystem."""
    return os.path.abspath(os.path.expanduser(root))


def scan_tree(
    root: str,
    max_depth: int = 3,
    skip_dirs: frozenset[str] = frozenset(),
) -> TreeScan:
    """Walk ``root`` once and collect every directory that contains ``.git``.

    The root itself is nesting level 0; a repository at level k is found when
    k <= max_depth. Found repositories are still descended into so nested
    repositories are reported as well, but ``.git`` itself never is.
    Symlinked directories are not followed.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")
    root = resolve_root(root)
    if not os.path.isdir(root):
        raise InvalidRootPath(root, "not an existing directory")

    scan = TreeScan(root=root)

    def _walk(path: str, depth: int) -> None:
        try:
            with os.scandir(path) as it:
                entries = list(it)
        except OSError as exc:
            scan.record_unreadable(path, exc, "read")
            return

        has_git = False
        subdirs: list[os.DirEntry] = []

        for entry in entries:
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError as exc:
                # Vanished between listing and stat
                scan.record_unreadable(entry.path, exc, "stat")
                continue
            if entry.name == MARKER:
                has_git = True
            elif entry.name not in skip_dirs:
                subdirs.append(entry)

        if has_git:
            scan.repos.append(path)

        if depth >= max_depth:
            return

        for d in sorted(subdirs, key=lambda e: e.name):
            _walk(d.path, depth + 1)

    _walk(root, 0)
    scan.repos.sort()
    scan.unreadable.sort()
    scan.errors.sort(key=lambda e: e.path)
    logger.debug("Found %d repos under %s (depth %d)", len(scan.repos), root, max_depth)
    return scan


def find_repos(
    root: str,
    max_depth: int = 3,
    skip_dirs: frozenset[str] = frozenset(),
) -> list[str]:
    """Return a sorted list of absolute paths to directories containing .git."""
    return scan_tree(root, max_depth, skip_dirs).repos
