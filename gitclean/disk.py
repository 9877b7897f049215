"""Disk usage of a repository working tree."""

from __future__ import annotations

import os

from gitclean.errors import SizeMeasurementError


def directory_size(path: str) -> int:
    """Sum the sizes of all regular files under path, in bytes.

    Symlinks are counted by their own size and never followed. Any entry that
    cannot be read makes the whole measurement fail, since a partial total
    would skew the before/after difference.
    """
    total = 0
    stack = [path]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    if entry.is_dir(follow_symlinks=False):
                        stack.append(entry.path)
                    else:
                        total += entry.stat(follow_symlinks=False).st_size
        except OSError as exc:
            raise SizeMeasurementError(path, f"cannot measure {current}: {exc}") from exc
    return total
