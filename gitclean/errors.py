"""Exception hierarchy for gitclean runs.

Only ``InvalidRootPath`` aborts a whole run. Everything else is scoped to
a single repository (or a single directory entry during traversal) and is
recorded in the run summary while the remaining repositories are processed.
"""

from __future__ import annotations

from typing import Optional


class GitCleanError(Exception):
    """Base class for all gitclean errors.

    Attributes:
        path: The directory or repository the error relates to.
        message: Human-readable description.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class InvalidRootPath(GitCleanError):
    """The root directory does not exist or is not a directory."""


class TraversalError(GitCleanError):
    """A directory entry could not be read while walking the tree."""


class GitCommandError(GitCleanError):
    """A git subprocess failed, could not be started, or timed out."""

    def __init__(
        self,
        path: str,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(path, message)


class StatusCheckError(GitCleanError):
    """The untracked-file check could not be completed for a repository."""


class CleanupError(GitCleanError):
    """``git clean`` failed for a repository."""


class SizeMeasurementError(GitCleanError):
    """The size of a repository could not be measured."""
