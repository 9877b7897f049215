"""Decide whether a repository is safe to clean."""

from __future__ import annotations

import enum
import logging
from typing import Callable

from gitclean.errors import StatusCheckError

logger = logging.getLogger(__name__)

StatusChecker = Callable[[str], bool]


class Classification(enum.Enum):
    ELIGIBLE = "eligible"
    SKIPPED_UNTRACKED = "skipped_untracked"


def classify(repo: str, force: bool, status_checker: StatusChecker) -> Classification:
    """Classify one repository.

    With ``force`` the status check is not run at all. A checker that raises
    never counts as "no untracked files": the failure surfaces as
    StatusCheckError so the repository is left alone.
    """
    if force:
        return Classification.ELIGIBLE

    try:
        untracked = status_checker(repo)
    except StatusCheckError:
        raise
    except Exception as exc:
        raise StatusCheckError(repo, f"status check failed: {getattr(exc, 'message', exc)}") from exc

    if untracked:
        logger.info("Skipping %s: untracked files present", repo)
        return Classification.SKIPPED_UNTRACKED
    return Classification.ELIGIBLE
