"""Run the destructive clean on one repository and account for reclaimed space."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from gitclean.disk import directory_size
from gitclean.errors import CleanupError, SizeMeasurementError

logger = logging.getLogger(__name__)

Cleaner = Callable[[str], object]
Sizer = Callable[[str], int]


@dataclass(frozen=True)
class CleanupOutcome:
    repo: str
    # None means "not computed", which is not the same as 0 bytes
    bytes_reclaimed: Optional[int]
    simulated: bool = False


def _measure(repo: str, sizer: Sizer) -> Optional[int]:
    try:
        return sizer(repo)
    except (SizeMeasurementError, OSError) as exc:
        logger.warning("Could not measure size of %s: %s", repo, exc)
        return None


def clean(
    repo: str,
    simulate: bool,
    measure_size: bool,
    cleaner: Cleaner,
    sizer: Sizer = directory_size,
) -> CleanupOutcome:
    """Clean ``repo`` with ``cleaner`` unless simulating.

    When ``measure_size`` is set the tree is sized before and after and the
    difference is reported; otherwise bytes_reclaimed is None. A failing
    cleaner raises CleanupError, a failing sizer only loses the number.
    """
    if simulate:
        logger.info("Would clean %s", repo)
        return CleanupOutcome(repo=repo, bytes_reclaimed=None, simulated=True)

    before = _measure(repo, sizer) if measure_size else None

    try:
        cleaner(repo)
    except CleanupError:
        raise
    except Exception as exc:
        raise CleanupError(repo, f"clean failed: {getattr(exc, 'message', exc)}") from exc

    if before is None:
        return CleanupOutcome(repo=repo, bytes_reclaimed=None)

    after = _measure(repo, sizer)
    if after is None:
        return CleanupOutcome(repo=repo, bytes_reclaimed=None)

    reclaimed = before - after
    if reclaimed < 0:
        logger.warning(
            "Size of %s grew during clean (%d -> %d bytes); reporting 0 reclaimed",
            repo, before, after,
        )
        reclaimed = 0
    return CleanupOutcome(repo=repo, bytes_reclaimed=reclaimed)
