"""Beats-per-bar estimation from a resolved downbeat grid."""

import logging
from collections import Counter

from clickmeter.analysis.models import DownbeatGrid, DownbeatResolution, Meter

logger = logging.getLogger(__name__)


def downbeat_gap_mode(
    indices: list[int],
    meter_range: tuple[int, int] = (2, 12),
) -> int | None:
    """Most common index gap between consecutive downbeats within *meter_range*.

    Ties go to the smaller gap. None when there are no gaps in range.
    """
    lo, hi = meter_range
    gaps = [b - a for a, b in zip(indices, indices[1:]) if lo <= b - a <= hi]
    if not gaps:
        return None
    counter = Counter(gaps)
    return max(counter.items(), key=lambda kv: (kv[1], -kv[0]))[0]


def spacing_agrees(
    labels: list[int],
    grid: DownbeatGrid,
    meter_range: tuple[int, int] = (2, 12),
) -> bool:
    """True when the modal gap between clicks of the grid's cluster equals
    the grid's beats per bar."""
    observed = [i for i, label in enumerate(labels) if label == grid.cluster]
    mode = downbeat_gap_mode(observed, meter_range)
    if mode != grid.beats_per_bar:
        logger.warning(f"  Grid says {grid.beats_per_bar} beats/bar but downbeat "
                       f"spacing mode is {mode}; grid rejected")
        return False
    return True


def estimate_meter(resolution: DownbeatResolution) -> Meter:
    """Beats per bar from an accepted grid; unknown without one."""
    grid = resolution.grid
    if grid is None:
        return Meter()
    return Meter(
        beats_per_bar=grid.beats_per_bar,
        phase=grid.phase,
        confidence=round(grid.score, 3),
    )
