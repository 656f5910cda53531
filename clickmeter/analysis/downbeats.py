"""Downbeat resolution: which timbre cluster marks bar starts.

The baseline guess is the minority cluster (one downbeat per bar against
several ordinary beats). With enough clicks, a periodic-grid search over
(beats_per_bar, phase, cluster) replaces the baseline: the best-scoring grid
becomes the downbeat set, which repairs isolated misclassifications. A grid
is only accepted when its score clears the confidence threshold and the
modal spacing of its cluster agrees with it; otherwise the baseline stands.
"""

import logging

import numpy as np

from clickmeter.analysis.clustering import MIN_CLUSTER_EVENTS
from clickmeter.analysis.meter import spacing_agrees
from clickmeter.analysis.models import ClusterAssignment, DownbeatGrid, DownbeatResolution, FeatureEvent

logger = logging.getLogger(__name__)

# Fewer clicks than this and the grid search is skipped.
MIN_REFINEMENT_EVENTS = 8


def minority_cluster(assignment: ClusterAssignment) -> int:
    """Cluster with fewer members; on equal counts, the brighter (higher) center."""
    count0, count1 = assignment.counts()
    if count0 != count1:
        return 0 if count0 < count1 else 1
    return 1 if assignment.centers[1] > assignment.centers[0] else 0


def clusters_separable(assignment: ClusterAssignment, min_separation_hz: float) -> bool:
    """True when both clusters are populated and their centers are far enough apart."""
    counts = assignment.counts()
    if len(counts) < 2 or min(counts) == 0:
        return False
    return abs(assignment.centers[1] - assignment.centers[0]) >= min_separation_hz


def grid_score(labels: np.ndarray, cluster: int, beats_per_bar: int, phase: int) -> float:
    """Agreement between a grid and a cluster, in [-1, 1].

    Share of the cluster's clicks that fall on the grid minus share of the
    other clicks that fall on it. Missed downbeats and stray bright beats
    both cost score, so sparse multiples of the true bar length lose.
    """
    idx = np.arange(len(labels))
    on_grid = (idx - phase) % beats_per_bar == 0
    in_cluster = labels == cluster

    hits = on_grid[in_cluster]
    false_hits = on_grid[~in_cluster]
    hit_rate = float(hits.mean()) if hits.size else 0.0
    false_rate = float(false_hits.mean()) if false_hits.size else 0.0
    return hit_rate - false_rate


def search_grid(
    labels: list[int] | np.ndarray,
    cluster_order: tuple[int, ...] = (0, 1),
    meter_range: tuple[int, int] = (2, 12),
) -> DownbeatGrid | None:
    """Best-scoring (beats_per_bar, phase, cluster) triple.

    Only candidates with at least two full bars are considered. Earlier
    candidates win ties: smaller beats_per_bar, then smaller phase, then the
    cluster listed first in *cluster_order*.
    """
    labels = np.asarray(labels)
    lo, hi = meter_range
    best: DownbeatGrid | None = None

    for beats_per_bar in range(lo, hi + 1):
        if 2 * beats_per_bar > len(labels):
            break
        for phase in range(beats_per_bar):
            for cluster in cluster_order:
                score = grid_score(labels, cluster, beats_per_bar, phase)
                if best is None or score > best.score + 1e-12:
                    best = DownbeatGrid(beats_per_bar=beats_per_bar, phase=phase,
                                        cluster=cluster, score=score)
    return best


def resolve_downbeats(
    events: list[FeatureEvent],
    assignment: ClusterAssignment,
    meter_range: tuple[int, int] = (2, 12),
    confidence: float = 0.5,
    min_separation_hz: float = 100.0,
) -> DownbeatResolution:
    """Annotate *events* in place with ``cluster`` and ``is_downbeat``."""
    for event, label in zip(events, assignment.labels):
        event.cluster = label
        event.is_downbeat = False

    if len(events) < MIN_CLUSTER_EVENTS:
        logger.info(f"  {len(events)} clicks; too few to classify downbeats")
        return DownbeatResolution()
    if not clusters_separable(assignment, min_separation_hz):
        logger.info("  Clicks share a single tone; no downbeats")
        return DownbeatResolution()

    baseline = minority_cluster(assignment)
    grid = None
    if len(events) >= MIN_REFINEMENT_EVENTS:
        other = 1 - baseline
        candidate = search_grid(assignment.labels, (baseline, other), meter_range)
        if candidate is not None and candidate.score >= confidence:
            if spacing_agrees(assignment.labels, candidate, meter_range):
                grid = candidate
                logger.info(f"  Grid: {grid.beats_per_bar} beats/bar, phase {grid.phase}, "
                            f"cluster {grid.cluster} (score {grid.score:.3f})")
        elif candidate is not None:
            logger.info(f"  Best grid score {candidate.score:.3f} below {confidence}; "
                        f"using minority cluster {baseline}")

    if grid is not None:
        for i, event in enumerate(events):
            event.is_downbeat = grid.contains(i)
        return DownbeatResolution(downbeat_cluster=grid.cluster, grid=grid)

    for event in events:
        event.is_downbeat = event.cluster == baseline
    return DownbeatResolution(downbeat_cluster=baseline)
