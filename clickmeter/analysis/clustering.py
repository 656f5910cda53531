"""One-dimensional k-means and its use for grouping clicks by timbre."""

import logging

import numpy as np

from clickmeter.analysis.models import ClusterAssignment, FeatureEvent

logger = logging.getLogger(__name__)

# Fewer valid centroids than this and clustering is not attempted.
MIN_CLUSTER_EVENTS = 4

_CENTER_TOLERANCE = 1e-6


def initial_centers(values: np.ndarray, k: int, init: str = "percentile") -> np.ndarray:
    """Deterministic initial centers.

    ``percentile`` places center *j* at the ``(j + 0.5) / k`` quantile (the
    25th/75th percentiles for k=2) and falls back to ``minmax`` when two of
    them coincide; ``minmax`` spaces centers evenly between min and max.
    """
    if init == "percentile":
        quantiles = [(j + 0.5) * 100.0 / k for j in range(k)]
        centers = np.percentile(values, quantiles)
        if k > 1 and np.min(np.diff(centers)) < _CENTER_TOLERANCE:
            return initial_centers(values, k, "minmax")
        return centers
    if init == "minmax":
        return np.linspace(float(np.min(values)), float(np.max(values)), k)
    raise ValueError(f"Unknown init strategy: {init!r}")


def kmeans(
    values: list[float] | np.ndarray,
    k: int = 2,
    iterations: int = 20,
    init: str = "percentile",
    tol: float = _CENTER_TOLERANCE,
) -> ClusterAssignment:
    """Lloyd's k-means over scalar values.

    Ties in distance go to the lower-index center. A center whose cluster
    empties keeps its previous position. Stops when every center moves by
    less than *tol* or after *iterations* rounds.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    data = np.asarray(values, dtype=np.float64)
    if data.size == 0:
        return ClusterAssignment(centers=[0.0] * k, labels=[], iterations=0, converged=True)

    centers = np.asarray(initial_centers(data, k, init), dtype=np.float64)
    labels = np.zeros(len(data), dtype=int)
    converged = False
    n_iter = 0

    for n_iter in range(1, iterations + 1):
        # argmin returns the first minimum, so ties resolve to the lower index
        labels = np.argmin(np.abs(data[:, None] - centers[None, :]), axis=1)

        new_centers = centers.copy()
        for j in range(k):
            members = data[labels == j]
            if members.size:
                new_centers[j] = members.mean()

        shift = np.abs(new_centers - centers)
        centers = new_centers
        if np.all(shift < tol):
            converged = True
            break

    return ClusterAssignment(
        centers=[float(c) for c in centers],
        labels=[int(label) for label in labels],
        iterations=n_iter,
        converged=converged,
    )


def cluster_events(
    events: list[FeatureEvent],
    iterations: int = 20,
    init: str = "percentile",
) -> ClusterAssignment:
    """Split clicks into two timbre groups by spectral centroid.

    Clicks without a centroid (0 Hz) do not influence the centers and are
    labelled with the nearest center afterwards. With fewer than
    MIN_CLUSTER_EVENTS usable centroids every click lands in cluster 0.
    """
    valid = [i for i, e in enumerate(events) if e.centroid > 0]
    values = [events[i].centroid for i in valid]

    if len(values) < MIN_CLUSTER_EVENTS:
        center = float(np.mean(values)) if values else 0.0
        logger.info(f"  Only {len(values)} usable centroids; clustering skipped")
        return ClusterAssignment(centers=[center, center], labels=[0] * len(events))

    result = kmeans(values, k=2, iterations=iterations, init=init)
    centers = np.asarray(result.centers)

    labels = [0] * len(events)
    for idx, label in zip(valid, result.labels):
        labels[idx] = label
    valid_set = set(valid)
    for idx, event in enumerate(events):
        if idx not in valid_set:
            labels[idx] = int(np.argmin(np.abs(centers - event.centroid)))

    assignment = ClusterAssignment(
        centers=result.centers,
        labels=labels,
        iterations=result.iterations,
        converged=result.converged,
    )
    logger.info(f"  Centers {result.centers[0]:.1f} / {result.centers[1]:.1f} Hz, "
                f"counts {assignment.counts()}, {result.iterations} iterations")
    return assignment
