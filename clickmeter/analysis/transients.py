"""Click (transient) detection on a mono sample buffer."""

import logging

import numpy as np

from clickmeter.analysis.models import ClickEvent

logger = logging.getLogger(__name__)

# Peak amplitude below which a buffer is treated as silent.
SILENCE_EPSILON = 1e-4


def detect_clicks(
    samples: np.ndarray,
    sr: int,
    threshold_fraction: float = 0.35,
    min_gap_seconds: float = 0.08,
    refine_window_seconds: float = 0.015,
) -> list[ClickEvent]:
    """Detect clicks as threshold crossings refined to their local peak.

    A crossing is accepted only when it lies more than *min_gap_seconds*
    after the previously accepted click. Each accepted crossing is moved to
    the largest absolute sample within *refine_window_seconds* after it, and
    scanning resumes past that peak plus the minimum gap.

    Returns clicks in strictly increasing time order; empty for a
    near-silent buffer.
    """
    magnitude = np.abs(np.asarray(samples, dtype=np.float32))
    peak = float(magnitude.max(initial=0.0))
    if peak < SILENCE_EPSILON:
        logger.info(f"  Peak amplitude {peak:.2e} below silence threshold; no clicks")
        return []

    threshold = peak * threshold_fraction
    candidates = np.flatnonzero(magnitude > threshold)
    gap_samples = min_gap_seconds * sr
    refine_samples = max(1, int(round(refine_window_seconds * sr)))

    clicks: list[ClickEvent] = []
    pos = 0
    while pos < len(candidates):
        start = int(candidates[pos])
        stop = min(start + refine_samples, len(magnitude))
        peak_idx = start + int(np.argmax(magnitude[start:stop]))
        clicks.append(ClickEvent(time=peak_idx / sr, amplitude=float(magnitude[peak_idx])))
        # Next crossing must be strictly more than the gap after this peak
        pos = int(np.searchsorted(candidates, peak_idx + gap_samples, side="right"))

    logger.info(f"  {len(clicks)} clicks above {threshold:.3f} (peak {peak:.3f})")
    return clicks
