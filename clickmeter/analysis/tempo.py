"""Tempo segmentation from click times."""

import logging

import numpy as np

from clickmeter.analysis.models import TempoSegment

logger = logging.getLogger(__name__)


def interval_bpms(times: list[float] | np.ndarray) -> np.ndarray:
    """Instantaneous BPM (60 / dt) for each inter-click interval."""
    times = np.asarray(times, dtype=np.float64)
    if len(times) < 2:
        return np.array([])
    return 60.0 / np.diff(times)


def median_smooth(values: np.ndarray, window: int = 5) -> np.ndarray:
    """Centered running median over an odd *window*; it shrinks at the edges."""
    values = np.asarray(values, dtype=np.float64)
    half = window // 2
    smoothed = np.empty_like(values)
    for i in range(len(values)):
        start = max(0, i - half)
        end = min(len(values), i + half + 1)
        smoothed[i] = np.median(values[start:end])
    return smoothed


def beat_bpms(times: list[float] | np.ndarray, smoothing_window: int = 5) -> list[float | None]:
    """Smoothed BPM per click: the interval ending at it (the first click
    takes the first interval's value). None for a single click."""
    smoothed = median_smooth(interval_bpms(times), smoothing_window)
    if len(smoothed) == 0:
        return [None] * len(times)
    return [float(smoothed[0])] + [float(b) for b in smoothed]


def _segment_bounds(
    smoothed: np.ndarray,
    tolerance_bpm: float,
    debounce_count: int,
) -> list[tuple[int, int]]:
    """Debounced change-point state machine over smoothed interval BPMs.

    Returns half-open interval-index ranges. While accumulating, the running
    BPM is the median of the segment so far. A value outside tolerance opens
    a pending change; *debounce_count* consecutive outliers close the segment
    and start a new one at the first outlier, with the pending run's median
    as its running BPM. A value back within tolerance cancels the pending
    change and stays in the current segment.
    """
    bounds: list[tuple[int, int]] = []
    seg_start = 0
    running = float(smoothed[0])
    pending_start: int | None = None

    for i in range(1, len(smoothed)):
        if abs(smoothed[i] - running) > tolerance_bpm:
            if pending_start is None:
                pending_start = i
            if i - pending_start + 1 >= debounce_count:
                bounds.append((seg_start, pending_start))
                seg_start = pending_start
                running = float(np.median(smoothed[pending_start:i + 1]))
                pending_start = None
        else:
            pending_start = None
            running = float(np.median(smoothed[seg_start:i + 1]))

    bounds.append((seg_start, len(smoothed)))
    return bounds


def _merge_short(bounds: list[tuple[int, int]], min_segment_beats: int) -> list[tuple[int, int]]:
    """Fold segments shorter than *min_segment_beats* into a neighbour."""
    bounds = list(bounds)
    while len(bounds) > 1:
        short = next((k for k, (a, b) in enumerate(bounds) if b - a < min_segment_beats), None)
        if short is None:
            break
        if short == 0:
            bounds[0:2] = [(bounds[0][0], bounds[1][1])]
        else:
            bounds[short - 1:short + 1] = [(bounds[short - 1][0], bounds[short][1])]
    return bounds


def segment_tempo(
    times: list[float] | np.ndarray,
    tolerance_bpm: float = 1.0,
    smoothing_window: int = 5,
    debounce_count: int = 3,
    min_segment_beats: int = 2,
) -> list[TempoSegment]:
    """Split the click sequence into regions of constant tempo.

    Segments are contiguous and cover ``[times[0], times[-1]]``. Each
    segment's BPM is the median of its smoothed interval BPMs, rounded to one
    decimal. Fewer than two clicks give no segments.
    """
    times = np.asarray(times, dtype=np.float64)
    if len(times) < 2:
        return []

    smoothed = median_smooth(interval_bpms(times), smoothing_window)
    bounds = _segment_bounds(smoothed, tolerance_bpm, debounce_count)
    bounds = _merge_short(bounds, min_segment_beats)

    segments = [
        TempoSegment(
            start_time=float(times[a]),
            end_time=float(times[b]),
            bpm=round(float(np.median(smoothed[a:b])), 1),
            beat_count=b - a,
        )
        for a, b in bounds
    ]
    for s in segments:
        logger.info(f"  Segment {s.start_time:.3f}-{s.end_time:.3f}s: {s.bpm} BPM")
    return segments
