"""Tests for tempo segmentation."""

import numpy as np
import pytest

from clickmeter.analysis.tempo import beat_bpms, interval_bpms, median_smooth, segment_tempo
from tests.conftest import make_click_times


def _assert_partition(segments, times):
    assert segments[0].start_time == times[0]
    assert segments[-1].end_time == times[-1]
    for prev, nxt in zip(segments, segments[1:]):
        assert prev.end_time == nxt.start_time
        assert prev.start_time < prev.end_time


def test_interval_bpms():
    bpms = interval_bpms([0.0, 0.5, 1.0, 1.6])
    assert bpms == pytest.approx([120.0, 120.0, 100.0])


def test_median_smooth_removes_single_outlier():
    values = np.array([120.0, 120.0, 150.0, 120.0, 120.0])
    assert list(median_smooth(values, 5)) == [120.0] * 5


def test_median_smooth_preserves_step():
    values = np.array([120.0] * 6 + [140.0] * 6)
    assert list(median_smooth(values, 5)) == list(values)


def test_constant_tempo_single_segment():
    times = make_click_times([(120, 16)])
    segments = segment_tempo(times)

    assert len(segments) == 1
    assert segments[0].bpm == 120.0
    assert segments[0].beat_count == 15
    _assert_partition(segments, times)


def test_tempo_step_two_segments():
    times = make_click_times([(120, 12), (140, 12)])
    segments = segment_tempo(times, debounce_count=3)

    assert [s.bpm for s in segments] == [120.0, 140.0]
    # The new segment starts where the first 140 BPM interval begins
    assert segments[1].start_time == pytest.approx(times[12])
    _assert_partition(segments, times)


def test_segment_bpm_within_tolerance_of_members():
    times = make_click_times([(100, 10), (128, 10), (90, 10)])
    tolerance = 1.0
    segments = segment_tempo(times, tolerance_bpm=tolerance)
    smoothed = median_smooth(interval_bpms(times), 5)

    assert len(segments) == 3
    for s in segments:
        lo = times.index(s.start_time)
        members = smoothed[lo:lo + s.beat_count]
        assert np.all(np.abs(members - s.bpm) <= tolerance)


def test_short_excursion_is_debounced():
    """Two fast beats in a row are not enough to open a segment."""
    times = make_click_times([(120, 8), (140, 2), (120, 8)])
    segments = segment_tempo(times, smoothing_window=1, debounce_count=3)

    assert len(segments) == 1
    assert segments[0].bpm == 120.0


def test_jittered_click_is_smoothed_away():
    times = make_click_times([(120, 16)])
    times[7] += 0.04
    segments = segment_tempo(times)

    assert len(segments) == 1
    assert segments[0].bpm == 120.0


def test_short_leading_segment_is_merged():
    times = make_click_times([(140, 1), (120, 10)])
    segments = segment_tempo(times, smoothing_window=1, debounce_count=1, min_segment_beats=2)

    assert len(segments) == 1
    assert segments[0].start_time == times[0]
    assert segments[0].bpm == 120.0


def test_fewer_than_two_clicks():
    assert segment_tempo([]) == []
    assert segment_tempo([1.0]) == []


def test_two_clicks_single_segment():
    segments = segment_tempo([1.0, 1.5])
    assert len(segments) == 1
    assert (segments[0].start_time, segments[0].end_time, segments[0].bpm) == (1.0, 1.5, 120.0)


def test_idempotent():
    times = make_click_times([(120, 10), (135, 10)])
    assert segment_tempo(times) == segment_tempo(times)


def test_beat_bpms():
    times = make_click_times([(120, 4)])
    assert beat_bpms(times) == pytest.approx([120.0] * 4)
    assert beat_bpms([0.3]) == [None]
    assert beat_bpms([]) == []
