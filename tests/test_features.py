"""Tests for per-click spectral centroid extraction."""

import numpy as np

from clickmeter.analysis.features import extract_features, spectral_centroid
from clickmeter.analysis.models import ClickEvent, SampleBuffer
from tests.conftest import SR, generate_click_track


def _sine(freq: float, seconds: float = 0.5) -> np.ndarray:
    t = np.arange(int(seconds * SR)) / SR
    return (0.5 * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def test_centroid_of_pure_tone():
    centroid = spectral_centroid(_sine(1000.0), SR, click_time=0.0)
    assert abs(centroid - 1000.0) < 20.0


def test_centroid_orders_bright_above_dull():
    dull = spectral_centroid(_sine(800.0), SR, 0.0)
    bright = spectral_centroid(_sine(3000.0), SR, 0.0)
    assert bright > dull + 1000.0


def test_window_past_end_returns_zero():
    samples = _sine(1000.0, seconds=0.1)  # 2205 samples
    assert spectral_centroid(samples, SR, click_time=0.05, fft_size=2048) == 0.0


def test_window_ending_exactly_at_buffer_end_is_used():
    samples = _sine(1000.0, seconds=0.2)
    start = len(samples) - 2048
    assert spectral_centroid(samples, SR, click_time=start / SR, fft_size=2048) > 0.0


def test_silent_window_returns_zero():
    assert spectral_centroid(np.zeros(SR, dtype=np.float32), SR, 0.0) == 0.0


def test_band_outside_spectrum_returns_zero():
    assert spectral_centroid(_sine(1000.0), SR, 0.0, f_min=20000.0, f_max=30000.0) == 0.0


def test_gating_disabled_still_finds_tone():
    centroid = spectral_centroid(_sine(2000.0), SR, 0.0, gate_margin_db=None)
    assert abs(centroid - 2000.0) < 100.0


def test_extract_features_keeps_click_order_and_separates_tones():
    audio, onsets = generate_click_track(bpm=100, n_clicks=8, beats_per_bar=4)
    buffer = SampleBuffer(samples=audio, sample_rate=SR)
    clicks = [ClickEvent(time=t) for t in onsets]

    events = extract_features(buffer, clicks, max_workers=4)

    assert [e.time for e in events] == onsets
    downbeats = [events[0].centroid, events[4].centroid]
    beats = [e.centroid for i, e in enumerate(events) if i % 4 != 0]
    assert min(downbeats) > max(beats) + 500.0


def test_extract_features_parallel_matches_sequential():
    audio, onsets = generate_click_track(bpm=120, n_clicks=10, beats_per_bar=3)
    buffer = SampleBuffer(samples=audio, sample_rate=SR)
    clicks = [ClickEvent(time=t) for t in onsets]

    sequential = extract_features(buffer, clicks, max_workers=1)
    parallel = extract_features(buffer, clicks, max_workers=8)

    assert [e.centroid for e in sequential] == [e.centroid for e in parallel]


def test_extract_features_marks_truncated_window():
    audio, onsets = generate_click_track(bpm=120, n_clicks=4)
    buffer = SampleBuffer(samples=audio[:int((onsets[-1] + 0.05) * SR)], sample_rate=SR)
    events = extract_features(buffer, [ClickEvent(time=t) for t in onsets])

    assert events[-1].centroid == 0.0
    assert all(e.centroid > 0 for e in events[:-1])
