"""Shared test fixtures for click-track analysis tests."""

import numpy as np
import pytest
from fastapi.testclient import TestClient

from clickmeter.main import app

SR = 22050


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def make_click_times(sections: list[tuple[float, int]], start: float = 0.0) -> list[float]:
    """Click onset times for consecutive (bpm, n_clicks) sections."""
    times = []
    t = start
    for bpm, n_clicks in sections:
        for _ in range(n_clicks):
            times.append(t)
            t += 60.0 / bpm
    return times


def render_clicks(
    times: list[float],
    freqs: list[float] | float = 1000.0,
    sr: int = SR,
    tail_seconds: float = 0.5,
    amplitude: float = 0.8,
) -> np.ndarray:
    """Render decaying sine-burst clicks at the given onset times.

    Onsets are snapped to whole samples. *freqs* is either one tone for every
    click or one tone per click.
    """
    if np.isscalar(freqs):
        freqs = [float(freqs)] * len(times)
    n_samples = int(round((times[-1] + tail_seconds) * sr)) if times else int(tail_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)

    click_samples = int(0.02 * sr)  # 20ms click
    t_click = np.arange(click_samples) / sr
    envelope = np.exp(-t_click * 100)

    for t, freq in zip(times, freqs):
        pos = int(round(t * sr))
        click = amplitude * np.sin(2 * np.pi * freq * t_click) * envelope
        end = min(pos + click_samples, n_samples)
        audio[pos:end] += click[:end - pos]
    return audio


def generate_click_track(
    bpm: float,
    n_clicks: int,
    beats_per_bar: int | None = None,
    beat_freq: float = 1000.0,
    downbeat_freq: float = 3000.0,
    sr: int = SR,
) -> tuple[np.ndarray, list[float]]:
    """Constant-tempo click track; with *beats_per_bar*, every bar's first
    click uses the brighter *downbeat_freq* tone.

    Returns (audio, onset_times).
    """
    times = make_click_times([(bpm, n_clicks)])
    if beats_per_bar:
        freqs = [downbeat_freq if i % beats_per_bar == 0 else beat_freq for i in range(n_clicks)]
    else:
        freqs = [beat_freq] * n_clicks
    return render_clicks(times, freqs, sr=sr), times


@pytest.fixture
def click_120_single_tone():
    """16 identical clicks at 120 BPM."""
    audio, _ = generate_click_track(bpm=120, n_clicks=16)
    return audio


@pytest.fixture
def click_4_4():
    """20 clicks in 4/4 at 100 BPM with bright downbeats."""
    audio, _ = generate_click_track(bpm=100, n_clicks=20, beats_per_bar=4)
    return audio


@pytest.fixture
def click_3_4():
    """18 clicks in 3/4 at 90 BPM with bright downbeats."""
    audio, _ = generate_click_track(bpm=90, n_clicks=18, beats_per_bar=3)
    return audio
