"""Band-limited spectral centroid per click."""

import logging
from concurrent.futures import ThreadPoolExecutor

import librosa
import numpy as np
from scipy.signal import get_window

from clickmeter.analysis.models import ClickEvent, FeatureEvent, SampleBuffer

logger = logging.getLogger(__name__)


def spectral_centroid(
    samples: np.ndarray,
    sr: int,
    click_time: float,
    fft_size: int = 2048,
    f_min: float = 200.0,
    f_max: float = 6000.0,
    noise_floor_percentile: float = 20.0,
    gate_margin_db: float | None = 6.0,
) -> float:
    """Amplitude-weighted mean frequency of the window starting at *click_time*.

    The window ``[click_time, click_time + fft_size / sr)`` must lie inside
    the buffer; otherwise 0.0 is returned. Bins below the in-band noise floor
    (a percentile of the dB magnitude) plus *gate_margin_db* are ignored.
    """
    start = int(round(click_time * sr))
    if start < 0 or start + fft_size > len(samples):
        return 0.0

    frame = samples[start:start + fft_size] * get_window("hann", fft_size)
    magnitude = np.abs(np.fft.rfft(frame))
    freqs = librosa.fft_frequencies(sr=sr, n_fft=fft_size)

    band = (freqs >= f_min) & (freqs <= f_max)
    if not np.any(band):
        return 0.0
    magnitude = magnitude[band]
    freqs = freqs[band]

    if gate_margin_db is not None:
        db = librosa.amplitude_to_db(magnitude, ref=1.0, amin=1e-10, top_db=None)
        floor = float(np.percentile(db, noise_floor_percentile))
        keep = db >= floor + gate_margin_db
        magnitude = magnitude[keep]
        freqs = freqs[keep]

    total = float(np.sum(magnitude))
    if total <= 0:
        return 0.0
    return float(np.dot(freqs, magnitude) / total)


def extract_features(
    buffer: SampleBuffer,
    clicks: list[ClickEvent],
    fft_size: int = 2048,
    band: tuple[float, float] = (200.0, 6000.0),
    noise_floor_percentile: float = 20.0,
    gate_margin_db: float | None = 6.0,
    max_workers: int = 4,
) -> list[FeatureEvent]:
    """Compute one centroid per click, preserving click order.

    Each job only reads the shared (read-only) buffer, so clicks are fanned
    out over a thread pool and gathered back in order.
    """
    f_min, f_max = band

    def _centroid(click: ClickEvent) -> float:
        return spectral_centroid(
            buffer.samples, buffer.sample_rate, click.time,
            fft_size=fft_size, f_min=f_min, f_max=f_max,
            noise_floor_percentile=noise_floor_percentile,
            gate_margin_db=gate_margin_db,
        )

    if max_workers > 1 and len(clicks) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            centroids = list(pool.map(_centroid, clicks))
    else:
        centroids = [_centroid(c) for c in clicks]

    skipped = sum(1 for c in centroids if c == 0.0)
    if skipped:
        logger.info(f"  {skipped} clicks without a usable {fft_size}-sample window")

    return [
        FeatureEvent(time=click.time, amplitude=click.amplitude, centroid=centroid)
        for click, centroid in zip(clicks, centroids)
    ]
