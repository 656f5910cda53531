"""Analysis orchestrator - combines all analysis modules."""

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from clickmeter.analysis.clustering import cluster_events
from clickmeter.analysis.downbeats import resolve_downbeats
from clickmeter.analysis.features import extract_features
from clickmeter.analysis.meter import estimate_meter
from clickmeter.analysis.models import AnalysisResult, ClassifiedBeat, SampleBuffer, TempoSegment
from clickmeter.analysis.tempo import beat_bpms, segment_tempo
from clickmeter.analysis.transients import detect_clicks
from clickmeter.audio.loader import decode_audio, load_audio
from clickmeter.config import AnalysisConfig, settings

logger = logging.getLogger(__name__)


class AnalysisEngine:
    """Orchestrates the full analysis pipeline.

    Every call builds its intermediate state from scratch; the engine only
    holds configuration.
    """

    def __init__(self, config: AnalysisConfig | None = None):
        self.config = config if config is not None else settings.analysis

    def analyze_file(self, file_path: str) -> AnalysisResult:
        """Analyze an audio file."""
        return self.analyze_buffer(load_audio(file_path, sr=settings.sample_rate))

    def analyze_bytes(self, data: bytes) -> AnalysisResult:
        """Analyze encoded audio held in memory."""
        return self.analyze_buffer(decode_audio(data, sr=settings.sample_rate))

    def analyze_audio(self, audio: np.ndarray, sr: int) -> AnalysisResult:
        """Analyze pre-loaded mono audio data."""
        return self.analyze_buffer(SampleBuffer(samples=audio, sample_rate=sr))

    def analyze_buffer(self, buffer: SampleBuffer) -> AnalysisResult:
        cfg = self.config
        logger.info(f"Analyzing {buffer.duration:.1f}s of audio at {buffer.sample_rate}Hz")

        # Step 1: Click detection
        logger.info("Step 1: Click detection")
        clicks = detect_clicks(
            buffer.samples,
            buffer.sample_rate,
            threshold_fraction=cfg.threshold_fraction,
            min_gap_seconds=cfg.min_gap_seconds,
            refine_window_seconds=cfg.refine_window_seconds,
        )
        times = [c.time for c in clicks]

        # Tempo only needs click times, so it runs beside the timbre branch
        with ThreadPoolExecutor(max_workers=1) as pool:
            tempo_future = pool.submit(self._analyze_tempo, times)

            logger.info("Step 2: Spectral centroids")
            events = extract_features(
                buffer,
                clicks,
                fft_size=cfg.fft_size,
                band=cfg.centroid_band,
                noise_floor_percentile=cfg.noise_floor_percentile,
                gate_margin_db=cfg.gate_margin_db,
                max_workers=cfg.max_workers,
            )

            logger.info("Step 3: Timbre clustering")
            assignment = cluster_events(events, iterations=cfg.kmeans_iterations, init=cfg.kmeans_init)

            logger.info("Step 4: Downbeat resolution")
            resolution = resolve_downbeats(
                events,
                assignment,
                meter_range=cfg.meter_candidate_range,
                confidence=cfg.meter_confidence,
                min_separation_hz=cfg.min_cluster_separation_hz,
            )

            logger.info("Step 5: Meter estimation")
            meter = estimate_meter(resolution)
            logger.info(f"  Beats per bar: {meter.beats_per_bar}")

            segments, bpms = tempo_future.result()

        beats = [
            ClassifiedBeat(
                time=e.time,
                centroid=e.centroid,
                is_downbeat=e.is_downbeat,
                bpm=bpm,
                cluster=e.cluster,
                amplitude=e.amplitude,
            )
            for e, bpm in zip(events, bpms)
        ]

        return AnalysisResult(
            beats=beats,
            meter=meter,
            tempo_segments=segments,
            cluster_centers=list(assignment.centers),
            sample_rate=buffer.sample_rate,
            duration=buffer.duration,
            channel_count=buffer.channel_count,
        )

    def _analyze_tempo(self, times: list[float]) -> tuple[list[TempoSegment], list[float | None]]:
        cfg = self.config
        logger.info("Step 6: Tempo segmentation")
        segments = segment_tempo(
            times,
            tolerance_bpm=cfg.tolerance_bpm,
            smoothing_window=cfg.smoothing_window,
            debounce_count=cfg.debounce_count,
            min_segment_beats=cfg.min_segment_beats,
        )
        return segments, beat_bpms(times, cfg.smoothing_window)
