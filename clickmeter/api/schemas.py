"""Pydantic response models for the analysis report."""

from pydantic import BaseModel

from clickmeter.analysis.models import AnalysisResult


class BeatResponse(BaseModel):
    time: float
    centroid: float
    is_downbeat: bool
    bpm: float | None = None
    cluster: int = 0
    amplitude: float = 0.0


class TempoSegmentResponse(BaseModel):
    start_time: float
    end_time: float
    bpm: float
    beat_count: int = 0


class AnalysisResponse(BaseModel):
    beats_per_bar: int | None = None
    meter_phase: int | None = None
    meter_confidence: float = 0.0
    tempo_segments: list[TempoSegmentResponse] = []
    beats: list[BeatResponse] = []
    sample_rate: int = 0
    duration: float = 0.0
    channel_count: int = 1
    click_count: int = 0
    cluster_centers: list[float] = []


def result_to_response(result: AnalysisResult) -> AnalysisResponse:
    """Convert AnalysisResult to the report model (times to the millisecond, Hz and BPM to 0.1)."""
    return AnalysisResponse(
        beats_per_bar=result.meter.beats_per_bar,
        meter_phase=result.meter.phase,
        meter_confidence=result.meter.confidence,
        tempo_segments=[
            TempoSegmentResponse(
                start_time=round(s.start_time, 3),
                end_time=round(s.end_time, 3),
                bpm=s.bpm,
                beat_count=s.beat_count,
            )
            for s in result.tempo_segments
        ],
        beats=[
            BeatResponse(
                time=round(b.time, 3),
                centroid=round(b.centroid, 1),
                is_downbeat=b.is_downbeat,
                bpm=round(b.bpm, 1) if b.bpm is not None else None,
                cluster=b.cluster,
                amplitude=round(b.amplitude, 4),
            )
            for b in result.beats
        ],
        sample_rate=result.sample_rate,
        duration=round(result.duration, 3),
        channel_count=result.channel_count,
        click_count=result.click_count,
        cluster_centers=[round(c, 1) for c in result.cluster_centers],
    )
