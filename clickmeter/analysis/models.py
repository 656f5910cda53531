"""Core data models for click-track analysis."""

import numbers
from dataclasses import dataclass, field

import numpy as np


class InvalidAudioError(ValueError):
    """Raised when audio is structurally unusable (the only fatal condition)."""


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Immutable mono sample buffer for one analysis run."""
    samples: np.ndarray
    sample_rate: int
    channel_count: int = 1

    def __post_init__(self):
        rate = self.sample_rate
        if rate is None or isinstance(rate, bool) or not isinstance(rate, numbers.Real):
            raise InvalidAudioError(f"Sample rate must be a number, got {rate!r}")
        if not np.isfinite(rate) or rate <= 0 or float(rate) != int(rate):
            raise InvalidAudioError(f"Sample rate must be a positive integer, got {rate!r}")

        try:
            data = np.array(self.samples, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise InvalidAudioError(f"Samples are not numeric: {e}") from e
        if data.ndim != 1:
            raise InvalidAudioError(f"Expected mono samples, got array of shape {data.shape}")
        if not np.all(np.isfinite(data)):
            raise InvalidAudioError("Samples contain NaN or infinite values")
        data.setflags(write=False)

        object.__setattr__(self, "samples", data)
        object.__setattr__(self, "sample_rate", int(rate))

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Buffer duration in seconds."""
        return len(self.samples) / self.sample_rate


@dataclass
class ClickEvent:
    """A detected click."""
    time: float  # seconds, at the refined peak
    amplitude: float = 0.0  # absolute sample value at the peak


@dataclass
class FeatureEvent(ClickEvent):
    """A click annotated with its spectral centroid and classification."""
    centroid: float = 0.0  # Hz; 0 when the window did not fit in the buffer
    cluster: int = 0
    is_downbeat: bool = False


@dataclass
class ClusterAssignment:
    """Result of k-means over scalar values."""
    centers: list[float]
    labels: list[int]
    iterations: int = 0
    converged: bool = True

    def counts(self) -> list[int]:
        return [sum(1 for label in self.labels if label == j) for j in range(len(self.centers))]


@dataclass
class DownbeatGrid:
    """A periodic downbeat grid: indices i with (i - phase) % beats_per_bar == 0."""
    beats_per_bar: int
    phase: int
    cluster: int
    score: float  # in [-1, 1]; see downbeats.grid_score

    def contains(self, index: int) -> bool:
        return (index - self.phase) % self.beats_per_bar == 0


@dataclass
class DownbeatResolution:
    """Outcome of downbeat resolution."""
    downbeat_cluster: int | None = None
    grid: DownbeatGrid | None = None


@dataclass
class Meter:
    """Beats per bar, or None when there is not enough evidence."""
    beats_per_bar: int | None = None
    phase: int | None = None
    confidence: float = 0.0


@dataclass
class ClassifiedBeat:
    """A click in the final report."""
    time: float
    centroid: float
    is_downbeat: bool
    bpm: float | None = None
    cluster: int = 0
    amplitude: float = 0.0


@dataclass
class TempoSegment:
    """A region of (near) constant tempo."""
    start_time: float
    end_time: float
    bpm: float
    beat_count: int = 0  # number of intervals in the segment


@dataclass
class AnalysisResult:
    """Complete analysis result."""
    beats: list[ClassifiedBeat]
    meter: Meter
    tempo_segments: list[TempoSegment] = field(default_factory=list)
    cluster_centers: list[float] = field(default_factory=list)
    sample_rate: int = 0
    duration: float = 0.0
    channel_count: int = 1

    @property
    def beats_per_bar(self) -> int | None:
        return self.meter.beats_per_bar

    @property
    def click_count(self) -> int:
        return len(self.beats)
