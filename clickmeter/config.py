"""Application configuration."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class AnalysisConfig(BaseModel):
    """Per-run analysis parameters."""

    # Click detection
    threshold_fraction: float = Field(0.35, gt=0.0, le=1.0)
    min_gap_seconds: float = Field(0.08, gt=0.0)
    refine_window_seconds: float = Field(0.015, ge=0.0)

    # Spectral centroid
    fft_size: int = Field(2048, ge=64)
    centroid_band: tuple[float, float] = (200.0, 6000.0)
    noise_floor_percentile: float = Field(20.0, ge=0.0, le=100.0)
    gate_margin_db: float | None = 6.0  # None disables noise gating

    # Clustering
    kmeans_iterations: int = Field(20, ge=1)
    kmeans_init: Literal["percentile", "minmax"] = "percentile"
    min_cluster_separation_hz: float = Field(100.0, ge=0.0)

    # Downbeats / meter
    meter_candidate_range: tuple[int, int] = (2, 12)
    meter_confidence: float = Field(0.5, ge=-1.0, le=1.0)

    # Tempo segmentation
    tolerance_bpm: float = Field(1.0, gt=0.0)
    smoothing_window: int = Field(5, ge=1)  # odd, centred on each interval
    debounce_count: int = Field(3, ge=1)
    min_segment_beats: int = Field(2, ge=1)

    # Feature extraction fan-out
    max_workers: int = Field(4, ge=1)

    @field_validator("smoothing_window")
    @classmethod
    def _check_odd_window(cls, v: int) -> int:
        if v % 2 == 0:
            raise ValueError("smoothing_window must be odd")
        return v

    @model_validator(mode="after")
    def _check_ranges(self):
        f_min, f_max = self.centroid_band
        if not 0.0 <= f_min < f_max:
            raise ValueError("centroid_band must satisfy 0 <= min < max")
        lo, hi = self.meter_candidate_range
        if not 2 <= lo <= hi <= 12:
            raise ValueError("meter_candidate_range must lie within [2, 12] with min <= max")
        return self


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Audio (None keeps the file's native rate)
    sample_rate: int | None = None

    analysis: AnalysisConfig = AnalysisConfig()

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 50

    log_level: str = "INFO"

    model_config = {"env_prefix": "CLICKMETER_", "env_nested_delimiter": "__"}


settings = Settings()
