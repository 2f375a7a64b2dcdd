"""Pydantic schemas for request/response."""
from typing import List, Literal

from pydantic import BaseModel, Field

from loopscope.core.types import AudioAnalysis, Waveform


class AudioAnalysisResponse(BaseModel):
    key: str
    scale: Literal["major", "minor"]
    bpm: int = Field(..., ge=1)
    confidence: float = Field(..., ge=0.0, le=1.0)

    # Display helpers
    label: str
    short_label: str
    confidence_pct: int

    # Source audio
    duration_sec: float
    sample_rate: int
    channels: int

    @classmethod
    def build(cls, analysis: AudioAnalysis, waveform: Waveform) -> "AudioAnalysisResponse":
        return cls(
            **analysis.to_dict(),
            label=analysis.label,
            short_label=analysis.short_label,
            confidence_pct=analysis.confidence_pct,
            duration_sec=round(waveform.duration_sec, 3),
            sample_rate=waveform.sample_rate,
            channels=waveform.num_channels,
        )


class WaveformResponse(BaseModel):
    bins: int
    duration_sec: float
    sample_rate: int
    peaks: List[float]
