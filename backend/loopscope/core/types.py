"""
Value objects passed through the analysis pipeline.

Waveform is built once by the decoder and only read afterwards: its channel
arrays are copied to float32 and flagged read-only at construction.
KeyResult and AudioAnalysis are the two results the pipeline hands back.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

SCALES = ("major", "minor")


def _frozen_channel(samples: Any) -> np.ndarray:
    arr = np.array(samples, dtype=np.float32).reshape(-1)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Waveform:
    """Decoded audio: one float32 array per channel plus the sample rate."""

    channels: tuple[np.ndarray, ...]
    sample_rate: int

    def __post_init__(self) -> None:
        channels = tuple(_frozen_channel(c) for c in self.channels)
        lengths = {len(c) for c in channels}
        if len(lengths) > 1:
            raise ValueError(f"Channel lengths differ: {sorted(lengths)}")
        object.__setattr__(self, "channels", channels)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @classmethod
    def from_array(cls, data: np.ndarray, sample_rate: int) -> "Waveform":
        """Build from a 1-D mono array or a 2-D (frames, channels) array."""
        arr = np.asarray(data)
        if arr.ndim == 1:
            return cls(channels=(arr,), sample_rate=sample_rate)
        if arr.ndim != 2:
            raise ValueError(f"Expected 1-D or 2-D audio, got shape {arr.shape}")
        return cls(channels=tuple(arr[:, i] for i in range(arr.shape[1])),
                   sample_rate=sample_rate)

    @classmethod
    def mono(cls, samples: Sequence[float] | np.ndarray, sample_rate: int) -> "Waveform":
        return cls(channels=(np.asarray(samples),), sample_rate=sample_rate)

    @property
    def num_channels(self) -> int:
        return len(self.channels)

    @property
    def length(self) -> int:
        """Frame count (samples per channel)."""
        return len(self.channels[0]) if self.channels else 0

    @property
    def duration_sec(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.length / self.sample_rate

    def channel(self, index: int = 0) -> np.ndarray:
        return self.channels[index]


@dataclass(frozen=True)
class KeyResult:
    """Best-fitting key and scale with a [0, 1] confidence."""

    key: str
    scale: str
    confidence: float

    @property
    def label(self) -> str:
        """'A minor', 'C# major'."""
        return f"{self.key} {self.scale}"

    @property
    def short_label(self) -> str:
        """'Am', 'C#'."""
        return f"{self.key}{'m' if self.scale == 'minor' else ''}"


DEFAULT_KEY = KeyResult(key="C", scale="major", confidence=0.0)


@dataclass(frozen=True)
class AudioAnalysis:
    """Merged report: key/scale/confidence from key detection, bpm from tempo."""

    key: str
    scale: str
    bpm: int
    confidence: float

    @classmethod
    def merge(cls, key_result: KeyResult, tempo: float) -> "AudioAnalysis":
        return cls(
            key=key_result.key,
            scale=key_result.scale,
            bpm=int(math.floor(tempo + 0.5)),
            confidence=key_result.confidence,
        )

    @property
    def label(self) -> str:
        return f"{self.key} {self.scale}"

    @property
    def short_label(self) -> str:
        return f"{self.key}{'m' if self.scale == 'minor' else ''}"

    @property
    def confidence_pct(self) -> int:
        return min(int(math.floor(self.confidence * 100 + 0.5)), 100)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "scale": self.scale,
            "bpm": self.bpm,
            "confidence": self.confidence,
        }
