"""Shared fixtures: synthetic audio built with numpy + soundfile, all in memory."""
import io

import numpy as np
import pytest

try:
    # librosa's lazy loader only exposes feature.rhythm once it is imported;
    # tests monkeypatch it before estimate_tempo() imports it.
    import librosa.feature.rhythm  # noqa: F401
except ImportError:
    pass


@pytest.fixture
def make_sine():
    def _make(freq=440.0, seconds=2.0, sr=44100, amp=0.5):
        t = np.arange(int(seconds * sr)) / sr
        return (amp * np.sin(2 * np.pi * freq * t)).astype(np.float32)
    return _make


@pytest.fixture
def make_wav():
    def _make(samples, sr=44100):
        import soundfile as sf
        buf = io.BytesIO()
        sf.write(buf, np.asarray(samples, dtype=np.float32), sr, format="WAV", subtype="FLOAT")
        return buf.getvalue()
    return _make
