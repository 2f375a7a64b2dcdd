"""
Tempo estimation, a thin wrapper over librosa's onset-strength tempo estimator.

Returns continuous BPM; rounding to an integer happens in the orchestrator.
There is no safe default tempo, so a failed or meaningless estimate raises
instead of returning 0.
"""
import numpy as np
import structlog

from loopscope.core.errors import AnalysisError
from loopscope.core.key_detection import to_mono
from loopscope.core.types import Waveform

log = structlog.get_logger()

HOP_LEN   = 512
START_BPM = 120.0


def estimate_tempo(waveform: Waveform) -> float:
    import librosa
    import librosa.feature.rhythm

    y  = np.ascontiguousarray(to_mono(waveform), dtype=np.float32)
    sr = waveform.sample_rate

    onset_env = librosa.onset.onset_strength(y=y, sr=sr, hop_length=HOP_LEN)
    tempo = librosa.feature.rhythm.tempo(
        onset_envelope=onset_env, sr=sr, hop_length=HOP_LEN, start_bpm=START_BPM
    )

    bpm = float(np.atleast_1d(tempo)[0])
    if not np.isfinite(bpm) or bpm <= 0:
        raise AnalysisError(f"Tempo estimation produced no usable value ({bpm})")

    log.info("tempo_estimated", bpm=round(bpm, 2))
    return bpm
