from loopscope.core.analysis import analyze_audio, validate_waveform
from loopscope.core.errors import AnalysisError, AudioDecodeError, EmptyAudioError
from loopscope.core.fft import FFT, get_fft
from loopscope.core.ingest import AudioDecoder
from loopscope.core.key_detection import compute_chromagram, detect_key, find_key
from loopscope.core.tempo import estimate_tempo
from loopscope.core.types import AudioAnalysis, KeyResult, Waveform
from loopscope.core.waveform import summarize_channel, summarize_waveform

__all__ = [
    "AnalysisError", "AudioAnalysis", "AudioDecodeError", "AudioDecoder",
    "EmptyAudioError", "FFT", "KeyResult", "Waveform",
    "analyze_audio", "compute_chromagram", "detect_key", "estimate_tempo",
    "find_key", "get_fft", "summarize_channel", "summarize_waveform",
    "validate_waveform",
]
