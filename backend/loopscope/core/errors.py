"""Exceptions raised by the analysis pipeline."""


class AudioDecodeError(ValueError):
    """The upload could not be turned into a usable waveform."""


class EmptyAudioError(AudioDecodeError):
    """Decoding succeeded but produced no frames (or no channels)."""


class AnalysisError(RuntimeError):
    """Tempo or key estimation failed; the whole analysis is rejected."""
