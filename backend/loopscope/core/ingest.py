"""
Decoder: uploaded bytes → Waveform.
Keeps the native sample rate and every channel; no resampling, no normalisation.
"""
import io
import os
import tempfile
from typing import Tuple

import numpy as np
import soundfile as sf
import structlog

from loopscope.core.errors import AudioDecodeError, EmptyAudioError
from loopscope.core.types import Waveform

log = structlog.get_logger()

SOUNDFILE_EXTS = (".wav", ".flac", ".aiff", ".aif")


class AudioDecoder:

    def decode(self, audio_bytes: bytes, filename: str) -> Waveform:
        """
        Decode raw upload bytes:
        1. Reject an empty payload
        2. soundfile for WAV/FLAC/AIFF, pydub (ffmpeg) for MP3/M4A/AAC and as fallback
        3. Reject a decode with zero frames
        """
        ext = os.path.splitext(filename or "")[1].lower()
        if not audio_bytes:
            raise AudioDecodeError("Failed to read audio file")

        log.info("decode_start", filename=filename, ext=ext, size=len(audio_bytes))

        try:
            audio_array, sr = self._decode(audio_bytes, ext)
        except Exception as e:
            raise AudioDecodeError(f"Failed to decode audio file: {e}") from e

        if audio_array.size == 0 or audio_array.shape[0] == 0:
            raise EmptyAudioError("Invalid audio data")

        waveform = Waveform.from_array(audio_array, sr)
        log.info("decode_complete",
                 channels=waveform.num_channels,
                 sample_rate=waveform.sample_rate,
                 duration_sec=round(waveform.duration_sec, 3))
        return waveform

    def _decode(self, audio_bytes: bytes, ext: str) -> Tuple[np.ndarray, int]:
        """Decode to a (frames, channels) float32 array. soundfile first, pydub as fallback."""
        if ext in SOUNDFILE_EXTS:
            try:
                arr, sr = sf.read(io.BytesIO(audio_bytes), dtype="float32", always_2d=True)
                return arr, sr
            except Exception as e:
                log.warning("soundfile_failed", ext=ext, error=str(e))

        return self._decode_pydub(audio_bytes, ext)

    def _decode_pydub(self, audio_bytes: bytes, ext: str) -> Tuple[np.ndarray, int]:
        from pydub import AudioSegment

        with tempfile.NamedTemporaryFile(suffix=ext, delete=False) as tmp:
            tmp.write(audio_bytes)
            tmp_path = tmp.name
        try:
            segment = AudioSegment.from_file(tmp_path)
        finally:
            os.unlink(tmp_path)

        samples = np.array(segment.get_array_of_samples(), dtype=np.float32)
        samples /= (2 ** (segment.sample_width * 8 - 1))  # integer PCM → [-1, 1]
        return samples.reshape(-1, max(1, segment.channels)), segment.frame_rate
