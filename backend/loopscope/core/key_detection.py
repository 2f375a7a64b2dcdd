"""
Key/scale detection from a 12-bin chromagram.

Pipeline:
  1. Downmix to mono (plain average across channels).
  2. Chromagram: 4096-sample frames, hop 1024 (75 % overlap). Each frame goes
     through the FFT plan (which applies the Hanning window), and every bin
     between 55 Hz (A1) and 7040 Hz (A8) adds its magnitude to the pitch class
     of its centre frequency: round(12 * log2(f / 440) + 69) mod 12.
     The result is scaled so the strongest pitch class is 1.0.
  3. Correlate against the Krumhansl-Kessler major/minor profiles in all 12
     transpositions (24 candidates). The first strictly-greater score wins,
     scanning major before minor and transpose 0..11, so exact ties resolve
     to the earlier candidate.

Confidence is the relative gap between the best and second-best score.
`detect_key` never raises: key detection is advisory, so any failure
degrades to C major with confidence 0.
"""
from types import MappingProxyType

import numpy as np
import structlog

from loopscope.core.fft import get_fft
from loopscope.core.types import DEFAULT_KEY, KeyResult, SCALES, Waveform

log = structlog.get_logger()

# ── Constants ──────────────────────────────────────────────────────────────────

FRAME_SIZE = 4096
MIN_FREQ   = 55.0     # A1
MAX_FREQ   = 7040.0   # A8

NOTES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# Krumhansl-Kessler profiles, tonic first
KEY_PROFILES = MappingProxyType({
    "major": (6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88),
    "minor": (6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17),
})


# ── Chromagram ─────────────────────────────────────────────────────────────────

def to_mono(waveform: Waveform) -> np.ndarray:
    """Unweighted per-sample average of all channels."""
    if waveform.num_channels == 1:
        return waveform.channel(0)
    stacked = np.stack(waveform.channels).astype(np.float64)
    return (stacked.sum(axis=0) / waveform.num_channels).astype(np.float32)


def _pitch_class_map(sample_rate: int, frame_size: int) -> tuple[np.ndarray, np.ndarray]:
    """(bin indices inside the analysis band, pitch class of each)."""
    freqs = np.arange(frame_size // 2) * float(sample_rate) / frame_size
    bins  = np.nonzero((freqs >= MIN_FREQ) & (freqs <= MAX_FREQ))[0]
    midi  = 12.0 * np.log2(freqs[bins] / 440.0) + 69.0
    # Half-up rounding, not numpy's round-half-even
    pitch_classes = np.floor(midi + 0.5).astype(np.int64) % 12
    return bins, pitch_classes


def compute_chromagram(mono: np.ndarray, sample_rate: int,
                       frame_size: int = FRAME_SIZE) -> np.ndarray:
    """
    Accumulate spectral magnitude per pitch class over overlapping frames.

    Frames are taken while a full window of samples remains; audio shorter
    than one frame gives an all-zero chromagram. Returns shape (12,), max 1.0
    (or all zeros for silence).
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    fft  = get_fft(frame_size)
    hop  = frame_size // 4
    data = np.asarray(mono, dtype=np.float32)

    bins, pitch_classes = _pitch_class_map(sample_rate, frame_size)
    chroma = np.zeros(12, dtype=np.float64)

    for start in range(0, len(data) - frame_size + 1, hop):
        magnitudes = fft.forward(data[start:start + frame_size])
        np.add.at(chroma, pitch_classes, magnitudes[bins])

    if not np.all(np.isfinite(chroma)):
        raise FloatingPointError("Chromagram contains non-finite values")

    peak = chroma.max()
    if peak > 0:
        chroma /= peak
    return chroma


# ── Key matching ───────────────────────────────────────────────────────────────

def _key_for_transpose(transpose: int) -> str:
    # profile[(i + t) % 12] puts the profile tonic on pitch class (12 - t) % 12
    return NOTES[(12 - transpose) % 12]


def find_key(chromagram, profiles=KEY_PROFILES) -> KeyResult:
    """
    Score all 24 key/scale candidates against the chromagram.

    score(scale, t) = sum_i chroma[i] * profile[scale][(i + t) % 12]

    Returns the first strictly-best candidate. Confidence is
    (best - second) / best clamped to [0, 1], and 0 when best <= 0 or when
    another candidate ties the best.
    """
    chroma = [float(v) for v in np.asarray(chromagram, dtype=np.float64).reshape(-1)]
    if len(chroma) != 12:
        raise ValueError(f"chromagram must have 12 bins, got {len(chroma)}")

    best_key, best_scale = DEFAULT_KEY.key, DEFAULT_KEY.scale
    best, second = -np.inf, -np.inf

    for scale in SCALES:
        profile = profiles[scale]
        for transpose in range(12):
            score = 0.0
            for i in range(12):
                score += chroma[i] * profile[(i + transpose) % 12]

            if score > best:
                second = best
                best, best_key, best_scale = score, _key_for_transpose(transpose), scale
            elif score > second:
                second = score

    if best <= 0 or not np.isfinite(best):
        confidence = 0.0
    else:
        confidence = float(max(0.0, min(1.0, (best - second) / best)))

    return KeyResult(key=best_key, scale=best_scale, confidence=confidence)


# ── Entry point ────────────────────────────────────────────────────────────────

def detect_key(waveform: Waveform) -> KeyResult:
    """Mono → chromagram → best key. Falls back to C major / 0.0 on any error."""
    try:
        mono       = to_mono(waveform)
        chromagram = compute_chromagram(mono, waveform.sample_rate)
        result     = find_key(chromagram)
    except Exception as e:
        log.warning("key_detection_failed", error=str(e))
        return DEFAULT_KEY

    log.info("key_detected", key=result.key, scale=result.scale,
             confidence=round(result.confidence, 3))
    return result
