"""
Waveform summaries for the player's canvas.

Each display bin gets max(peak-to-peak, 2 * RMS) of its block of samples.
Bins are then scaled by the loudest one and lifted with a 0.7 power curve so
quiet passages stay visible without changing their order. Silence stays zero.
"""
import numpy as np

from loopscope.core.types import Waveform

DEFAULT_BINS = 800
COMPRESSION  = 0.7


def summarize_waveform(samples, bins: int = DEFAULT_BINS) -> np.ndarray:
    """
    Reduce one channel to `bins` amplitude values in [0, 1].

    Block boundaries are spread evenly over the whole input, so every sample
    lands in exactly one block. When there are fewer samples than bins some
    blocks are empty and report 0.
    """
    if isinstance(bins, bool) or not isinstance(bins, (int, np.integer)) or bins < 1:
        raise ValueError(f"bins must be a positive integer, got {bins!r}")

    data   = np.asarray(samples, dtype=np.float64).reshape(-1)
    n      = len(data)
    edges  = (np.arange(bins + 1) * n) // bins
    values = np.zeros(bins, dtype=np.float64)

    for i in range(bins):
        block = data[edges[i]:edges[i + 1]]
        if block.size == 0:
            continue
        peak_to_peak = abs(float(block.max() - block.min()))
        rms          = float(np.sqrt(np.mean(block * block)))
        values[i]    = max(peak_to_peak, 2.0 * rms)

    values[~np.isfinite(values)] = 0.0

    peak = values.max()
    if peak > 0:
        values = np.power(values / peak, COMPRESSION)
    return np.clip(values, 0.0, 1.0)


def summarize_channel(waveform: Waveform, bins: int = DEFAULT_BINS, channel: int = 0) -> np.ndarray:
    return summarize_waveform(waveform.channel(channel), bins)
