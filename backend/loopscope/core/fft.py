"""
Fixed-size radix-2 FFT with precomputed twiddle tables and a Hanning window.

One FFT instance is a plan for a single power-of-two size. Construction
builds the cosine/sine tables, the window and the bit-reversal permutation
(O(size)); every transform afterwards only reads them, so a plan can be
shared between threads.

The input is real. Windowing happens inside the plan, so callers pass raw
sample blocks. `transform()` returns the complex spectrum as separate real
and imaginary float32 arrays; `forward()` returns its magnitude, which is
what the chromagram accumulates.
"""
from functools import lru_cache

import numpy as np


def is_power_of_two(n) -> bool:
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        return False
    return n >= 2 and (int(n) & (int(n) - 1)) == 0


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


class FFT:

    def __init__(self, size: int):
        if not is_power_of_two(size):
            raise ValueError(f"FFT size must be a power of two >= 2, got {size!r}")

        self.size = int(size)
        self.bits = self.size.bit_length() - 1

        idx    = np.arange(self.size)
        angles = 2.0 * np.pi * idx / self.size
        self._cos = _readonly(np.cos(angles).astype(np.float32))
        self._sin = _readonly(np.sin(angles).astype(np.float32))

        # Hanning: 0.5 * (1 - cos(2*pi*i / (N - 1)))
        self._window = _readonly(
            (0.5 * (1.0 - np.cos(2.0 * np.pi * idx / (self.size - 1)))).astype(np.float32)
        )
        self._reversed = _readonly(self._bit_reverse_indices())

    def __repr__(self) -> str:
        return f"FFT(size={self.size})"

    @property
    def window(self) -> np.ndarray:
        return self._window

    def _bit_reverse_indices(self) -> np.ndarray:
        idx = np.arange(self.size)
        rev = np.zeros(self.size, dtype=np.int64)
        for b in range(self.bits):
            rev = (rev << 1) | ((idx >> b) & 1)
        return rev

    def transform(self, block) -> tuple[np.ndarray, np.ndarray]:
        """Windowed forward transform. Returns (real, imag), both length `size`."""
        x = np.asarray(block, dtype=np.float32)
        if x.shape != (self.size,):
            raise ValueError(f"Expected a block of {self.size} samples, got shape {x.shape}")

        re = (x * self._window)[self._reversed]
        im = np.zeros(self.size, dtype=np.float32)

        step = 2
        while step <= self.size:
            half = step // 2
            tw   = np.arange(half) * (self.size // step)
            cos  = self._cos[tw]
            sin  = self._sin[tw]

            # Rows are butterfly groups; views write straight back into re/im
            re_g = re.reshape(-1, step)
            im_g = im.reshape(-1, step)
            even_re = re_g[:, :half].copy()
            even_im = im_g[:, :half].copy()
            odd_re  = re_g[:, half:]
            odd_im  = im_g[:, half:]

            # odd * exp(-2j*pi*k/step)
            t_re = cos * odd_re + sin * odd_im
            t_im = cos * odd_im - sin * odd_re

            re_g[:, :half] = even_re + t_re
            im_g[:, :half] = even_im + t_im
            re_g[:, half:] = even_re - t_re
            im_g[:, half:] = even_im - t_im
            step *= 2

        return re, im

    def forward(self, block) -> np.ndarray:
        """Windowed forward transform reduced to per-bin magnitude (float32)."""
        re, im = self.transform(block)
        return np.hypot(re, im).astype(np.float32)


@lru_cache(maxsize=8)
def get_fft(size: int) -> FFT:
    """Shared plan per size."""
    return FFT(size)
