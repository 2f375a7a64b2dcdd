import numpy as np
import pytest

from loopscope.core.fft import FFT, get_fft, is_power_of_two


@pytest.mark.parametrize("size", [100, 1000, 0, -4, 1, 3, 4.0, True, "8"])
def test_invalid_sizes_rejected(size):
    """Anything but an integer power of two >= 2 fails at construction."""
    with pytest.raises(ValueError):
        FFT(size)


@pytest.mark.parametrize("size", [2, 8, 1024, 4096])
def test_valid_sizes(size):
    fft = FFT(size)
    assert fft.size == size
    assert fft.bits == int(np.log2(size))
    assert is_power_of_two(size)


def test_zero_input_gives_zero_output():
    fft = FFT(256)
    out = fft.forward(np.zeros(256, dtype=np.float32))
    assert out.shape == (256,)
    assert out.dtype == np.float32
    assert not out.any()


def test_block_length_must_match():
    fft = FFT(64)
    with pytest.raises(ValueError):
        fft.forward(np.zeros(63))


def test_hanning_window_shape():
    """Window is symmetric, zero at both ends and 1 in the middle region."""
    w = FFT(16).window
    assert w[0] == pytest.approx(0.0, abs=1e-7)
    assert w[-1] == pytest.approx(0.0, abs=1e-6)
    assert np.allclose(w, w[::-1], atol=1e-6)
    assert w.max() <= 1.0


def test_matches_numpy_on_windowed_input():
    """Complex output agrees with numpy's FFT of the same windowed block."""
    rng = np.random.default_rng(7)
    x = rng.uniform(-1, 1, 512).astype(np.float32)
    fft = FFT(512)

    re, im = fft.transform(x)
    expected = np.fft.fft(x.astype(np.float64) * fft.window)
    scale = np.abs(expected).max()

    assert np.allclose(re, expected.real, atol=1e-4 * scale)
    assert np.allclose(im, expected.imag, atol=1e-4 * scale)


def test_sine_peaks_at_its_bin():
    size, k = 1024, 37
    x = np.sin(2 * np.pi * k * np.arange(size) / size)
    mags = FFT(size).forward(x)
    assert int(np.argmax(mags[: size // 2])) == k


def test_tables_are_read_only():
    fft = FFT(32)
    with pytest.raises(ValueError):
        fft.window[0] = 1.0


def test_input_not_mutated():
    x = np.ones(32, dtype=np.float32)
    FFT(32).forward(x)
    assert np.all(x == 1.0)


def test_get_fft_reuses_plan():
    assert get_fft(2048) is get_fft(2048)
    assert get_fft(2048) is not get_fft(1024)
