import numpy as np
import pytest

from spectra_flagging.errors import (
    ConversionError,
    EmptyInputError,
    ShapeError,
    UnsupportedTypeError,
)
from spectra_flagging.spectra import to_spectra
from spectra_flagging.utilities.stats_utils import (
    as_float,
    bandpass,
    broadcast_channel_mask,
    combine_masks,
    masked_fraction,
    median,
    median_absolute_deviation,
)


def test_bandpass_repeated_rows() -> None:
    raw = np.array([1, 2, 3, 4, 1, 2, 3, 4, 1, 2, 3, 4], dtype=np.uint16)
    bpass = bandpass(to_spectra(raw, 4))
    assert np.array_equal(bpass, [1, 2, 3, 4])


def test_bandpass_length_matches_channels() -> None:
    rng = np.random.default_rng(42)
    spectra = rng.normal(10.0, 1.0, size=(50, 17))
    assert len(bandpass(spectra)) == 17


def test_bandpass_single_sample_is_exact() -> None:
    row = np.array([0.1, 2.5, 1e10, -3.75])
    spectra = to_spectra(row, 4)
    assert np.array_equal(bandpass(spectra), row)


def test_bandpass_integer_does_not_overflow() -> None:
    spectra = np.full((4, 3), 255, dtype=np.uint8)
    spectra[0, 0] = 0
    bpass = bandpass(spectra)
    assert bpass.dtype == np.float64
    np.testing.assert_allclose(bpass, [191.25, 255.0, 255.0])


def test_bandpass_row_permutation_invariant() -> None:
    rng = np.random.default_rng(1)
    spectra = rng.integers(0, 1000, size=(32, 8))
    shuffled = spectra[rng.permutation(32)]
    np.testing.assert_allclose(bandpass(shuffled), bandpass(spectra))


def test_bandpass_column_permutation_equivariant() -> None:
    rng = np.random.default_rng(2)
    spectra = rng.normal(size=(32, 8))
    perm = rng.permutation(8)
    np.testing.assert_allclose(bandpass(spectra[:, perm]), bandpass(spectra)[perm])


def test_bandpass_threaded_matches_serial() -> None:
    rng = np.random.default_rng(3)
    spectra = rng.integers(0, 2**16, size=(64, 1001), dtype=np.uint16)
    np.testing.assert_allclose(
        bandpass(spectra, num_threads=4), bandpass(spectra, num_threads=1)
    )
    # more threads than channels
    np.testing.assert_allclose(
        bandpass(spectra[:, :3], num_threads=8), bandpass(spectra[:, :3])
    )


def test_bandpass_zero_samples_fails() -> None:
    spectra = to_spectra(np.array([], dtype=np.float32), 4)
    with pytest.raises(EmptyInputError):
        bandpass(spectra)


def test_bandpass_rejects_bad_input() -> None:
    with pytest.raises(ShapeError):
        bandpass(np.arange(4))
    with pytest.raises(UnsupportedTypeError):
        bandpass(np.array([["a", "b"]]))


def test_median_even_length_uses_midpoint() -> None:
    assert median([1, 2, 3, 4]) == 2.5
    assert median(np.array([4, 1, 3, 2], dtype=np.uint16)) == 2.5


def test_median_odd_length_is_middle_value() -> None:
    assert median([5.0, 0.25, 3.0]) == 3.0
    assert median([7]) == 7.0


def test_median_does_not_reorder_input() -> None:
    profile = np.array([3.0, 1.0, 2.0])
    median(profile)
    assert profile.tolist() == [3.0, 1.0, 2.0]


def test_median_failures() -> None:
    with pytest.raises(EmptyInputError):
        median([])
    with pytest.raises(ShapeError):
        median(np.ones((2, 2)))
    with pytest.raises(ConversionError):
        median([1.0, np.nan, 2.0])


def test_as_float() -> None:
    assert as_float(np.array([1, 2], dtype=np.int8)).dtype == np.float64
    with pytest.raises(UnsupportedTypeError):
        as_float(np.array([1 + 1j]))
    with pytest.raises(ConversionError):
        as_float(np.array(["1.0"]))
    with pytest.raises(ConversionError):
        as_float(np.array([object()], dtype=object))
    with pytest.raises(ConversionError):
        as_float([np.inf])


def test_median_absolute_deviation() -> None:
    med, mad = median_absolute_deviation([1.0, 2.0, 3.0, 4.0, 100.0])
    assert med == 3.0
    # raw MAD is 1, scaled to be consistent with a normal standard deviation
    assert mad == pytest.approx(1.4826, rel=1e-3)


def test_combine_masks() -> None:
    a = np.array([[True, False], [False, False]])
    b = np.array([[False, False], [False, True]])
    combined, frac = combine_masks([a, b])
    assert combined.tolist() == [[True, False], [False, True]]
    assert frac == 0.5

    with pytest.raises(ShapeError):
        combine_masks([a, np.zeros(4, dtype=bool)])
    with pytest.raises(EmptyInputError):
        combine_masks([])


def test_masked_fraction_of_empty_mask() -> None:
    assert masked_fraction(np.zeros((0, 4), dtype=bool)) == 0.0


def test_broadcast_channel_mask() -> None:
    grid = broadcast_channel_mask(np.array([True, False, True]), 4)
    assert grid.shape == (4, 3)
    assert grid.flags.writeable
    assert np.array_equal(grid, np.tile([True, False, True], (4, 1)))
    with pytest.raises(ShapeError):
        broadcast_channel_mask(np.zeros((2, 2), dtype=bool), 4)


@pytest.mark.parametrize("num_threads", [0, -2, 2.5, True])
def test_bandpass_rejects_bad_thread_count(num_threads) -> None:
    with pytest.raises(ValueError):
        bandpass(np.ones((4, 8)), num_threads=num_threads)
