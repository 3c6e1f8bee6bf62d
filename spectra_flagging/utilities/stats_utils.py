#!/usr/bin/env python3

import logging
from multiprocessing.pool import ThreadPool
from typing import Sequence, Tuple

import numpy as np
from scipy.stats import median_abs_deviation
from spectra_flagging.constants import NUMERIC_KINDS
from spectra_flagging.errors import (
    ConversionError,
    EmptyInputError,
    ShapeError,
    UnsupportedTypeError,
)
from spectra_flagging.spectra import check_dtype, spectra_shape

log = logging.getLogger(__name__)


def bandpass(spectra: np.ndarray, num_threads: int = 1) -> np.ndarray:
    """
    Computes the "bandpass" of the `spectra`.

    This is the mean of the dynamic spectra across the time axis to get the average
    power in each channel. Integer samples are accumulated in float64, so narrow
    integer types cannot overflow and fractional means are preserved.

    This won't be super fast because the data is sample-major, i.e. every channel
    is read with a stride of `nchan` elements. Splitting the channels across
    `num_threads` threads helps a little for very wide spectra.

    Parameters
    ----------
    spectra: np.ndarray
        Spectra of shape (samples, channels)
    num_threads: int
        Number of threads to split the channel axis over, at least 1. Default is 1.

    Returns
    -------
    bpass: np.ndarray
        The mean power in each channel, of length `channels`

    Raises
    ------
    EmptyInputError
        If the spectra contain no time samples.
    ValueError
        If `num_threads` is not a positive integer.
    """
    if (
        isinstance(num_threads, (bool, np.bool_))
        or not isinstance(num_threads, (int, np.integer))
        or num_threads < 1
    ):
        raise ValueError(f"num_threads must be a positive integer, got {num_threads!r}")

    spectra = np.asarray(spectra)
    nsamp, nchan = spectra_shape(spectra)
    check_dtype(spectra, NUMERIC_KINDS, "bandpass")
    if nsamp == 0:
        raise EmptyInputError("Cannot compute the bandpass of spectra with no samples")

    acc_dtype = np.float64 if spectra.dtype.kind in "iu" else None

    if num_threads <= 1 or nchan < 2:
        return spectra.mean(axis=0, dtype=acc_dtype)

    nblocks = min(num_threads, nchan)
    edges = np.linspace(0, nchan, nblocks + 1).astype(int)
    channel_slices = [slice(lo, hi) for lo, hi in zip(edges[:-1], edges[1:])]
    log.debug(f"computing bandpass over {nblocks} channel blocks")

    with ThreadPool(nblocks) as pool:
        partial_bpass = pool.map(
            lambda chan_slice: spectra[:, chan_slice].mean(axis=0, dtype=acc_dtype),
            channel_slices,
        )

    return np.concatenate(partial_bpass)


def as_float(values) -> np.ndarray:
    """
    Convert `values` to a float64 array for comparisons against float thresholds.

    Raises
    ------
    UnsupportedTypeError
        For complex values, which have no ordering to threshold on.
    ConversionError
        If the values cannot be represented as finite floating point numbers.
    """
    values = np.asarray(values)
    kind = values.dtype.kind

    if kind == "c":
        raise UnsupportedTypeError("Complex values cannot be ordered for thresholding")
    if kind not in "iufO":
        raise ConversionError(f"Cannot convert element type {values.dtype} to float")

    try:
        floats = values.astype(np.float64)
    except (TypeError, ValueError) as e:
        raise ConversionError(f"Cannot convert values to float: {e}") from e

    if not np.all(np.isfinite(floats)):
        raise ConversionError("Values contain non-finite entries (NaN or inf)")

    return floats


def median(profile) -> float:
    """
    Compute the median of a one-dimensional profile.

    For an even number of elements the two central order statistics are averaged
    ("midpoint" interpolation), so the median of [1, 2, 3, 4] is 2.5. The input is
    not reordered.

    Raises
    ------
    EmptyInputError
        If the profile has no elements.
    """
    profile = np.asarray(profile)
    if profile.ndim != 1:
        raise ShapeError(f"Median expects a one-dimensional profile, got {profile.shape}")
    if profile.size == 0:
        raise EmptyInputError("Cannot compute the median of an empty profile")

    return float(np.median(as_float(profile)))


def median_absolute_deviation(x, scale="normal") -> Tuple[float, float]:
    """
    Calculate the median and median absolute deviation (MAD) in an attempt to robustly
    estimate the standard deviation of the data.

    The default `scale="normal"` makes the MAD a consistent estimator of the standard
    deviation for normally distributed data (i.e. it is multiplied by ~1.4826).
    """
    values = np.asarray(x)
    med = median(values)
    med_abs_dev = median_abs_deviation(as_float(values), scale=scale)

    return med, float(med_abs_dev)


def masked_fraction(mask: np.ndarray) -> float:
    mask = np.asarray(mask, dtype=bool)
    if mask.size == 0:
        return 0.0
    return float(mask.sum() / mask.size)


def combine_masks(masks: Sequence[np.ndarray]) -> Tuple[np.ndarray, float]:
    """Combine any number of boolean masks into a final, single binary mask."""
    masks = [np.asarray(m, dtype=bool) for m in masks]
    if len(masks) == 0:
        raise EmptyInputError("No masks to combine")

    shape = masks[0].shape
    for m in masks[1:]:
        if m.shape != shape:
            raise ShapeError(f"Cannot combine masks of shapes {shape} and {m.shape}")

    reduced_mask = np.logical_or.reduce(masks, axis=0)
    return reduced_mask, masked_fraction(reduced_mask)


def broadcast_channel_mask(channel_mask: np.ndarray, nsamp: int) -> np.ndarray:
    """Replicate a per-channel mask across `nsamp` time samples, giving (nsamp, nchan)."""
    channel_mask = np.asarray(channel_mask, dtype=bool)
    if channel_mask.ndim != 1:
        raise ShapeError(f"Channel mask must be one-dimensional, got {channel_mask.shape}")
    return np.repeat(channel_mask[np.newaxis, :], nsamp, axis=0)
