"""
Construction of two-dimensional spectra views from raw sample buffers.

The raw buffers handed over by the acquisition side are flat sequences of samples
where subsequent frequency channels are aligned in memory ("C" order). As such,
the views built here have dimensions (samples, channels): rows are time samples and
columns are frequency channels.
"""

import logging
from typing import Tuple

import numpy as np
from spectra_flagging.constants import NUMERIC_KINDS
from spectra_flagging.errors import ConversionError, ShapeError, UnsupportedTypeError

log = logging.getLogger(__name__)


def check_dtype(values: np.ndarray, kinds: str = NUMERIC_KINDS, operation: str = ""):
    """
    Make sure the element type of `values` supports the capabilities required by an
    operation, which are enumerated as numpy dtype kinds.

    Parameters
    ----------
    values: np.ndarray
        The array to check
    kinds: str
        The accepted dtype kinds, e.g. "iufc" for anything supporting addition and
        division by a count, "iuf" for types that additionally have a total ordering.
    operation: str
        Name of the calling operation, used in the error message.

    Raises
    ------
    UnsupportedTypeError
        If the dtype kind of `values` is not one of `kinds`.
    """
    if values.dtype.kind not in kinds:
        raise UnsupportedTypeError(
            f"{operation or 'operation'} does not support element type {values.dtype}"
        )


def to_spectra(raw_spectra, channels: int, dtype=None) -> np.ndarray:
    """
    Creates a 2D read-only spectra view from an array of raw measurements.

    No data are copied when `raw_spectra` is a bytes-like object, or a contiguous
    numpy array whose dtype already matches `dtype` (or `dtype` is None); the
    returned view then shares the caller's memory and is only valid as long as
    that buffer is. Passing a different `dtype` for a numpy array converts it into
    a new array.

    Parameters
    ----------
    raw_spectra: array-like or bytes-like
        Flat buffer of samples, sample-major (all channels of sample 0, then all
        channels of sample 1, ...)
    channels: int
        Number of frequency channels per time sample
    dtype: numpy dtype, optional
        Element type. Required when `raw_spectra` is a raw bytes-like object.

    Returns
    -------
    spectra: np.ndarray
        A non-writeable view of shape (samples, channels)

    Raises
    ------
    ShapeError
        If `channels` is not a positive integer, the buffer is not flat or
        contiguous, or its length is not a multiple of `channels`.
    UnsupportedTypeError
        If the samples are not numeric or `dtype` is not a valid numpy dtype.
    ConversionError
        If the values cannot be converted to `dtype`.
    """
    if (
        isinstance(channels, (bool, np.bool_))
        or not isinstance(channels, (int, np.integer))
        or channels <= 0
    ):
        raise ShapeError(f"Number of channels must be a positive integer, got {channels!r}")

    if dtype is not None:
        try:
            dtype = np.dtype(dtype)
        except TypeError as e:
            raise UnsupportedTypeError(f"Invalid dtype {dtype!r}: {e}") from e

    if isinstance(raw_spectra, (bytes, bytearray, memoryview)):
        if dtype is None:
            raise UnsupportedTypeError("An explicit dtype is required for raw bytes")
        try:
            raw = np.frombuffer(raw_spectra, dtype=dtype)
        except ValueError as e:
            raise ShapeError(f"Cannot interpret buffer as {dtype}: {e}") from e
    else:
        try:
            raw = np.asarray(raw_spectra, dtype=dtype)
        except (TypeError, ValueError) as e:
            raise ConversionError(f"Cannot convert raw spectra to {dtype}: {e}") from e

    if raw.ndim != 1:
        raise ShapeError(f"Raw spectra must be one-dimensional, got shape {raw.shape}")
    if not raw.flags.c_contiguous:
        raise ShapeError("Raw spectra must be a contiguous buffer")
    check_dtype(raw, operation="to_spectra")

    if raw.size % channels != 0:
        raise ShapeError(
            f"Buffer of length {raw.size} is not a multiple of {channels} channels"
        )

    samples = raw.size // channels
    spectra = raw.reshape(samples, channels)
    spectra.flags.writeable = False
    log.debug(f"spectra shape = {spectra.shape} ({spectra.dtype})")

    return spectra


def spectra_shape(spectra: np.ndarray) -> Tuple[int, int]:
    """Return (samples, channels) of a spectra view, checking it is two-dimensional."""
    if np.ndim(spectra) != 2:
        raise ShapeError(
            f"Spectra must be two-dimensional (samples, channels), got {np.shape(spectra)}"
        )
    nsamp, nchan = np.shape(spectra)
    return nsamp, nchan
