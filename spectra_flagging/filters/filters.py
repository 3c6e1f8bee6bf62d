#!/usr/bin/env python3
import logging
from abc import ABC, abstractmethod

import numpy as np
from attr import asdict, has
from attr import ib as attrib
from attr import s as attrs
from spectra_flagging.constants import (
    MAD_NTHRESH,
    MAD_PTHRESH,
    ORDERED_KINDS,
    TSYS_TOLERANCE,
)
from spectra_flagging.spectra import check_dtype, spectra_shape
from spectra_flagging.utilities.stats_utils import (
    as_float,
    bandpass,
    broadcast_channel_mask,
    median,
    median_absolute_deviation,
)

log = logging.getLogger(__name__)

# filter name -> filter class, in the order a pipeline applies them
FILTERS = {}


def register_filter(cls):
    """Class decorator making a filter available to the pipeline under `cls.name`."""
    FILTERS[cls.name] = cls
    return cls


def _validate_positive(instance, attribute, value):
    if not np.isfinite(value) or value <= 0:
        raise ValueError(
            f"{type(instance).__name__}.{attribute.name} must be a positive finite"
            f" number, got {value}"
        )


class Filter(ABC):
    """
    Common interface of all filters: given spectra of shape (samples, channels),
    produce a boolean mask of the same shape where `True` indicates the sample
    should be removed.

    Filters never modify the spectra they are given, and calling `mask` twice on
    the same data gives the same result.
    """

    name = None

    @abstractmethod
    def mask(self, spectra: np.ndarray) -> np.ndarray:
        pass

    def summary(self) -> dict:
        params = asdict(self) if has(type(self)) else {}
        return dict(name=self.name, **params)


class ChannelFilter(Filter):
    """
    A filter that flags entire channels (i.e. does not make use of the time
    resolution). The per-channel decision is available from `channel_mask`, and
    `mask` replicates it across every time sample.
    """

    @abstractmethod
    def channel_mask(self, spectra: np.ndarray) -> np.ndarray:
        pass

    def mask(self, spectra: np.ndarray) -> np.ndarray:
        nsamp, _ = spectra_shape(spectra)
        return broadcast_channel_mask(self.channel_mask(spectra), nsamp)


@register_filter
@attrs(frozen=True, slots=True)
class TsysFilter(ChannelFilter):
    """
    A filter to remove channels whose system-temperature-based bandpass is low.

    Channels whose mean power is less than `tolerance` times the median bandpass
    are flagged. This picks up attenuated parts of the band (e.g. the band edges or
    a failing receiver) rather than hot RFI spikes.

    Parameters
    ----------
    tolerance: float
        The fraction of the median bandpass below which a channel is clipped.
        Default is 0.5.
    """

    name = "tsys"

    tolerance = attrib(
        default=TSYS_TOLERANCE, converter=float, validator=_validate_positive
    )

    def channel_mask(self, spectra: np.ndarray) -> np.ndarray:
        log.info("Running Tsys filter")
        spectra = np.asarray(spectra)
        check_dtype(spectra, ORDERED_KINDS, "TsysFilter")

        t_sys = bandpass(spectra)
        t_sys_median = median(t_sys)
        threshold = self.tolerance * t_sys_median
        t_sys_mask = as_float(t_sys) < threshold

        log.debug(f"bandpass median = {t_sys_median:g}, threshold = {threshold:g}")
        log.debug(f"Number of channels below threshold: {t_sys_mask.sum()}")

        return t_sys_mask


@register_filter
@attrs(frozen=True, slots=True)
class BandpassMADFilter(ChannelFilter):
    """
    This filter calculates the bandpass and the median absolute deviation (MAD) of
    that collapsed array, and rejects channels outside the nominated thresholds.
    Separate thresholds are used above and below the median since a low bandpass
    is usually less of a concern than a hot channel.

    Channels whose samples do not vary at all over time are also flagged, as this is
    not physical.
    """

    name = "mad"

    pthresh = attrib(default=MAD_PTHRESH, converter=float, validator=_validate_positive)
    nthresh = attrib(default=MAD_NTHRESH, converter=float, validator=_validate_positive)

    def channel_mask(self, spectra: np.ndarray) -> np.ndarray:
        log.info("Running bandpass MAD filter")
        spectra = np.asarray(spectra)
        check_dtype(spectra, ORDERED_KINDS, "BandpassMADFilter")

        bpass = bandpass(spectra)
        bpass_med, bpass_std = median_absolute_deviation(bpass)

        # filter channels outside the defined thresholds
        pval = bpass_med + self.pthresh * bpass_std
        nval = bpass_med - self.nthresh * bpass_std
        bpass = as_float(bpass)
        mad_mask = np.logical_or(bpass > pval, bpass < nval)
        log.debug(f"MAD bounds: lower={nval:g} upper={pval:g}")
        log.debug(f"Number of channels outside MAD bounds: {mad_mask.sum()}")

        # also mask channels that are constant over time (not physical)
        constant_chans = spectra.max(axis=0) == spectra.min(axis=0)
        log.debug(f"Number of constant channels: {constant_chans.sum()}")

        return np.logical_or(mad_mask, constant_chans)


@register_filter
@attrs(frozen=True, slots=True)
class DummyFilter(ChannelFilter):
    """This filter does nothing except return a binary mask that masks no data."""

    name = "dummy"

    def channel_mask(self, spectra: np.ndarray) -> np.ndarray:
        log.info("Running Dummy filter")
        _, nchan = spectra_shape(spectra)
        return np.zeros(nchan, dtype=bool)
