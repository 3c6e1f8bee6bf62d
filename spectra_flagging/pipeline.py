# Channel flagging pipeline

import logging
import time

import numpy as np
from prometheus_client import Summary
from spectra_flagging.errors import FilterPipelineError
from spectra_flagging.filters.filters import FILTERS
from spectra_flagging.spectra import spectra_shape
from spectra_flagging.utilities.stats_utils import combine_masks, masked_fraction

log = logging.getLogger(__name__)

filter_processing_time = Summary(
    "spectra_flagging_filter_seconds",
    "Duration of running a channel filter on a block of spectra",
    ("filter",),
)


class FilterPipeline:
    """
    This class is responsible for flagging a block of spectra.

    It accepts spectra of shape (samples, channels) and applies a configurable list
    of filters, OR-ing their masks together.
    """

    def __init__(self, masks_to_apply: dict, filter_params: dict = None):
        """
        Initialise the flagging pipeline by setting up the filters to use.

        Parameters
        ----------
        masks_to_apply: dict
            A dictionary of filter names (see `spectra_flagging.filters.FILTERS`)
            to booleans indicating whether that filter should be applied.

        filter_params: dict
            An optional dictionary of filter names to keyword arguments used to
            construct that filter, e.g. {"tsys": {"tolerance": 0.5}}
        """
        filter_params = filter_params or {}
        unknown = (set(masks_to_apply) | set(filter_params)) - set(FILTERS)
        if unknown:
            raise FilterPipelineError(
                f"Unknown filter(s) {sorted(unknown)}, expected some of {list(FILTERS)}"
            )

        self.filters = []
        for name, filter_class in FILTERS.items():
            if not masks_to_apply.get(name, False):
                continue
            try:
                self.filters.append(filter_class(**filter_params.get(name, {})))
            except (TypeError, ValueError) as e:
                raise FilterPipelineError(f"Bad parameters for filter {name}: {e}") from e

        log.debug(f"Filters to apply: {[f.name for f in self.filters]}")

    def summary(self):
        return [f.summary() for f in self.filters]

    def clean(self, spectra: np.ndarray, mask: np.ndarray = None):
        """
        Run the requested filters on the provided spectra.

        Parameters
        ----------
        spectra: np.ndarray
            Spectra of shape (samples, channels)

        mask: np.ndarray
            An optional initial mask of the same shape as `spectra`. It is not
            modified.

        Returns
        -------
        rfi_mask: np.ndarray
            The combined boolean mask, `True` where data should be excluded

        masked_frac: float
            The fraction of the data that is masked
        """
        shape = spectra_shape(spectra)
        if mask is None:
            rfi_mask = np.zeros(shape, dtype=bool)
        else:
            rfi_mask = np.array(mask, dtype=bool)
            if rfi_mask.shape != shape:
                raise FilterPipelineError(
                    f"Initial mask shape {rfi_mask.shape} does not match spectra {shape}"
                )

        cleaning_start = time.time()
        log.debug(f"spectra shape = {shape}")
        log.info(f"initial flagged fraction = {masked_fraction(rfi_mask):g}")

        for spectra_filter in self.filters:
            with filter_processing_time.labels(spectra_filter.name).time():
                filter_start = time.time()
                log.debug(f"{spectra_filter.name} filter START")
                before_masked_frac = masked_fraction(rfi_mask)

                rfi_mask, masked_frac = combine_masks(
                    [rfi_mask, spectra_filter.mask(spectra)]
                )

                unique_masked_frac = masked_frac - before_masked_frac
                log.debug(f"unique masked frac = {unique_masked_frac:g}")
                log.debug(f"total masked frac = {masked_frac:g}")
                log.debug(f"{spectra_filter.name} filter END")
                filter_runtime = time.time() - filter_start
                log.debug(
                    f"Took {filter_runtime} seconds to run {type(spectra_filter).__name__}"
                )

        masked_frac = masked_fraction(rfi_mask)
        log.info(f"final flagged fraction = {masked_frac:g}")
        log.debug(f"Took {time.time() - cleaning_start} seconds to flag spectra")

        return rfi_mask, masked_frac
