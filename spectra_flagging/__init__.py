"""Per-channel bandpass statistics and channel masks for dynamic spectra."""

from spectra_flagging.errors import (
    ConversionError,
    EmptyInputError,
    FilterPipelineError,
    ShapeError,
    SpectraFlaggingError,
    UnsupportedTypeError,
)
from spectra_flagging.filters.filters import (
    FILTERS,
    BandpassMADFilter,
    ChannelFilter,
    DummyFilter,
    Filter,
    TsysFilter,
)
from spectra_flagging.pipeline import FilterPipeline
from spectra_flagging.spectra import spectra_shape, to_spectra
from spectra_flagging.utilities.stats_utils import bandpass, median

__all__ = [
    "to_spectra",
    "spectra_shape",
    "bandpass",
    "median",
    "Filter",
    "ChannelFilter",
    "TsysFilter",
    "BandpassMADFilter",
    "DummyFilter",
    "FILTERS",
    "FilterPipeline",
    "SpectraFlaggingError",
    "ShapeError",
    "EmptyInputError",
    "ConversionError",
    "UnsupportedTypeError",
    "FilterPipelineError",
]
