"""Exceptions raised by the spectra flagging routines."""


class SpectraFlaggingError(ValueError):
    """Base class for all errors caused by bad input to the flagging routines."""


class ShapeError(SpectraFlaggingError):
    """The buffer or array shape is incompatible with the requested layout."""


class EmptyInputError(SpectraFlaggingError):
    """A reduction or statistic was asked to operate on zero elements."""


class ConversionError(SpectraFlaggingError):
    """Values could not be represented as finite floating point numbers."""


class UnsupportedTypeError(SpectraFlaggingError):
    """The element type lacks a capability required by the operation."""


class FilterPipelineError(SpectraFlaggingError):
    pass
