"""Exact sexagesimal number package."""

from .base60 import (
    DECIMAL_PRECISION,
    DEFAULT_PRECISION,
    RADIX,
    Base60,
    SexagesimalFormatError,
    as_base60,
    as_base60_array,
    zeros,
    zeros_like,
)

__all__ = [
    "Base60",
    "SexagesimalFormatError",
    "as_base60",
    "as_base60_array",
    "zeros",
    "zeros_like",
    "DEFAULT_PRECISION",
    "DECIMAL_PRECISION",
    "RADIX",
]
