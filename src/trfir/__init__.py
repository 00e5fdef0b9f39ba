"""
trfir - FIR correction filters from TRF acoustic measurements.
"""

from .errors import (
    TRFError, FileAccessError, EmptyFileError, OversizeError,
    UnparseableFormatError, FrequencyRangeEmptyError, InvalidConfigError,
    MissingDataError,
)
from .models import (
    MeasurementPoint, MeasurementSet, FrequencyRange,
    FilterDesignConfig, FilterDesignResult, ResponsePoint,
)
from .format_detect import detect_format
from .trf_parser import TextTRFParser, BinaryTRFParser, parse_trf, apply_hearing_cutoff
from .frequency_range import PRESETS, preset_range, apply_frequency_range
from .quality import analyze_measurements, assess_quality
from .fir_designer import FIRDesigner, design_filter
from .verification import compute_frequency_response, summarize_response
from .exporter import EXPORT_FORMATS, export_coefficients
from .session import FilterSession, Notification

__version__ = "0.1.0"
__all__ = [
    "TRFError",
    "FileAccessError",
    "EmptyFileError",
    "OversizeError",
    "UnparseableFormatError",
    "FrequencyRangeEmptyError",
    "InvalidConfigError",
    "MissingDataError",
    "MeasurementPoint",
    "MeasurementSet",
    "FrequencyRange",
    "FilterDesignConfig",
    "FilterDesignResult",
    "ResponsePoint",
    "detect_format",
    "TextTRFParser",
    "BinaryTRFParser",
    "parse_trf",
    "apply_hearing_cutoff",
    "PRESETS",
    "preset_range",
    "apply_frequency_range",
    "analyze_measurements",
    "assess_quality",
    "FIRDesigner",
    "design_filter",
    "compute_frequency_response",
    "summarize_response",
    "EXPORT_FORMATS",
    "export_coefficients",
    "FilterSession",
    "Notification",
]
