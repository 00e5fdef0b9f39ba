"""
Error taxonomy for the TRF -> FIR pipeline.

Every failure is fatal to the request that raised it.  The pipeline tags the
exception with a notification ``kind`` before re-raising so a host can decide
how to present it.
"""

from typing import Optional


# Notification kinds reported to the host
TRF_PROCESS_ERROR = "TRF_PROCESS_ERROR"
FILE_VALIDATION_ERROR = "FILE_VALIDATION_ERROR"
FILTER_DESIGN_ERROR = "FILTER_DESIGN_ERROR"
EXPORT_ERROR = "EXPORT_ERROR"


class TRFError(Exception):
    """Base class for every error raised by trfir."""

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.kind = kind


class FileAccessError(TRFError):
    """Source file is missing or unreadable, or a destination is not writable."""


class EmptyFileError(TRFError):
    """Source file has zero bytes."""


class OversizeError(TRFError):
    """Source file exceeds the size cap."""


class UnparseableFormatError(TRFError):
    """No measurement points could be extracted."""


class FrequencyRangeEmptyError(TRFError):
    """A frequency sub-band retained zero points."""


class InvalidConfigError(TRFError):
    """Structurally invalid filter design configuration."""


class MissingDataError(TRFError):
    """An action needs measurements or coefficients that are not there yet."""
