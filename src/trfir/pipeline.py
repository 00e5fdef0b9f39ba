"""
Request orchestration: file acquisition, measurement processing, design and
export.

Functions here are stateless.  Each one tags any ``TRFError`` it lets through
with the notification kind for its request and re-raises it unchanged.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Sequence, Union

from .errors import (
    TRFError, FileAccessError, EmptyFileError, OversizeError, UnparseableFormatError,
    TRF_PROCESS_ERROR, FILE_VALIDATION_ERROR, FILTER_DESIGN_ERROR, EXPORT_ERROR,
)
from .exporter import export_coefficients, write_coefficients
from .fir_designer import FIRDesigner
from .models import (
    FilterDesignConfig, FilterDesignResult, MeasurementPoint, MeasurementSet,
    detect_sample_rate,
)
from .quality import analyze_measurements, assess_quality
from .trf_parser import parse_trf, apply_hearing_cutoff


log = logging.getLogger(__name__)

MAX_FILE_SIZE = 100 * 1024 * 1024
PASTED_SOURCE_NAME = 'Pasted TRF Data'


@contextmanager
def tagged(kind: str):
    """Label TRFErrors raised inside the block with ``kind``."""
    try:
        yield
    except TRFError as e:
        if e.kind is None:
            e.kind = kind
        log.debug("%s: %s", kind, e)
        raise


def validate_trf_file(path: Union[str, Path]) -> int:
    """Check that ``path`` is a readable, non-empty file under the size cap; return its size."""
    path = Path(path)
    with tagged(FILE_VALIDATION_ERROR):
        try:
            size = path.stat().st_size
        except OSError as e:
            raise FileAccessError(f"Cannot access {path}: {e}") from e
        if not path.is_file():
            raise FileAccessError(f"Not a file: {path}")
        if size == 0:
            raise EmptyFileError(f"File is empty: {path}")
        if size > MAX_FILE_SIZE:
            raise OversizeError(f"File too large (max 100MB): {path} is {size} bytes")
    return size


def read_trf_file(path: Union[str, Path]) -> bytes:
    path = Path(path)
    with tagged(TRF_PROCESS_ERROR):
        try:
            with open(path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise FileAccessError(f"Cannot read {path}: {e}") from e


def process_trf_buffer(buffer: bytes, source_name: Optional[str] = None) -> MeasurementSet:
    """
    Parse, cut at the hearing limit and analyse a raw TRF buffer.

    Raises
    ------
    EmptyFileError
        ``buffer`` is empty.
    UnparseableFormatError
        No valid point survives parsing and the 22 kHz cutoff.
    """
    with tagged(TRF_PROCESS_ERROR):
        if not buffer:
            raise EmptyFileError("No TRF data to process")

        points, source_format = parse_trf(buffer, log)
        cut = apply_hearing_cutoff(points)
        if len(cut) != len(points):
            log.info("Removed %d points above 22 kHz", len(points) - len(cut))
        if not cut:
            raise UnparseableFormatError("No valid data points below 22 kHz")

        analysis = analyze_measurements(cut)
        quality = assess_quality(cut, analysis)
        for warning in quality.warnings:
            log.warning("Data quality: %s", warning)

        return MeasurementSet(
            points=tuple(cut),
            source_format=source_format,
            sample_rate=detect_sample_rate(cut),
            source_name=source_name,
            analysis=analysis,
            quality=quality,
        )


def process_trf_file(path: Union[str, Path]) -> MeasurementSet:
    path = Path(path)
    validate_trf_file(path)
    buffer = read_trf_file(path)
    measurements = process_trf_buffer(buffer, os.path.basename(path))
    log.info("Loaded %s: %d points, %s format, quality %s", path.name, len(measurements),
             measurements.source_format, measurements.quality.overall)
    return measurements


def process_pasted_text(text: str) -> MeasurementSet:
    return process_trf_buffer(text.encode('utf-8'), PASTED_SOURCE_NAME)


def design_filter(measurements: Union[MeasurementSet, Sequence[MeasurementPoint]],
                  config: Optional[FilterDesignConfig] = None) -> FilterDesignResult:
    with tagged(FILTER_DESIGN_ERROR):
        return FIRDesigner(config or FilterDesignConfig(), log).design(measurements)


def export_filter(coefficients: Sequence[float], fmt: str, path: Union[str, Path],
                  sample_rate: float = 48000) -> Path:
    with tagged(EXPORT_ERROR):
        content = export_coefficients(coefficients, fmt, sample_rate)
        return write_coefficients(path, content)
