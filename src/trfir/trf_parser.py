#!/usr/bin/env python3
"""
TRF Measurement Parser
======================

Extracts (frequency, magnitude, phase[, coherence]) points from the two TRF
variants written by the measurement instrument:

- Text: optional banner lines, optional column header, whitespace-separated
  rows of 3 or 4 numeric columns.
- Binary: a ``JACKREF`` file whose record section holds 16-byte little-endian
  records ``<float32 freq, float32 mag, float32 phase, float32 coherence>``.
  The record section has no length prefix; its start is recovered with the
  same two-step heuristic existing files were written against, so it must
  stay bit-for-bit compatible.

Malformed rows and out-of-range records are dropped silently.  Only an empty
result is an error.
"""

import logging
import math
import re
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .errors import UnparseableFormatError
from .format_detect import detect_format, BINARY
from .models import MeasurementPoint, HEARING_LIMIT_HZ


LINE_SPLIT = re.compile(r'\r?\n')
# Whitespace as the instrument software trims and splits it: no \x1c-\x1f or
# \x85, but NBSP, BOM and the Unicode space separators.
WHITESPACE = '\t\n\x0b\x0c\r \xa0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff'
FIELD_SPLIT = re.compile(f'[{WHITESPACE}]+')
EDGE_SPACE = re.compile(f'^[{WHITESPACE}]+|[{WHITESPACE}]+$')
TITLE_MARKERS = ('TTA', 'DM3')
HEADER_MARKER = 'freq'
COHERENCE_MARKER = 'coherence'

# "three numbers" row that precedes the binary payload in some files
NUMBER = r'\d+\.?\d*'
DATA_ROW = re.compile(f'^{NUMBER}[{WHITESPACE}]+-?{NUMBER}[{WHITESPACE}]+-?{NUMBER}', re.ASCII)
# Fallback offsets; 435057 is where the record section sits in the
# instrument's default project layout.
PROBE_OFFSETS = (435057, 1000, 2000, 5000, 10000)
RECORD = np.dtype('<f4')
RECORD_SIZE = 16

MAGNITUDE_LIMIT = 200.0
PHASE_LIMIT = 180.0


def _finite_float(token: str) -> Optional[float]:
    if token != token.strip():
        # float() would skip \x1c-\x1f and \x85, which are not field separators
        return None
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _trim(line: str) -> str:
    return EDGE_SPACE.sub('', line)


def _fields(line: str) -> List[str]:
    return [v for v in FIELD_SPLIT.split(line) if v]


def _utf16_length(line: str) -> int:
    return len(line.encode('utf-16-le')) // 2


def _in_hearing_range(frequency: float) -> bool:
    return 0 <= frequency <= HEARING_LIMIT_HZ


# ───────────────────────── Text variant ────────────────────────── #

class TextTRFParser:
    """
    Line-oriented parser for text TRF exports.

    The parser starts out looking for either a header row (any line naming a
    frequency column) or, absent a header, the first row whose leading token is
    a number.  From then on each line is a candidate data row.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logging.getLogger(__name__)

    def parse(self, buffer: bytes) -> List[MeasurementPoint]:
        text = buffer.decode('utf-8', errors='replace')
        points: List[MeasurementPoint] = []

        in_data = False
        header_found = False
        has_coherence = False
        dropped = 0

        for raw in LINE_SPLIT.split(text):
            line = _trim(raw)
            if not line or any(marker in line for marker in TITLE_MARKERS):
                continue

            lowered = line.lower()
            if not header_found and HEADER_MARKER in lowered:
                header_found = True
                in_data = True
                has_coherence = COHERENCE_MARKER in lowered
                self.log.debug("Header row: %r (coherence column: %s)", line, has_coherence)
                continue

            if not in_data:
                if _finite_float(_fields(line)[0]) is None:
                    continue
                in_data = True

            point = self._parse_row(_fields(line), has_coherence)
            if point is None:
                dropped += 1
            else:
                points.append(point)

        self.log.debug("Text TRF: %d points parsed, %d rows dropped", len(points), dropped)
        return points

    @staticmethod
    def _parse_row(values: List[str], has_coherence: bool) -> Optional[MeasurementPoint]:
        if len(values) < 3:
            return None
        columns = [_finite_float(v) for v in values[:3]]
        if any(c is None for c in columns):
            return None
        frequency, magnitude, phase = columns

        coherence = None
        if has_coherence and len(values) >= 4:
            c = _finite_float(values[3])
            if c is not None and 0 <= c <= 1:
                coherence = c
        return MeasurementPoint(frequency, magnitude, phase, coherence)


# ───────────────────────── Binary variant ────────────────────────── #

class BinaryTRFParser:
    """Record reader for binary (``JACKREF``) TRF files."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logging.getLogger(__name__)

    def parse(self, buffer: bytes) -> List[MeasurementPoint]:
        start, strategy = self.find_data_start(buffer)
        if start < 0:
            raise UnparseableFormatError("Could not locate binary data section in TRF file")
        self.log.debug("Binary record section at offset %d (%s)", start, strategy)

        usable = (len(buffer) - start) // RECORD_SIZE * RECORD_SIZE
        if usable <= 0:
            return []
        records = np.frombuffer(buffer, dtype=RECORD, count=usable // 4,
                                offset=start).reshape(-1, 4).astype(np.float64)
        freq, mag, phase, coh = records.T

        keep = ((freq >= 0) & (freq <= HEARING_LIMIT_HZ)
                & (mag > -MAGNITUDE_LIMIT) & (mag < MAGNITUDE_LIMIT)
                & (phase > -PHASE_LIMIT) & (phase < PHASE_LIMIT))
        coh_ok = (coh >= 0) & (coh <= 1)

        points = [
            MeasurementPoint(float(f), float(m), float(p), float(c) if ok else None)
            for f, m, p, c, ok in zip(freq[keep], mag[keep], phase[keep],
                                      coh[keep], coh_ok[keep])
        ]
        self.log.debug("Binary TRF: %d of %d records kept", len(points), len(records))
        return points

    def find_data_start(self, buffer: bytes) -> Tuple[int, str]:
        """Return ``(offset, strategy)``; offset is -1 if nothing matched."""
        offset = self._scan_text_rows(buffer)
        if offset > 0:
            return offset, 'text-row'
        offset = self._probe_offsets(buffer)
        if offset >= 0:
            return offset, 'probe'
        return -1, 'none'

    @staticmethod
    def _scan_text_rows(buffer: bytes) -> int:
        lines = LINE_SPLIT.split(buffer.decode('utf-8', errors='replace'))
        for index, line in enumerate(lines):
            if DATA_ROW.match(_trim(line)):
                if index == 0:
                    return -1
                # UTF-16 length of each decoded line plus one newline each
                return sum(_utf16_length(prev) + 1 for prev in lines[:index])
        return -1

    @staticmethod
    def _probe_offsets(buffer: bytes) -> int:
        for start in PROBE_OFFSETS:
            if start >= len(buffer) - RECORD_SIZE:
                continue
            f1, f2, f3 = (float(v) for v in np.frombuffer(buffer, dtype=RECORD,
                                                          count=3, offset=start))
            if (0 <= f1 <= HEARING_LIMIT_HZ
                    and -MAGNITUDE_LIMIT < f2 < MAGNITUDE_LIMIT
                    and -PHASE_LIMIT < f3 < PHASE_LIMIT):
                return start
        return -1


# ───────────────────────── Entry points ────────────────────────── #

def parse_trf(buffer: bytes, log: Optional[logging.Logger] = None) -> Tuple[List[MeasurementPoint], str]:
    """
    Parse a raw TRF buffer.

    Returns
    -------
    points : list of MeasurementPoint
        Points in file order.
    source_format : str
        ``'text'`` or ``'binary'``.

    Raises
    ------
    UnparseableFormatError
        No valid point was found, or the binary record section is missing.
    """
    log = log or logging.getLogger(__name__)
    source_format = detect_format(buffer)
    if source_format == BINARY:
        points = BinaryTRFParser(log).parse(buffer)
    else:
        points = TextTRFParser(log).parse(buffer)

    if not points:
        raise UnparseableFormatError(f"No valid data points found in {source_format} TRF data")
    log.info("Parsed %d points from %s TRF data", len(points), source_format)
    return points, source_format


def apply_hearing_cutoff(points: Sequence[MeasurementPoint]) -> List[MeasurementPoint]:
    """Drop points outside 0 .. 22 kHz."""
    return [p for p in points if _in_hearing_range(p.frequency)]
