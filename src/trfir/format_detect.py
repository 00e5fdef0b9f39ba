"""
TRF format detection.

Binary TRF files carry a ``JACKREF`` marker and are dominated by non-printable
bytes; text exports may quote the marker too, hence the second check.
"""

import numpy as np

BINARY_MAGIC = 'JACKREF'
SCAN_BYTES = 10_000
BINARY_RATIO = 0.5

TEXT = 'text'
BINARY = 'binary'


def non_printable_ratio(buffer: bytes, limit: int = SCAN_BYTES) -> float:
    """Fraction of the first ``limit`` bytes outside printable ASCII [32, 126]."""
    head = np.frombuffer(buffer[:limit], dtype=np.uint8)
    if head.size == 0:
        return 0.0
    # null bytes fall below 32 and are counted here as well
    return float(np.count_nonzero((head < 32) | (head > 126))) / head.size


def detect_format(buffer: bytes) -> str:
    """Classify a raw TRF buffer as ``'text'`` or ``'binary'``."""
    text = buffer.decode('utf-8', errors='replace')
    if BINARY_MAGIC not in text:
        return TEXT
    return BINARY if non_printable_ratio(buffer) > BINARY_RATIO else TEXT
