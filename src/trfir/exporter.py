"""
Coefficient export.

``export_coefficients`` only builds the file content; ``write_coefficients``
persists it.
"""

import logging
import math
from decimal import Context, Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import List, Sequence, Union

from .errors import FileAccessError


log = logging.getLogger(__name__)

EXPORT_FORMATS = ('text', 'csv', 'matlab', 'python', 'high-res')
DEFAULT_FORMAT = 'text'

# wide enough for any finite double at 15 decimals
_DECIMAL_CONTEXT = Context(prec=400)

_EXTENSIONS = {
    'text': '.txt',
    'csv': '.csv',
    'matlab': '.m',
    'python': '.py',
    'high-res': '.txt',
}


def sanitize(coefficients: Sequence[float]) -> List[float]:
    """Replace non-finite values with 0 (and -0.0 with 0.0)."""
    out = []
    for c in coefficients:
        value = float(c)
        out.append(value + 0.0 if math.isfinite(value) else 0.0)
    return out


def to_fixed(value: float, digits: int = 6) -> str:
    """Fixed-point text with exact ties rounded away from zero."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP,
                                      context=_DECIMAL_CONTEXT)
    return f"{rounded:f}"


def _fixed(values: Sequence[float], digits: int = 6) -> List[str]:
    return [to_fixed(v, digits) for v in values]


def export_coefficients(coefficients: Sequence[float], fmt: str = DEFAULT_FORMAT,
                        sample_rate: float = 48000) -> str:
    """
    Format coefficients as ``text``, ``csv``, ``matlab``, ``python`` or
    ``high-res``.  Unknown formats fall back to ``text``.
    """
    values = sanitize(coefficients)

    if fmt == 'csv':
        return ','.join(_fixed(values))
    if fmt == 'matlab':
        return f"% FIR Filter Coefficients\ncoefficients = [{', '.join(_fixed(values))}];"
    if fmt == 'python':
        return f"# FIR Filter Coefficients\ncoefficients = [{', '.join(_fixed(values))}]"
    if fmt == 'high-res':
        header = (f"/* Fs(Hz)=   {to_fixed(sample_rate / 1000, 4)}K */\n"
                  "/* Coef Line Format= Index & Coef */\n")
        return header + '\n'.join(f"{i}, {to_fixed(c, 15)}" for i, c in enumerate(values))
    if fmt != 'text':
        log.warning("Unknown export format %r, using text", fmt)
    return '\n'.join(_fixed(values))


def default_extension(fmt: str) -> str:
    return _EXTENSIONS.get(fmt, '.txt')


def write_coefficients(path: Union[str, Path], content: str) -> Path:
    path = Path(path)
    try:
        path.write_text(content, encoding='utf-8')
    except OSError as e:
        raise FileAccessError(f"Cannot write {path}: {e}") from e
    log.info("Saved %s (%d bytes)", path, len(content))
    return path
