"""
Frequency band restriction with named presets.
"""

from typing import Dict, List, Sequence, Tuple

from .errors import FrequencyRangeEmptyError, InvalidConfigError
from .models import MeasurementPoint, FrequencyRange


DEFAULT_PRESET = 'human-hearing'

# name -> (min Hz, max Hz)
PRESETS: Dict[str, Tuple[float, float]] = {
    'human-hearing': (20.0, 22000.0),
    'full-spectrum': (0.0, 22000.0),
    'speech': (300.0, 3400.0),
    'music': (20.0, 20000.0),
    'sub-bass': (20.0, 60.0),
    'bass': (60.0, 250.0),
    'low-mid': (250.0, 500.0),
    'mid': (500.0, 2000.0),
    'high-mid': (2000.0, 4000.0),
    'presence': (4000.0, 6000.0),
    'brilliance': (6000.0, 20000.0),
}


def preset_range(name: str) -> FrequencyRange:
    """Enabled FrequencyRange for preset ``name``."""
    try:
        lo, hi = PRESETS[name]
    except KeyError:
        raise InvalidConfigError(
            f"Unknown frequency range preset {name!r}; choose from {', '.join(PRESETS)}") from None
    return FrequencyRange(enabled=True, min_freq=lo, max_freq=hi, preset=name)


def apply_frequency_range(points: Sequence[MeasurementPoint],
                          frequency_range: FrequencyRange) -> List[MeasurementPoint]:
    """
    Keep points with ``min <= frequency <= max``, sorted by frequency.

    Raises FrequencyRangeEmptyError if nothing is left.
    """
    lo, hi = frequency_range.min_freq, frequency_range.max_freq
    kept = [p for p in points if lo <= p.frequency <= hi]
    if not kept:
        raise FrequencyRangeEmptyError(f"No data points found in frequency range {lo:g}-{hi:g} Hz")
    kept.sort(key=lambda p: p.frequency)
    return kept
