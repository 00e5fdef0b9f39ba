"""
Value objects shared by every pipeline stage.

All of them are frozen: a stage that needs to change a measurement set or a
configuration builds a new one with ``dataclasses.replace``.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field, asdict, replace
from typing import Optional, Tuple, Dict, Any, List, Sequence

from .errors import InvalidConfigError


HEARING_LIMIT_HZ = 22000.0
DEFAULT_SAMPLE_RATE = 48000


# ───────────────────────── Measurements ────────────────────────── #

@dataclass(frozen=True)
class MeasurementPoint:
    """One frequency-domain sample of a TRF measurement."""
    frequency: float  # Hz
    magnitude: float  # dB
    phase: float  # degrees
    coherence: Optional[float] = None  # 0..1

    def to_dict(self) -> Dict[str, float]:
        d = {'frequency': self.frequency, 'magnitude': self.magnitude, 'phase': self.phase}
        if self.coherence is not None:
            d['coherence'] = self.coherence
        return d


@dataclass(frozen=True)
class ValueRange:
    min: float
    max: float
    average: Optional[float] = None

    @property
    def span(self) -> float:
        return self.max - self.min


@dataclass(frozen=True)
class CoherenceStats:
    count: int
    average: float
    min: float
    max: float


@dataclass(frozen=True)
class MeasurementAnalysis:
    """Aggregate statistics over a measurement set."""
    point_count: int
    frequency_range: ValueRange
    magnitude_range: ValueRange
    phase_range: ValueRange
    has_coherence: bool
    coherence_stats: Optional[CoherenceStats] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['frequency_range']['span'] = self.frequency_range.span
        return d


@dataclass(frozen=True)
class QualityAssessment:
    overall: str = 'good'  # 'good', 'fair' or 'poor'
    issues: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall': self.overall,
            'issues': list(self.issues),
            'warnings': list(self.warnings),
            'recommendations': list(self.recommendations),
        }


def detect_sample_rate(points: Sequence[MeasurementPoint]) -> int:
    """
    48 kHz for anything within the hearing limit, otherwise a Nyquist rate
    with a 10 % margin.
    """
    if not points:
        return DEFAULT_SAMPLE_RATE
    max_freq = max(p.frequency for p in points)
    if max_freq <= HEARING_LIMIT_HZ:
        return DEFAULT_SAMPLE_RATE
    return int(math.ceil(max_freq * 2 * 1.1))


@dataclass(frozen=True)
class MeasurementSet:
    """
    Ordered measurement points plus derived metadata.

    Ranges are derived from ``points`` on access, so a set produced by
    ``with_points`` always reports ranges for its own points.
    """
    points: Tuple[MeasurementPoint, ...]
    source_format: str  # 'text' or 'binary'
    sample_rate: int = DEFAULT_SAMPLE_RATE
    source_name: Optional[str] = None
    analysis: Optional[MeasurementAnalysis] = None
    quality: Optional[QualityAssessment] = None

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def with_points(self, points: Sequence[MeasurementPoint]) -> 'MeasurementSet':
        """Return a copy holding ``points``; stale analysis is dropped."""
        return replace(self, points=tuple(points), analysis=None, quality=None)

    @property
    def frequency_range(self) -> Optional[ValueRange]:
        return _value_range([p.frequency for p in self.points])

    @property
    def magnitude_range(self) -> Optional[ValueRange]:
        return _value_range([p.magnitude for p in self.points])

    @property
    def phase_range(self) -> Optional[ValueRange]:
        return _value_range([p.phase for p in self.points])

    @property
    def has_coherence(self) -> bool:
        return any(p.coherence is not None for p in self.points)

    def to_dict(self) -> Dict[str, Any]:
        freq = self.frequency_range
        return {
            'file_name': self.source_name,
            'source_format': self.source_format,
            'data_points': [p.to_dict() for p in self.points],
            'sample_rate': self.sample_rate,
            'point_count': len(self.points),
            'frequency_range': {'min': freq.min, 'max': freq.max} if freq else None,
            'analysis': self.analysis.to_dict() if self.analysis else None,
            'quality': self.quality.to_dict() if self.quality else None,
        }


def _value_range(values: List[float]) -> Optional[ValueRange]:
    if not values:
        return None
    return ValueRange(min(values), max(values), sum(values) / len(values))


# ───────────────────────── Design configuration ────────────────────────── #

@dataclass(frozen=True)
class FrequencyRange:
    """Optional sub-band restriction applied before design."""
    enabled: bool = False
    min_freq: float = 20.0
    max_freq: float = HEARING_LIMIT_HZ
    preset: Optional[str] = 'human-hearing'

    def __post_init__(self):
        if not (math.isfinite(self.min_freq) and math.isfinite(self.max_freq)):
            raise InvalidConfigError("Frequency range bounds must be finite")
        if self.min_freq < 0:
            raise InvalidConfigError(f"Frequency range minimum must be >= 0, got {self.min_freq}")
        if self.min_freq > self.max_freq:
            raise InvalidConfigError(
                f"Frequency range minimum {self.min_freq} exceeds maximum {self.max_freq}")

    def to_dict(self) -> Dict[str, Any]:
        return {'enabled': self.enabled, 'min': self.min_freq,
                'max': self.max_freq, 'preset': self.preset}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'FrequencyRange':
        defaults = cls()
        return cls(
            enabled=bool(d.get('enabled', defaults.enabled)),
            min_freq=float(d.get('min', d.get('min_freq', defaults.min_freq))),
            max_freq=float(d.get('max', d.get('max_freq', defaults.max_freq))),
            preset=d.get('preset', defaults.preset),
        )


# host (camelCase) key -> field name
_CONFIG_ALIASES = {
    'numTaps': 'num_taps',
    'sampleRate': 'sample_rate',
    'filterType': 'filter_type',
    'cutoffFrequency': 'cutoff_frequency',
    'windowType': 'window_type',
    'passbandRipple': 'passband_ripple',
    'stopbandAttenuation': 'stopband_attenuation',
    'frequencyRange': 'frequency_range',
}


@dataclass(frozen=True)
class FilterDesignConfig:
    """Complete description of one design request."""
    method: str = 'least-squares'  # name only, see fir_designer
    num_taps: int = 512
    sample_rate: float = DEFAULT_SAMPLE_RATE
    filter_type: str = 'lowpass'
    cutoff_frequency: float = 0.1  # normalized
    window_type: str = 'hamming'
    passband_ripple: float = 0.1  # dB
    stopband_attenuation: float = 80.0  # dB
    frequency_range: FrequencyRange = field(default_factory=FrequencyRange)

    def __post_init__(self):
        if isinstance(self.num_taps, bool) or not isinstance(self.num_taps, int):
            raise InvalidConfigError(f"num_taps must be an integer, got {self.num_taps!r}")
        if self.num_taps <= 0:
            raise InvalidConfigError(f"num_taps must be positive, got {self.num_taps}")
        if not isinstance(self.sample_rate, (int, float)) or isinstance(self.sample_rate, bool):
            raise InvalidConfigError(f"sample_rate must be a number, got {self.sample_rate!r}")
        if not math.isfinite(self.sample_rate) or self.sample_rate <= 0:
            raise InvalidConfigError(f"sample_rate must be positive, got {self.sample_rate}")
        if not isinstance(self.frequency_range, FrequencyRange):
            raise InvalidConfigError("frequency_range must be a FrequencyRange")

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['frequency_range'] = self.frequency_range.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'FilterDesignConfig':
        """Build from snake_case or camelCase keys; unknown keys are ignored."""
        known = {f for f in cls.__dataclass_fields__}
        kwargs = {}
        for key, value in d.items():
            name = _CONFIG_ALIASES.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        fr = kwargs.get('frequency_range')
        if isinstance(fr, dict):
            kwargs['frequency_range'] = FrequencyRange.from_dict(fr)
        if 'num_taps' in kwargs and isinstance(kwargs['num_taps'], float) \
                and kwargs['num_taps'].is_integer():
            kwargs['num_taps'] = int(kwargs['num_taps'])
        return cls(**kwargs)


@dataclass(frozen=True)
class ResponsePoint:
    frequency: float  # Hz
    magnitude: float  # dB
    phase: float  # degrees


@dataclass(frozen=True)
class FilterDesignResult:
    coefficients: Tuple[float, ...]
    frequency_response: Tuple[ResponsePoint, ...]
    metadata: Dict[str, Any]

    @property
    def num_taps(self) -> int:
        return len(self.coefficients)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'coefficients': list(self.coefficients),
            'frequency_response': [asdict(p) for p in self.frequency_response],
            'metadata': dict(self.metadata),
        }
