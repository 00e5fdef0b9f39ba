"""
Measurement statistics and a rule-based quality assessment.

The assessment is informational only; it never blocks a design request.
"""

from typing import Optional, Sequence

import numpy as np

from .models import (
    MeasurementPoint, MeasurementAnalysis, QualityAssessment,
    ValueRange, CoherenceStats, HEARING_LIMIT_HZ,
)


LOW_MAGNITUDE_DB = -100.0
HIGH_MAGNITUDE_DB = 20.0
NOISY_COHERENCE = 0.1
MODERATE_COHERENCE = 0.5
MIN_BAND_FRACTION = 0.1
LOW_BAND = (20.0, 200.0)
HIGH_BAND = (2000.0, 20000.0)
MIN_POINTS = 100
MIN_SPAN_HZ = 1000.0


def _range(values: np.ndarray) -> ValueRange:
    return ValueRange(float(values.min()), float(values.max()), float(values.mean()))


def analyze_measurements(points: Sequence[MeasurementPoint]) -> Optional[MeasurementAnalysis]:
    """Aggregate statistics, or None for an empty sequence."""
    if not points:
        return None

    freqs = np.array([p.frequency for p in points], dtype=np.float64)
    mags = np.array([p.magnitude for p in points], dtype=np.float64)
    phases = np.array([p.phase for p in points], dtype=np.float64)
    cohs = np.array([p.coherence for p in points if p.coherence is not None], dtype=np.float64)

    coherence_stats = None
    if cohs.size:
        coherence_stats = CoherenceStats(
            count=int(cohs.size),
            average=float(cohs.mean()),
            min=float(cohs.min()),
            max=float(cohs.max()),
        )

    return MeasurementAnalysis(
        point_count=len(points),
        frequency_range=_range(freqs),
        magnitude_range=_range(mags),
        phase_range=_range(phases),
        has_coherence=coherence_stats is not None,
        coherence_stats=coherence_stats,
    )


def _band_fraction(freqs: np.ndarray, band) -> float:
    lo, hi = band
    return np.count_nonzero((freqs >= lo) & (freqs < hi)) / freqs.size


def assess_quality(points: Sequence[MeasurementPoint],
                   analysis: Optional[MeasurementAnalysis] = None) -> QualityAssessment:
    """
    Score a measurement set.

    Rules run in a fixed order; the overall rating depends only on the
    number of warnings (> 3 poor, > 1 fair, otherwise good).
    """
    if analysis is None:
        analysis = analyze_measurements(points)
    if analysis is None:
        return QualityAssessment()

    warnings = []
    recommendations = []

    mags = np.array([p.magnitude for p in points], dtype=np.float64)
    freqs = np.array([p.frequency for p in points], dtype=np.float64)

    very_low = int(np.count_nonzero(mags < LOW_MAGNITUDE_DB))
    very_high = int(np.count_nonzero(mags > HIGH_MAGNITUDE_DB))
    if very_low:
        warnings.append(f"{very_low} points with very low magnitude (< -100 dB)")
    if very_high:
        warnings.append(f"{very_high} points with very high magnitude (> 20 dB)")

    if analysis.has_coherence and analysis.coherence_stats:
        avg = analysis.coherence_stats.average
        if avg < NOISY_COHERENCE:
            warnings.append("Low average coherence (< 0.1) - measurement may be noisy")
            recommendations.append("Consider averaging multiple measurements")
        elif avg < MODERATE_COHERENCE:
            warnings.append("Moderate coherence - some measurement noise detected")

    if _band_fraction(freqs, LOW_BAND) < MIN_BAND_FRACTION:
        warnings.append("Limited low frequency data (< 200 Hz)")
    if _band_fraction(freqs, HIGH_BAND) < MIN_BAND_FRACTION:
        warnings.append("Limited high frequency data (2k-20k Hz)")

    if analysis.frequency_range.max == HEARING_LIMIT_HZ:
        warnings.append("Data automatically cut at 22kHz (human hearing limit)")
        recommendations.append("Original data may have extended beyond 22kHz")

    if len(points) < MIN_POINTS:
        recommendations.append("Consider using more frequency points for better resolution")
    if analysis.frequency_range.span < MIN_SPAN_HZ:
        recommendations.append("Limited frequency span - consider wider measurement range")

    if len(warnings) > 3:
        overall = 'poor'
    elif len(warnings) > 1:
        overall = 'fair'
    else:
        overall = 'good'

    return QualityAssessment(
        overall=overall,
        issues=(),
        warnings=tuple(warnings),
        recommendations=tuple(recommendations),
    )
