#!/usr/bin/env python3
"""
Tests for measurement statistics and the quality assessment rules.
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from trfir.models import MeasurementPoint
from trfir.quality import analyze_measurements, assess_quality


def well_spread(coherence=0.9, n=200, top=20000.0):
    """Log-spaced points covering 20 Hz .. ``top`` at 0 dB."""
    freqs = np.geomspace(20.0, top, n)
    freqs[-1] = top
    return [MeasurementPoint(float(f), 0.0, 0.0, coherence) for f in freqs]


def narrow(mags):
    """Points bunched around 1 kHz with the given magnitudes."""
    return [MeasurementPoint(1000.0 + i, m, 0.0) for i, m in enumerate(mags)]


def test_statistics():
    points = [
        MeasurementPoint(100.0, -6.0, 10.0, 0.5),
        MeasurementPoint(200.0, 0.0, -20.0),
        MeasurementPoint(400.0, 3.0, 40.0, 1.0),
    ]
    a = analyze_measurements(points)

    assert a.point_count == 3
    assert (a.frequency_range.min, a.frequency_range.max) == (100.0, 400.0)
    assert a.frequency_range.span == 300.0
    assert a.magnitude_range.average == pytest.approx(-1.0)
    assert a.phase_range.average == pytest.approx(10.0)
    assert a.has_coherence
    assert a.coherence_stats.count == 2
    assert a.coherence_stats.average == pytest.approx(0.75)
    assert (a.coherence_stats.min, a.coherence_stats.max) == (0.5, 1.0)


def test_statistics_without_coherence():
    a = analyze_measurements(narrow([0.0, 1.0]))
    assert not a.has_coherence
    assert a.coherence_stats is None


def test_statistics_of_nothing():
    assert analyze_measurements([]) is None


def test_clean_measurement_is_good():
    q = assess_quality(well_spread())
    assert q.overall == 'good'
    assert q.issues == ()
    assert q.warnings == ()
    assert q.recommendations == ()


def test_cut_at_hearing_limit():
    q = assess_quality(well_spread(top=22000.0))
    assert any('cut at 22kHz' in w for w in q.warnings)
    assert any('beyond 22kHz' in r for r in q.recommendations)
    assert q.overall == 'good'


def test_low_coherence():
    q = assess_quality(well_spread(coherence=0.05))
    assert q.warnings == ("Low average coherence (< 0.1) - measurement may be noisy",)
    assert q.recommendations == ("Consider averaging multiple measurements",)


def test_moderate_coherence():
    q = assess_quality(well_spread(coherence=0.3))
    assert q.warnings == ("Moderate coherence - some measurement noise detected",)
    assert q.recommendations == ()


def test_narrow_band_is_fair():
    q = assess_quality(narrow([0.0] * 10))
    assert q.warnings == (
        "Limited low frequency data (< 200 Hz)",
        "Limited high frequency data (2k-20k Hz)",
    )
    assert q.overall == 'fair'
    assert q.recommendations == (
        "Consider using more frequency points for better resolution",
        "Limited frequency span - consider wider measurement range",
    )


def test_extreme_magnitudes_make_it_poor():
    q = assess_quality(narrow([-120.0, 30.0, -150.0, 0.0]))
    assert q.warnings[0] == "2 points with very low magnitude (< -100 dB)"
    assert q.warnings[1] == "1 points with very high magnitude (> 20 dB)"
    assert len(q.warnings) == 4
    assert q.overall == 'poor'


def test_single_warning_is_still_good():
    points = well_spread()
    points[0] = MeasurementPoint(points[0].frequency, 25.0, 0.0, 0.9)
    q = assess_quality(points)
    assert len(q.warnings) == 1
    assert q.overall == 'good'


def test_assessment_dict():
    d = assess_quality(narrow([0.0])).to_dict()
    assert set(d) == {'overall', 'issues', 'warnings', 'recommendations'}
    assert d['issues'] == []
