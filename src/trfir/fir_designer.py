#!/usr/bin/env python3
"""
FIR Designer - Windowed Sinc
============================

Turns a measurement set into FIR coefficients:

1. optional frequency-range restriction
2. measurement -> normalized frequency response (freq / Nyquist, linear
   amplitude, phase in radians)
3. ideal lowpass sinc at a fixed normalized cutoff of 0.1, centred on
   ``num_taps // 2``
4. Hamming window
5. response of the designed taps (see ``verification``)

NOTE: the synthesis does not consume the normalized measurement response, and
``method``, ``filter_type``, ``cutoff_frequency`` and ``window_type`` are only
echoed in the metadata.  A mismatch is logged as a warning instead of being
silently honoured.
"""

import logging
import time
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np

from .frequency_range import apply_frequency_range
from .models import (
    FilterDesignConfig, FilterDesignResult, MeasurementPoint, MeasurementSet,
)
from .verification import compute_frequency_response


DESIGN_CUTOFF = 0.1  # normalized
DESIGN_FILTER_TYPE = 'lowpass'
DESIGN_WINDOW = 'hamming'
DESIGN_METHOD = 'window'


def hamming_window(M: int) -> np.ndarray:
    """
    M-point symmetric Hamming window: 0.54 - 0.46*cos(2πn/(M-1)).

    A single-point window is 1.0.
    """
    if M == 1:
        return np.ones(1)
    n = np.arange(M, dtype=np.float64)
    return 0.54 - 0.46 * np.cos(2 * np.pi * n / (M - 1))


def windowed_sinc(num_taps: int, cutoff: float = DESIGN_CUTOFF) -> np.ndarray:
    """
    Hamming-windowed ideal lowpass.

    Tap ``i`` sits at ``n = i - num_taps // 2``; the centre tap is ``2*cutoff``,
    the others ``sin(2π·cutoff·n) / (π·n)``.
    """
    n = np.arange(num_taps, dtype=np.float64) - num_taps // 2
    # np.sinc is sin(πx)/(πx) with the x=0 limit handled, so
    # 2c·sinc(2c·n) == sin(2πcn)/(πn) and 2c at n == 0
    taps = 2 * cutoff * np.sinc(2 * cutoff * n)
    return taps * hamming_window(num_taps)


def normalize_measurements(points: Sequence[MeasurementPoint],
                           sample_rate: float) -> Dict[str, np.ndarray]:
    """Measurement points as normalized frequency, linear amplitude and radians."""
    nyquist = sample_rate / 2
    freq = np.array([p.frequency for p in points], dtype=np.float64)
    mag = np.array([p.magnitude for p in points], dtype=np.float64)
    phase = np.array([p.phase for p in points], dtype=np.float64)
    return {
        'freq': freq / nyquist,
        'amp': 10 ** (mag / 20),
        'phase': phase * (np.pi / 180),
    }


class FIRDesigner:
    """
    Design FIR coefficients from TRF measurement data.

    Parameters
    ----------
    config : FilterDesignConfig
        Effective configuration for this request.
    log : logging.Logger, optional
        Logger; defaults to this module's logger.
    """

    def __init__(self, config: Optional[FilterDesignConfig] = None,
                 log: Optional[logging.Logger] = None):
        self.config = config or FilterDesignConfig()
        self.log = log or logging.getLogger(__name__)

    def design(self, measurements: Union[MeasurementSet, Sequence[MeasurementPoint]]) -> FilterDesignResult:
        """
        Run the full design for ``measurements``.

        Raises
        ------
        FrequencyRangeEmptyError
            The enabled frequency range keeps no points.
        """
        cfg = self.config
        points = list(measurements)
        t0 = time.perf_counter()

        processed = points
        if cfg.frequency_range.enabled:
            processed = apply_frequency_range(points, cfg.frequency_range)
            self.log.info("Applied frequency range filter: %g-%g Hz",
                          cfg.frequency_range.min_freq, cfg.frequency_range.max_freq)
            self.log.info("Data points: %d → %d", len(points), len(processed))

        response = normalize_measurements(processed, cfg.sample_rate)
        self.log.debug("Normalized %d measurement points (Nyquist %.1f Hz)",
                       response['freq'].size, cfg.nyquist)

        self._flag_unused_settings()
        coefficients = self.synthesize()
        filter_response = compute_frequency_response(coefficients, cfg.sample_rate)

        self.log.info("Designed %d taps at %g Hz in %.3f seconds",
                      coefficients.size, cfg.sample_rate, time.perf_counter() - t0)

        metadata = {
            'num_taps': int(coefficients.size),
            'sample_rate': cfg.sample_rate,
            'method': cfg.method,
            'filter_type': cfg.filter_type,
            'cutoff_frequency': cfg.cutoff_frequency,
            'window_type': cfg.window_type,
            'passband_ripple': cfg.passband_ripple,
            'stopband_attenuation': cfg.stopband_attenuation,
            'frequency_range': cfg.frequency_range.to_dict(),
            'original_data_points': len(points),
            'filtered_data_points': len(processed),
        }
        return FilterDesignResult(
            coefficients=tuple(float(c) for c in coefficients),
            frequency_response=filter_response,
            metadata=metadata,
        )

    def synthesize(self) -> np.ndarray:
        """Coefficients for the configured tap count."""
        return windowed_sinc(self.config.num_taps, DESIGN_CUTOFF)

    def _flag_unused_settings(self) -> None:
        cfg = self.config
        ignored: Tuple[Tuple[str, object, object], ...] = (
            ('method', cfg.method, DESIGN_METHOD),
            ('filter_type', cfg.filter_type, DESIGN_FILTER_TYPE),
            ('cutoff_frequency', cfg.cutoff_frequency, DESIGN_CUTOFF),
            ('window_type', cfg.window_type, DESIGN_WINDOW),
        )
        for name, requested, used in ignored:
            if requested != used:
                self.log.warning("%s=%r is not honoured; designing %s-windowed %s "
                                 "at cutoff %.2f (%s=%r)", name, requested, DESIGN_WINDOW,
                                 DESIGN_FILTER_TYPE, DESIGN_CUTOFF, name, used)


def design_filter(measurements: Union[MeasurementSet, Sequence[MeasurementPoint]],
                  config: Optional[FilterDesignConfig] = None,
                  log: Optional[logging.Logger] = None) -> FilterDesignResult:
    """Design-request entry point: measurements + config -> FilterDesignResult."""
    return FIRDesigner(config, log).design(measurements)
