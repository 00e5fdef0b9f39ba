#!/usr/bin/env python3
"""
Verification tools for designed filter coefficients.
"""

from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
from scipy import signal
import matplotlib.pyplot as plt

from .models import MeasurementPoint, ResponsePoint


RESPONSE_POINTS = 1024
# taps per block; bounds the working matrices to RESPONSE_POINTS x TAP_BLOCK
TAP_BLOCK = 256


def compute_frequency_response(
    coefficients: Sequence[float],
    sample_rate: float,
    num_points: int = RESPONSE_POINTS
) -> Tuple[ResponsePoint, ...]:
    """
    Evaluate the response of ``coefficients`` by direct DTFT.

    Sample ``i`` sits at ``i / num_points * nyquist`` and uses the
    normalized frequency ``f / nyquist`` in the kernel
    ``exp(-j·2π·f_norm·k)``.  Cost is O(taps × num_points) time; taps are
    accumulated in blocks of ``TAP_BLOCK`` so memory does not grow with
    the filter length.

    Returns
    -------
    tuple of ResponsePoint
        Magnitude in dB (``-inf`` for an exact zero), phase in degrees.
    """
    coefs = np.asarray(coefficients, dtype=np.float64)
    nyquist = sample_rate / 2

    freqs = np.arange(num_points, dtype=np.float64) / num_points * nyquist
    f_norm = freqs / nyquist
    real = np.zeros(num_points)
    imag = np.zeros(num_points)
    for start in range(0, coefs.size, TAP_BLOCK):
        block = coefs[start:start + TAP_BLOCK]
        angle = -2 * np.pi * np.outer(f_norm, np.arange(start, start + block.size))
        real += np.cos(angle) @ block
        imag += np.sin(angle) @ block

    with np.errstate(divide='ignore'):
        mag_db = 20 * np.log10(np.sqrt(real * real + imag * imag))
    phase_deg = np.degrees(np.arctan2(imag, real))

    return tuple(
        ResponsePoint(float(f), float(m), float(p))
        for f, m, p in zip(freqs, mag_db, phase_deg)
    )


def summarize_response(
    coefficients: Sequence[float],
    sample_rate: float = 48000,
    worN: int = 8192
) -> Dict[str, Any]:
    """
    Headline figures for a designed filter.

    Parameters
    ----------
    coefficients : sequence of float
        Filter coefficients
    sample_rate : float
        Sample rate in Hz
    worN : int
        Number of evaluation frequencies

    Returns
    -------
    dict
        ``dc_gain_db``, ``f_3db``, ``passband_ripple_db``,
        ``stopband_atten_db`` and ``group_delay_var`` (samples).
    """
    b = np.asarray(coefficients, dtype=np.float64)
    w, h = signal.freqz(b, worN=worN)
    freq = w * sample_rate / (2 * np.pi)
    mag_db = 20 * np.log10(np.abs(h) + 1e-300)

    # -3 dB point relative to the DC gain
    ref = mag_db[0]
    idx_3db = int(np.argmin(np.abs(mag_db - (ref - 3))))

    # passband up to 90% of the -3 dB point, stopband from 110%
    passband_end = int(0.9 * idx_3db)
    passband = mag_db[:passband_end]
    ripple_db = float(np.ptp(passband)) if passband.size else 0.0

    stopband_start = int(1.1 * idx_3db)
    stopband = mag_db[stopband_start:]
    stopband_peak_db = float(np.max(stopband)) if stopband.size else -np.inf

    gd_variation = 0.0
    if passband_end > 0:
        _, gd = signal.group_delay((b, 1), w=w[:passband_end])
        gd_variation = float(np.ptp(gd))

    return {
        'dc_gain_db': float(ref),
        'f_3db': float(freq[idx_3db]),
        'passband_ripple_db': ripple_db,
        'stopband_atten_db': ref - stopband_peak_db,
        'group_delay_var': gd_variation,
    }


def plot_response(
    response: Sequence[ResponsePoint],
    measurements: Optional[Sequence[MeasurementPoint]] = None,
    title: str = 'FIR Filter Response',
    show: bool = True
):
    """Plot the designed response, with the measurement overlaid when given."""
    freq = np.array([p.frequency for p in response])
    mag = np.array([p.magnitude for p in response])
    phase = np.array([p.phase for p in response])

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 8))

    ax1.plot(freq, mag, label='Designed filter')
    if measurements:
        ax1.plot([p.frequency for p in measurements],
                 [p.magnitude for p in measurements],
                 label='Measurement', alpha=0.7)
    ax1.set_xlabel('Frequency (Hz)')
    ax1.set_ylabel('Magnitude (dB)')
    ax1.set_title(title)
    ax1.grid(True, alpha=0.3)
    ax1.legend()

    ax2.plot(freq, phase)
    ax2.set_xlabel('Frequency (Hz)')
    ax2.set_ylabel('Phase (degrees)')
    ax2.set_title('Phase Response')
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    if show:
        plt.show()
    return fig
