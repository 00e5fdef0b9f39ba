#!/usr/bin/env python3
"""
TRF -> FIR command line
=======================

CLI examples
------------
# Design the default 512-tap filter and write plain text coefficients:
trfir design speaker.trf

# Restrict to the speech band and export a high-resolution table at 96 kHz:
trfir design speaker.trf --range speech --rate 96000 --format high-res

# Custom band, MATLAB output, show the response plot:
trfir design speaker.trf --min-freq 40 --max-freq 8000 --format matlab --plot

# Statistics and quality assessment only:
trfir analyze speaker.trf

# List the frequency range presets:
trfir presets
"""

import argparse
import datetime
import logging
import sys
from pathlib import Path

from . import pipeline
from .errors import TRFError
from .exporter import EXPORT_FORMATS, DEFAULT_FORMAT, default_extension
from .frequency_range import PRESETS, preset_range
from .models import FilterDesignConfig, FrequencyRange
from .verification import summarize_response, plot_response


def _setup_logging(debug: bool, log_file: str = None) -> logging.Logger:
    log_handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_format = "%(asctime)s - %(levelname)s - %(message)s"
        if log_file == 'auto':
            timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = f"trfir_{timestamp}.log"
        log_handlers.append(logging.FileHandler(log_file, mode='w'))
    else:
        log_format = "%(levelname)s %(message)s"

    logging.basicConfig(
        handlers=log_handlers,
        level=logging.DEBUG if debug else logging.INFO,
        format=log_format,
        force=True,
    )
    log = logging.getLogger("trfir")
    if log_file:
        log.info("Logging to file: %s", log_file)
    return log


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="trfir",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Design FIR correction filters from TRF measurement files.",
    )
    p.add_argument("--debug", action="store_true",
                   help="Enable DEBUG-level logging for extra detail.")
    p.add_argument("--log-file", type=str,
                   help="Also write log output to this file ('auto' picks a timestamped name).")
    sub = p.add_subparsers(dest="command")

    # ─── design ───
    d = sub.add_parser("design", help="Design a filter and export its coefficients",
                       formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    d.add_argument("trf", type=Path, help="TRF measurement file (text or binary)")

    g = d.add_argument_group("Design")
    g.add_argument("--taps", type=int, default=512, help="Number of filter taps.")
    g.add_argument("--rate", type=float, default=48000, help="Sample rate (Hz).")
    g.add_argument("--method", default="least-squares",
                   help="Design method label recorded in the metadata.")

    g = d.add_argument_group("Frequency range")
    g.add_argument("--range", choices=sorted(PRESETS), dest="preset",
                   help="Restrict the measurement to a named band.")
    g.add_argument("--min-freq", type=float, help="Custom band lower edge (Hz).")
    g.add_argument("--max-freq", type=float, help="Custom band upper edge (Hz).")

    g = d.add_argument_group("Output")
    g.add_argument("--format", choices=EXPORT_FORMATS, default=DEFAULT_FORMAT,
                   help="Coefficient file encoding.")
    g.add_argument("--output", "-o", type=Path,
                   help="Output path. Defaults to <trf stem>_fir with a format extension.")
    g.add_argument("--plot", action="store_true",
                   help="Show the designed response over the measurement (requires a display).")

    # ─── analyze ───
    a = sub.add_parser("analyze", help="Show measurement statistics and quality assessment")
    a.add_argument("trf", type=Path, help="TRF measurement file (text or binary)")

    sub.add_parser("presets", help="List frequency range presets")
    return p


def _frequency_range(args) -> FrequencyRange:
    if args.preset:
        return preset_range(args.preset)
    if args.min_freq is not None or args.max_freq is not None:
        default = FrequencyRange()
        return FrequencyRange(
            enabled=True,
            min_freq=args.min_freq if args.min_freq is not None else default.min_freq,
            max_freq=args.max_freq if args.max_freq is not None else default.max_freq,
            preset=None,
        )
    return FrequencyRange()


def run_design(args, log: logging.Logger) -> int:
    measurements = pipeline.process_trf_file(args.trf)
    config = FilterDesignConfig(
        method=args.method,
        num_taps=args.taps,
        sample_rate=args.rate,
        frequency_range=_frequency_range(args),
    )
    result = pipeline.design_filter(measurements, config)

    summary = summarize_response(result.coefficients, config.sample_rate)
    log.info("DC gain %.3f dB, -3 dB at %.1f Hz, ripple %.4f dB, stopband %.1f dB",
             summary['dc_gain_db'], summary['f_3db'],
             summary['passband_ripple_db'], summary['stopband_atten_db'])

    output = args.output or args.trf.with_name(f"{args.trf.stem}_fir{default_extension(args.format)}")
    pipeline.export_filter(result.coefficients, args.format, output, config.sample_rate)

    if args.plot:
        plot_response(result.frequency_response, measurements.points,
                      title=f"{args.trf.name}: {result.num_taps} taps")
    return 0


def run_analyze(args, log: logging.Logger) -> int:
    m = pipeline.process_trf_file(args.trf)
    a = m.analysis

    print(f"\n{m.source_name}: {len(m)} points ({m.source_format})")
    print(f"  Frequency: {a.frequency_range.min:.1f} - {a.frequency_range.max:.1f} Hz "
          f"(span {a.frequency_range.span:.1f} Hz)")
    print(f"  Magnitude: {a.magnitude_range.min:.2f} to {a.magnitude_range.max:.2f} dB "
          f"(avg {a.magnitude_range.average:.2f})")
    print(f"  Phase:     {a.phase_range.min:.2f} to {a.phase_range.max:.2f} deg "
          f"(avg {a.phase_range.average:.2f})")
    if a.coherence_stats:
        c = a.coherence_stats
        print(f"  Coherence: {c.count} values, avg {c.average:.3f} "
              f"({c.min:.3f} - {c.max:.3f})")
    print(f"  Detected sample rate: {m.sample_rate} Hz")

    print(f"\nQuality: {m.quality.overall}")
    for w in m.quality.warnings:
        print(f"  ! {w}")
    for r in m.quality.recommendations:
        print(f"  - {r}")
    return 0


def run_presets(args, log: logging.Logger) -> int:
    for name, (lo, hi) in PRESETS.items():
        print(f"{name:15s} {lo:8.0f} - {hi:8.0f} Hz")
    return 0


COMMANDS = {
    "design": run_design,
    "analyze": run_analyze,
    "presets": run_presets,
}


def main(argv=None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    if not args.command:
        p.print_help()
        return 2

    log = _setup_logging(args.debug, args.log_file)
    try:
        return COMMANDS[args.command](args, log)
    except TRFError as e:
        log.error("%s: %s", e.kind or type(e).__name__, e)
        log.debug("Traceback:", exc_info=True)
        return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as e:
        logging.error("Fatal: %s", e)
        logging.debug("Traceback:", exc_info=True)
        sys.exit(1)
