#!/usr/bin/env python3
"""
Tests for TRF format detection and the text / binary parsers.
"""

import os
import struct
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from trfir.errors import UnparseableFormatError
from trfir.format_detect import detect_format, non_printable_ratio
from trfir.models import MeasurementPoint
from trfir.trf_parser import (
    TextTRFParser, BinaryTRFParser, parse_trf, apply_hearing_cutoff,
)


def binary_trf(records, offset=1000, tail=b"\xff" * 2000):
    """JACKREF file with ``records`` at ``offset``, padded with NaN bytes."""
    head = b"JACKREF\n" + b"\x00" * (offset - len(b"JACKREF\n"))
    body = b"".join(struct.pack("<4f", *r) for r in records)
    return head + body + tail


# ───────────────────────── detection ────────────────────────── #

def test_plain_text_is_text():
    assert detect_format(b"Frequency Magnitude Phase\n100 1 2\n") == 'text'


def test_magic_without_binary_payload_is_text():
    assert detect_format(b"JACKREF export\n100 -3 10\n200 -2 5\n") == 'text'


def test_binary_payload_without_magic_is_text():
    assert detect_format(b"\x00" * 5000) == 'text'


def test_magic_with_binary_payload_is_binary():
    assert detect_format(binary_trf([(1000.0, -3.0, 45.0, 0.8)])) == 'binary'


def test_empty_buffer_is_text():
    assert detect_format(b"") == 'text'


def test_ratio_only_looks_at_first_10000_bytes():
    buf = b"JACKREF" + b"a" * 9993 + b"\x00" * 50000
    assert non_printable_ratio(buf) == 0.0
    assert detect_format(buf) == 'text'


# ───────────────────────── text parser ────────────────────────── #

def test_header_and_rows_in_order():
    text = b"Frequency (Hz)\tMagnitude(dB)\tPhase(deg)\n100 -3.0 10\n1000 0.0 0\n10000 -6.0 -20\n"
    points = TextTRFParser().parse(text)

    assert [p.frequency for p in points] == [100.0, 1000.0, 10000.0]
    assert [p.magnitude for p in points] == [-3.0, 0.0, -6.0]
    assert [p.phase for p in points] == [10.0, 0.0, -20.0]
    assert all(p.coherence is None for p in points)


def test_bare_data_without_header():
    points = TextTRFParser().parse(b"\n\n20 1.5 3\n40 2.5 -3\n")
    assert points == [MeasurementPoint(20.0, 1.5, 3.0), MeasurementPoint(40.0, 2.5, -3.0)]


def test_input_order_is_not_sorted():
    points = TextTRFParser().parse(b"500 0 0\n100 0 0\n300 0 0\n")
    assert [p.frequency for p in points] == [500.0, 100.0, 300.0]


def test_title_lines_are_skipped():
    text = b"TTA DM3 10-9\n10 TTA 3\nFreq Mag Phase\n100 1 2\n"
    points = TextTRFParser().parse(text)
    assert [p.frequency for p in points] == [100.0]


def test_leading_text_before_data_is_ignored():
    text = b"Measured with instrument X\nrun 3\n100 1 2\n"
    assert len(TextTRFParser().parse(text)) == 1


def test_malformed_rows_are_dropped():
    text = (b"Frequency Magnitude Phase\n"
            b"100 1 2\n"
            b"200 1\n"          # too few columns
            b"abc 1 2\n"        # non-numeric frequency
            b"300 nan 2\n"      # NaN magnitude
            b"400 1 inf\n"      # infinite phase
            b"500 1 2 extra\n"  # extra column is fine
            b"600 -1e1 2.5e1\n")
    points = TextTRFParser().parse(text)
    assert [p.frequency for p in points] == [100.0, 500.0, 600.0]
    assert points[-1].magnitude == -10.0
    assert points[-1].phase == 25.0


def test_crlf_and_whitespace_runs():
    text = b"  Frequency   Magnitude  Phase \r\n 100\t\t-3   10 \r\n\r\n200 -4 12\r\n"
    points = TextTRFParser().parse(text)
    assert [(p.frequency, p.magnitude, p.phase) for p in points] == [(100, -3, 10), (200, -4, 12)]


def test_fields_split_on_unicode_spaces_only():
    text = "Freq Mag Phase\n100\u00a0-3\u200910\n\x1c200 -3 10\n300\x1f-3 10\n".encode('utf-8')
    points = TextTRFParser().parse(text)
    assert [(p.frequency, p.magnitude, p.phase) for p in points] == [(100, -3, 10)]


def test_coherence_column_when_declared():
    text = (b"Frequency Magnitude Phase Coherence\n"
            b"100 -3 10 0.9\n"
            b"200 -3 10 1.5\n"
            b"300 -3 10 x\n"
            b"400 -3 10\n"
            b"500 -3 10 0\n")
    points = TextTRFParser().parse(text)
    assert [p.coherence for p in points] == [0.9, None, None, None, 0.0]


def test_fourth_column_ignored_without_coherence_header():
    points = TextTRFParser().parse(b"Frequency Magnitude Phase\n100 -3 10 0.9\n")
    assert points[0].coherence is None


def test_parse_trf_text_dispatch():
    points, fmt = parse_trf(b"Freq Mag Phase\n100 1 2\n")
    assert fmt == 'text'
    assert len(points) == 1


def test_parse_trf_rejects_empty_result():
    with pytest.raises(UnparseableFormatError):
        parse_trf(b"nothing numeric here\njust words\n")


# ───────────────────────── binary parser ────────────────────────── #

def test_binary_single_record_with_coherence():
    points, fmt = parse_trf(binary_trf([(1000.0, -3.0, 45.0, 0.8)]))

    assert fmt == 'binary'
    assert len(points) == 1
    p = points[0]
    assert p.frequency == 1000.0
    assert p.magnitude == -3.0
    assert p.phase == 45.0
    assert p.coherence == pytest.approx(0.8)


def test_binary_records_are_range_checked():
    records = [
        (100.0, -1.0, 10.0, 0.5),
        (25000.0, 0.0, 0.0, 0.5),   # above 22 kHz
        (200.0, -250.0, 0.0, 0.5),  # magnitude out of range
        (300.0, 0.0, 190.0, 0.5),   # phase out of range
        (400.0, 1.0, 2.0, 1.5),     # kept, coherence dropped
        (22000.0, 0.0, -179.0, 0.0),
    ]
    points = BinaryTRFParser().parse(binary_trf(records))

    assert [p.frequency for p in points] == [100.0, 400.0, 22000.0]
    assert points[0].coherence == 0.5
    assert points[1].coherence is None
    assert points[2].coherence == 0.0


def test_binary_trailing_partial_record_is_ignored():
    buf = binary_trf([(1000.0, -3.0, 45.0, 0.8), (2000.0, -1.0, 5.0, 0.9)], tail=b"\x01" * 10)
    points = BinaryTRFParser().parse(buf)
    assert [p.frequency for p in points] == [1000.0, 2000.0]


def test_binary_offset_from_text_data_row():
    buf = b"JACKREF v1\nheader\n100 -3 45\n" + b"\x00" * 64
    offset, strategy = BinaryTRFParser().find_data_start(buf)
    assert strategy == 'text-row'
    assert offset == len("JACKREF v1") + 1 + len("header") + 1


def test_binary_offset_counts_utf16_units():
    # a 4-byte UTF-8 sequence is one code point but two UTF-16 units
    buf = b"JACKREF \xf0\x9f\x98\x80\nhdr\n100 -3 45\n" + b"\x00" * 64
    assert BinaryTRFParser().find_data_start(buf) == (15, 'text-row')


def test_binary_offset_ignores_rows_led_by_control_separators():
    # \x1c is not whitespace to the instrument software, so that row is skipped
    buf = b"JACKREF\nhdr\n\x1c100 -3 45\nxx\n200 -1 5\n" + b"\x00" * 64
    assert BinaryTRFParser().find_data_start(buf) == (26, 'text-row')


def test_binary_offset_trims_unicode_spaces():
    buf = "JACKREF\n\u00a0\u2003100\u00a0-3 45\n".encode('utf-8') + b"\x00" * 64
    assert BinaryTRFParser().find_data_start(buf) == (8, 'text-row')


def test_binary_offset_probe_order():
    buf = bytearray(b"JACKREF\n" + b"\xff" * 6000)
    struct.pack_into("<3f", buf, 2000, 500.0, 0.0, 0.0)
    struct.pack_into("<3f", buf, 5000, 600.0, 0.0, 0.0)
    offset, strategy = BinaryTRFParser().find_data_start(bytes(buf))
    assert (offset, strategy) == (2000, 'probe')


def test_binary_data_row_on_first_line_falls_back_to_probe():
    with pytest.raises(UnparseableFormatError):
        BinaryTRFParser().parse(b"100 -3 45\n" + b"\x00" * 100)


def test_binary_record_ending_at_eof_is_kept():
    buf = binary_trf([(1000.0, -3.0, 45.0, 0.8), (2000.0, -1.0, 5.0, 0.9)], tail=b"")
    assert len(buf) == 1000 + 2 * 16
    points = BinaryTRFParser().parse(buf)
    assert [p.frequency for p in points] == [1000.0, 2000.0]


def test_binary_without_data_section():
    with pytest.raises(UnparseableFormatError):
        BinaryTRFParser().parse(b"JACKREF\n" + b"\xff" * 12000)


# ───────────────────────── cutoff ────────────────────────── #

def test_hearing_cutoff():
    points = [MeasurementPoint(f, 0.0, 0.0) for f in (0.0, 100.0, 22000.0, 22000.5, 30000.0)]
    assert [p.frequency for p in apply_hearing_cutoff(points)] == [0.0, 100.0, 22000.0]
