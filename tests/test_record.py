"""Test SensorLog record splitting, orientation parsing and line framing.

Run from the repo root:
    python3 tests/test_record.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

import math

import numpy as np

from sensorlog.record import (
    FIELD_COUNT, DecodeResult, LineDecoder, OrientationSample, RecordDecoder,
    RecordError, decode_line, format_record, parse_orientation, split_record,
)


def make_line(x, y, z, fill="0"):
    """24-field line with x, y, z at fields 3..5."""
    fields = ["a", "b", "c", str(x), str(y), str(z)]
    fields += [fill] * (FIELD_COUNT - len(fields))
    return ",".join(fields)


def test_quarter_turn():
    """a,b,c,1.5707963,0,0,... decodes to (90, 0, 0) degrees."""
    print("test_quarter_turn...", end="")

    result = decode_line(make_line(1.5707963, 0, 0))
    assert result.fields_in_record == 24
    assert result.error is None
    assert result.sample is not None
    np.testing.assert_allclose(result.sample.as_array(), [90.0, 0.0, 0.0],
                               atol=1e-5)

    print(" OK")


def test_two_fields_skipped():
    """A short line produces no sample, no error and reports its field count."""
    print("test_two_fields_skipped...", end="")

    result = decode_line("x,y")
    assert result.sample is None
    assert result.error is None
    assert result.fields_in_record == 2
    assert result.line == "x,y"

    print(" OK")


def test_wrong_field_counts_never_sample():
    print("test_wrong_field_counts_never_sample...", end="")

    for n in (1, 2, 6, 23, 25, 48):
        line = ",".join(["0.5"] * n)
        result = decode_line(line)
        assert result.fields_in_record == n
        assert result.sample is None, n
        assert result.error is None, n

    # empty read
    result = decode_line("")
    assert result.fields_in_record == 1
    assert result.sample is None

    print(" OK")


def test_header_line_skipped():
    print("test_header_line_skipped...", end="")

    header = "loggingTime,loggingSample,identifierForVendor,deviceID"
    result = decode_line(header)
    assert result.sample is None
    assert result.fields_in_record == 4

    print(" OK")


def test_unparsable_orientation():
    """Right field count, bad number: logged, no sample, error recorded."""
    print("test_unparsable_orientation...", end="")

    result = decode_line(make_line("nope", 0, 0))
    assert result.fields_in_record == 24
    assert result.sample is None
    assert result.error is not None

    try:
        parse_orientation(split_record(make_line(0, "", 0)))
    except RecordError:
        pass
    else:
        raise AssertionError("expected RecordError")

    print(" OK")


def test_parse_orientation_rejects_field_count():
    print("test_parse_orientation_rejects_field_count...", end="")

    try:
        parse_orientation(["1", "2", "3"])
    except RecordError as e:
        assert "24" in str(e)
    else:
        raise AssertionError("expected RecordError")

    # RecordError is a ValueError
    assert issubclass(RecordError, ValueError)

    print(" OK")


def test_degrees_componentwise():
    print("test_degrees_componentwise...", end="")

    x, y, z = -0.25, 1.0, math.pi
    sample = parse_orientation(split_record(make_line(x, y, z)))
    k = 180.0 / math.pi
    assert abs(sample.x - x * k) < 1e-9
    assert abs(sample.y - y * k) < 1e-9
    assert abs(sample.z - z * k) < 1e-9

    print(" OK")


def test_format_record_round_trip():
    """A radian triple written with format_record decodes back in degrees."""
    print("test_format_record_round_trip...", end="")

    radians = (0.1, -1.2, 2.5)
    line = format_record(radians, timestamp=1234.5)
    assert len(split_record(line)) == FIELD_COUNT
    assert split_record(line)[0] == "1234.5"

    sample = decode_line(line).sample
    assert sample is not None
    np.testing.assert_allclose(sample.as_array(), np.degrees(radians))
    np.testing.assert_allclose(sample.radians(), radians)

    print(" OK")


def test_record_decoder_bytes():
    """Trailing newline and stray bytes do not break decoding."""
    print("test_record_decoder_bytes...", end="")

    decoder = RecordDecoder()
    data = (format_record((0.0, 0.5, 0.0)) + "\n").encode("ascii")
    result = decoder.decode(data)
    assert result.sample is not None
    assert abs(result.sample.y - math.degrees(0.5)) < 1e-9

    # non-ascii noise is replaced, not raised
    result = decoder.decode(b"\xff\xfe,garbage")
    assert result.sample is None
    assert result.fields_in_record == 2

    print(" OK")


def test_two_records_in_one_read_dropped():
    """Single-read framing drops a read that holds two records."""
    print("test_two_records_in_one_read_dropped...", end="")

    line = format_record((0.1, 0.2, 0.3))
    result = RecordDecoder().decode(f"{line}\n{line}\n".encode("ascii"))
    assert result.fields_in_record == 2 * FIELD_COUNT - 1
    assert result.sample is None

    print(" OK")


def test_line_decoder_split_reads():
    """A record split across two reads is reassembled."""
    print("test_line_decoder_split_reads...", end="")

    line = (format_record((0.3, 0.0, -0.3)) + "\r\n").encode("ascii")
    decoder = LineDecoder()
    assert decoder.feed(line[:17]) == []
    results = decoder.feed(line[17:])
    assert len(results) == 1
    assert isinstance(results[0], DecodeResult)
    np.testing.assert_allclose(results[0].sample.as_array(),
                               np.degrees([0.3, 0.0, -0.3]))

    print(" OK")


def test_line_decoder_multiple_lines():
    print("test_line_decoder_multiple_lines...", end="")

    header = b"time,sample,x\n"
    body = b"".join(
        (format_record((0.1 * i, 0.0, 0.0)) + "\n").encode("ascii")
        for i in range(3))
    results = LineDecoder().feed(header + body + b"partial,")
    assert len(results) == 4
    assert results[0].sample is None
    assert [r.sample is not None for r in results[1:]] == [True, True, True]
    np.testing.assert_allclose(results[2].sample.x, math.degrees(0.1))

    print(" OK")


def test_line_decoder_overlong_line():
    print("test_line_decoder_overlong_line...", end="")

    decoder = LineDecoder(max_line_length=64)
    assert decoder.feed(b"x" * 100) == []
    # buffer was cleared, next record decodes cleanly
    results = decoder.feed((format_record((0.0, 0.0, 1.0)) + "\n").encode())
    assert len(results) == 1
    assert results[0].sample is not None

    decoder.feed(b"half")
    decoder.reset()
    assert decoder.feed(b"\n") == []

    print(" OK")


def test_line_decoder_flush_unterminated_tail():
    """The last record of a capture may have no trailing newline."""
    print("test_line_decoder_flush_unterminated_tail...", end="")

    decoder = LineDecoder()
    data = (b"time,x\n" + (format_record((0.1, 0.0, 0.0)) + "\n").encode()
            + format_record((0.0, 0.2, 0.0)).encode())
    results = decoder.feed(data)
    assert len(results) == 2

    tail = decoder.flush()
    assert len(tail) == 1
    assert tail[0].fields_in_record == FIELD_COUNT
    np.testing.assert_allclose(tail[0].sample.y, math.degrees(0.2))

    # buffer is empty afterwards
    assert decoder.flush() == []

    print(" OK")


def test_sample_is_immutable():
    print("test_sample_is_immutable...", end="")

    sample = OrientationSample(1.0, 2.0, 3.0)
    try:
        sample.x = 5.0
    except AttributeError:
        pass
    else:
        raise AssertionError("expected frozen dataclass")
    assert sample.as_array().dtype == np.float64

    print(" OK")


if __name__ == "__main__":
    print("sensorlog record tests")
    print("======================\n")

    test_quarter_turn()
    test_two_fields_skipped()
    test_wrong_field_counts_never_sample()
    test_header_line_skipped()
    test_unparsable_orientation()
    test_parse_orientation_rejects_field_count()
    test_degrees_componentwise()
    test_format_record_round_trip()
    test_record_decoder_bytes()
    test_two_records_in_one_read_dropped()
    test_line_decoder_split_reads()
    test_line_decoder_multiple_lines()
    test_line_decoder_overlong_line()
    test_line_decoder_flush_unterminated_tail()
    test_sample_is_immutable()

    print("\nAll tests passed.")
