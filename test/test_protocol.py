# Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
import pytest

from udpstats.errors import (InvalidMetricValueError, MalformedLineError, SamplingRateError)
from udpstats.protocol import (
    MessageFormat, MetricKind, Observation, decode_datagram, decode_line, encode, format_number
)


@pytest.mark.parametrize(
    "value,expected", [
        (3, "3"),
        (3.0, "3"),
        (-123.456, "-123.456"),
        (3000.0, "3000"),
        (0.5, "0.5"),
        (0.1 + 0.2, "0.30000000000000004"),
        (1e-05, "0.00001"),
        (1.5e16, "15000000000000000"),
        (-2.5e-07, "-0.00000025"),
        (10**20, "100000000000000000000"),
    ]
)
def test_format_number(value, expected) -> None:
    assert format_number(value) == expected


@pytest.mark.parametrize(
    "observation,expected", [
        (Observation("foo", MetricKind.COUNT, 3), b"foo:3|c"),
        (Observation("foo", MetricKind.COUNT, 3, sampling_rate=0.5), b"foo:3|c@0.5"),
        (Observation("blah", MetricKind.COUNT, -123.456), b"blah:-123.456|c"),
        (Observation("foo", MetricKind.TIMING, 3000.0), b"foo:3000|ms"),
        (Observation("foo", MetricKind.TIMING, 1.25), b"foo:1.25|ms"),
        (Observation("foo", MetricKind.GAUGE, 123.456), b"foo:123.456|g"),
        (Observation("foo", MetricKind.SET, b"hello"), b"foo:hello|s"),
        (Observation(b"raw.key", MetricKind.SET, "hé"), b"raw.key:h\xc3\xa9|s"),
    ]
)
def test_encode(observation: Observation, expected: bytes) -> None:
    assert encode(observation) == expected


def test_set_payload_is_written_verbatim() -> None:
    assert encode(Observation("ids", MetricKind.SET, b"\x00a:b")) == b"ids:\x00a:b|s"


@pytest.mark.parametrize("rate", [0, -0.5, 1.0001, 2, float("nan")])
def test_invalid_sampling_rate(rate: float) -> None:
    with pytest.raises(SamplingRateError):
        Observation("foo", MetricKind.COUNT, 1, sampling_rate=rate)


def test_only_counters_are_sampled() -> None:
    with pytest.raises(SamplingRateError):
        Observation("foo", MetricKind.GAUGE, 1, sampling_rate=0.5)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), "12", None, True])
def test_invalid_numeric_value(value) -> None:
    with pytest.raises(InvalidMetricValueError):
        Observation("foo", MetricKind.GAUGE, value)


def test_set_member_must_be_bytes_or_str() -> None:
    with pytest.raises(InvalidMetricValueError):
        Observation("foo", MetricKind.SET, 12)


def test_kind_accepts_wire_suffix() -> None:
    assert Observation("foo", "ms", 1).kind is MetricKind.TIMING


@pytest.mark.parametrize(
    "message_format,expected", [
        ("plain", b"something:123|g"),
        ("telegraf", b"something,baz=tog,foo=bar:123|g"),
        ("datadog", b"something:123|g|#baz:tog,foo:bar"),
    ]
)
def test_tags(message_format: str, expected: bytes) -> None:
    observation = Observation("something", MetricKind.GAUGE, 123, tags={"foo": "bar", "baz": "tog"})
    # tags are sorted
    assert encode(observation, message_format) == expected


def test_tags_with_sampling_rate() -> None:
    observation = Observation("hits", MetricKind.COUNT, 1, sampling_rate=0.25, tags={"a": "b"})
    assert encode(observation, MessageFormat.telegraf) == b"hits,a=b:1|c@0.25"
    assert encode(observation, MessageFormat.datadog) == b"hits:1|c@0.25|#a:b"


def test_datadog_tag_values_can_be_none() -> None:
    observation = Observation("something", MetricKind.GAUGE, 123, tags={"foo": None, "bar": None})
    assert encode(observation, MessageFormat.datadog) == b"something:123|g|#bar,foo"


@pytest.mark.parametrize(
    "observation,message_format", [
        (Observation("foo.bar", MetricKind.COUNT, -123.456, sampling_rate=0.1), "plain"),
        (Observation("foo", MetricKind.TIMING, 0.001), "plain"),
        (Observation("foo", MetricKind.GAUGE, 1e-07), "plain"),
        (Observation("foo", MetricKind.SET, b"a|b"), "plain"),
        (Observation("foo", MetricKind.COUNT, 7, sampling_rate=0.5, tags={"x": "1", "y": None}), "datadog"),
        (Observation("foo", MetricKind.GAUGE, 42, tags={"region": "us-west", "service": "payroll"}), "telegraf"),
    ]
)
def test_decode_recovers_observation(observation: Observation, message_format: str) -> None:
    assert decode_line(encode(observation, message_format), message_format) == observation


def test_decode_keeps_large_integers_exact() -> None:
    observation = Observation("k", MetricKind.COUNT, 2**53 + 1)
    decoded = decode_line(encode(observation))
    assert decoded == observation
    assert decoded.value == 9007199254740993
    assert isinstance(decode_line(b"k:-3|g").value, int)
    assert isinstance(decode_line(b"k:3.5|g").value, float)


def test_decode_datagram() -> None:
    observations = decode_datagram(b"a:a|s\na:1.5|g\nb:2|c@0.5")
    assert observations == [
        Observation("a", MetricKind.SET, b"a"),
        Observation("a", MetricKind.GAUGE, 1.5),
        Observation("b", MetricKind.COUNT, 2, sampling_rate=0.5),
    ]


@pytest.mark.parametrize("line", [b"", b"novalue", b":1|c", b"foo:1", b"foo:1|x", b"foo:abc|g", b"foo:1|c@2", b"foo:nan|g"])
def test_decode_malformed(line: bytes) -> None:
    with pytest.raises(MalformedLineError):
        decode_line(line)
