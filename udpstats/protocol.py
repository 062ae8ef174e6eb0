"""
udpstats - StatsD line protocol

Lines look like "<key>:<value>|<type>[@<rate>]", several lines in a single
datagram are separated by newlines.

Supports telegraf's statsd protocol extension for 'key=value' tags:

  https://github.com/influxdata/telegraf/tree/master/plugins/inputs/statsd

and datadog's '|#tag:value' extension:

  http://docs.datadoghq.com/guides/dogstatsd/#datagram-format

Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import dataclasses
import decimal
import enum
import math
import numbers
import re
from typing import Dict, List, Mapping, Optional, Union

from udpstats.errors import (InvalidMetricValueError, MalformedLineError, SamplingRateError)

INTEGER_RE = re.compile(rb"-?[0-9]+")

Key = Union[str, bytes]
Tags = Mapping[str, Optional[str]]


class StrEnum(str, enum.Enum):
    def __str__(self):
        return str(self.value)


@enum.unique
class MetricKind(StrEnum):
    COUNT = "c"
    TIMING = "ms"
    GAUGE = "g"
    SET = "s"


@enum.unique
class MessageFormat(StrEnum):
    plain = "plain"
    telegraf = "telegraf"
    datadog = "datadog"


@dataclasses.dataclass(frozen=True)
class Observation:
    key: Key
    kind: MetricKind
    value: Union[int, float, bytes]
    sampling_rate: float = 1.0
    tags: Dict[str, Optional[str]] = dataclasses.field(default_factory=dict)

    def __post_init__(self):
        kind = MetricKind(self.kind)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "tags", dict(self.tags))

        # NaN fails both comparisons and ends up rejected here as well
        if not 0 < self.sampling_rate <= 1:
            raise SamplingRateError("Sampling rate must be in (0, 1], got {!r}".format(self.sampling_rate))
        if self.sampling_rate != 1 and kind is not MetricKind.COUNT:
            raise SamplingRateError("Only counters can be sampled, got {!r} with rate {!r}".format(kind, self.sampling_rate))

        if kind is MetricKind.SET:
            if isinstance(self.value, str):
                object.__setattr__(self, "value", self.value.encode("utf-8"))
            elif isinstance(self.value, (bytes, bytearray, memoryview)):
                object.__setattr__(self, "value", bytes(self.value))
            else:
                raise InvalidMetricValueError("Set members must be bytes or str, got {!r}".format(self.value))
        elif isinstance(self.value, bool) or not isinstance(self.value, numbers.Real):
            raise InvalidMetricValueError("{} value must be a number, got {!r}".format(kind.name.lower(), self.value))
        elif not math.isfinite(self.value):
            raise InvalidMetricValueError("{} value must be finite, got {!r}".format(kind.name.lower(), self.value))


def format_number(value: Union[int, float]) -> str:
    """Shortest decimal representation that parses back to the same float,
    always in positional notation: 3, -123.456, 0.00001"""
    if isinstance(value, numbers.Integral):
        return str(int(value))
    text = repr(float(value))
    if "e" in text:
        # repr switches to scientific notation for very large and small values
        text = format(decimal.Decimal(text), "f")
    elif text.endswith(".0"):
        text = text[:-2]
    return text


def _key_bytes(key: Key) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    return bytes(key)


def encode(observation: Observation, message_format: MessageFormat = MessageFormat.plain) -> bytes:
    """Encode an observation as a single line, without a trailing newline"""
    if observation.kind is MetricKind.SET:
        value = observation.value
    else:
        value = format_number(observation.value).encode("ascii")

    # telegraf format: "user.logins,service=payroll,region=us-west:1|c"
    # datadog format: metric.name:value|type|#tag1:value,tag2
    parts = [_key_bytes(observation.key), b":", value, b"|", observation.kind.value.encode("ascii")]
    if observation.sampling_rate != 1:
        parts.append(b"@")
        parts.append(format_number(observation.sampling_rate).encode("ascii"))

    message_format = MessageFormat(message_format)
    sorted_tags = sorted(observation.tags.items())
    if message_format is MessageFormat.datadog:
        for index, (tag, val) in enumerate(sorted_tags):
            separator = "|#" if index == 0 else ","
            if val is None:
                parts.append("{}{}".format(separator, tag).encode("utf-8"))
            else:
                parts.append("{}{}:{}".format(separator, tag, val).encode("utf-8"))
    elif message_format is MessageFormat.telegraf:
        tag_parts = []
        for tag, val in sorted_tags:
            if val is None:
                tag_parts.append(",{}".format(tag).encode("utf-8"))
            else:
                tag_parts.append(",{}={}".format(tag, val).encode("utf-8"))
        parts[1:1] = tag_parts

    return b"".join(parts)


def _parse_number(text: bytes, line: bytes) -> Union[int, float]:
    # format_number writes integers without a decimal point, keep them exact
    if INTEGER_RE.fullmatch(text):
        return int(text)
    try:
        return float(text)
    except ValueError as ex:
        raise MalformedLineError("Invalid number {!r} in line {!r}".format(text, line)) from ex


def decode_line(line: bytes, message_format: MessageFormat = MessageFormat.plain) -> Observation:
    """Parse a single line the way a StatsD server would"""
    message_format = MessageFormat(message_format)
    line = bytes(line)
    tags: Dict[str, Optional[str]] = {}

    key_part, sep, rest = line.partition(b":")
    if not sep or not key_part:
        raise MalformedLineError("Missing key separator in line {!r}".format(line))

    if message_format is MessageFormat.datadog and b"|#" in rest:
        rest, _, tag_text = rest.rpartition(b"|#")
        for item in tag_text.decode("utf-8").split(","):
            tag, has_value, val = item.partition(":")
            tags[tag] = val if has_value else None
    elif message_format is MessageFormat.telegraf:
        key_part, *tag_items = key_part.split(b",")
        for item in tag_items:
            tag, has_value, val = item.decode("utf-8").partition("=")
            tags[tag] = val if has_value else None

    value_text, sep, type_text = rest.rpartition(b"|")
    if not sep:
        raise MalformedLineError("Missing type separator in line {!r}".format(line))
    kind_text, has_rate, rate_text = type_text.partition(b"@")
    try:
        kind = MetricKind(kind_text.decode("ascii"))
    except (UnicodeDecodeError, ValueError) as ex:
        raise MalformedLineError("Unknown metric type {!r} in line {!r}".format(kind_text, line)) from ex

    sampling_rate = _parse_number(rate_text, line) if has_rate else 1.0
    if kind is MetricKind.SET:
        value = value_text
    else:
        value = _parse_number(value_text, line)
    try:
        return Observation(
            key=key_part.decode("utf-8"),
            kind=kind,
            value=value,
            sampling_rate=sampling_rate,
            tags=tags,
        )
    except (SamplingRateError, InvalidMetricValueError) as ex:
        raise MalformedLineError("Invalid line {!r}: {}".format(line, ex)) from ex
    except UnicodeDecodeError as ex:
        raise MalformedLineError("Key in line {!r} is not valid UTF-8".format(line)) from ex


def decode_datagram(payload: bytes, message_format: MessageFormat = MessageFormat.plain) -> List[Observation]:
    return [decode_line(line, message_format) for line in bytes(payload).split(b"\n")]
