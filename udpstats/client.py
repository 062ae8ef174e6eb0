"""
udpstats - StatsD client sending one datagram per metric

Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import datetime
import logging
import random
import time
from functools import wraps
from types import TracebackType
from typing import Callable, Dict, Optional, Type, Union

from udpstats.errors import ClosedError
from udpstats.protocol import (Key, MessageFormat, MetricKind, Observation, Tags, encode)
from udpstats.transport import Address, UdpTransport

Duration = Union[datetime.timedelta, int, float]
RandomSource = Callable[[], float]


class _Timer:
    """A context manager/decorator for Client.time()"""
    def __init__(self, client: "Client", key: Key, tags: Optional[Tags] = None):
        self.client = client
        self.key = key
        self.tags = tags
        self.start: Optional[float] = None
        self.elapsed: Optional[float] = None

    def __call__(self, f):
        @wraps(f)
        def wrapper(*args, **kw):
            with self:
                return f(*args, **kw)

        return wrapper

    def __enter__(self) -> "_Timer":
        self.start = time.monotonic()
        return self

    def __exit__(self, exc_type: Type, exc_val: BaseException, exc_tb: TracebackType) -> None:
        self.elapsed = time.monotonic() - self.start
        self.client.time(self.key, self.elapsed, tags=self.tags)


class Client:
    def __init__(
        self,
        transport: UdpTransport,
        *,
        tags: Optional[Tags] = None,
        message_format: MessageFormat = MessageFormat.plain,
        random_source: Optional[RandomSource] = None,
    ):
        self.log = logging.getLogger(self.__class__.__name__)
        self._transport = transport
        self._tags = dict(tags or {})
        self._message_format = MessageFormat(message_format)
        self._random = random_source or random.random
        self._closed = False

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type: Type, exc_val: BaseException, exc_tb: TracebackType) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def count(self, key: Key, delta: float, sampling_rate: float = 1.0, tags: Optional[Tags] = None) -> None:
        self.send(self._observe(MetricKind.COUNT, key, delta, sampling_rate, tags))

    def increment(self, key: Key, tags: Optional[Tags] = None) -> None:
        self.count(key, 1, 1.0, tags=tags)

    def count_with_probability(self, key: Key, delta: float, probability: float, tags: Optional[Tags] = None) -> None:
        """Count with the given probability, reporting it as the sampling rate.

        The observation is built before drawing so an invalid probability
        always raises, regardless of the sample.
        """
        observation = self._observe(MetricKind.COUNT, key, delta, probability, tags)
        if self._random() >= probability:
            return
        self.send(observation)

    def increment_with_probability(self, key: Key, probability: float, tags: Optional[Tags] = None) -> None:
        self.count_with_probability(key, 1, probability, tags=tags)

    def time(self, key: Key, duration: Duration, tags: Optional[Tags] = None) -> None:
        """Send a timer, duration is a timedelta or a number of seconds"""
        if isinstance(duration, datetime.timedelta):
            milliseconds = duration.total_seconds() * 1000
        else:
            milliseconds = duration * 1000
        self.timing(key, milliseconds, tags=tags)

    def timing(self, key: Key, milliseconds: float, tags: Optional[Tags] = None) -> None:
        self.send(self._observe(MetricKind.TIMING, key, milliseconds, tags=tags))

    def timer(self, key: Key, tags: Optional[Tags] = None) -> _Timer:
        return _Timer(self, key, tags)

    def gauge(self, key: Key, value: float, tags: Optional[Tags] = None) -> None:
        self.send(self._observe(MetricKind.GAUGE, key, value, tags=tags))

    def set(self, key: Key, element: Union[bytes, str], tags: Optional[Tags] = None) -> None:
        self.send(self._observe(MetricKind.SET, key, element, tags=tags))

    def unexpected_exception(self, ex: Exception, where: str, tags: Optional[Tags] = None) -> None:
        all_tags = {
            "exception": ex.__class__.__name__,
            "where": where,
        }
        all_tags.update(tags or {})
        self.increment("exception", tags=all_tags)

    def send(self, observation: Observation) -> None:
        self._write(encode(observation, self._message_format))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._transport.close()

    def _observe(
        self,
        kind: MetricKind,
        key: Key,
        value: Union[float, bytes, str],
        sampling_rate: float = 1.0,
        tags: Optional[Tags] = None,
    ) -> Observation:
        send_tags: Dict[str, Optional[str]] = self._tags.copy()
        send_tags.update(tags or {})
        return Observation(key=key, kind=kind, value=value, sampling_rate=sampling_rate, tags=send_tags)

    def _write(self, line: bytes) -> None:
        if self._closed:
            raise ClosedError("Client is closed")
        self._transport.send(line)


def connect(address: Address, **kwargs) -> Client:
    """Create a client sending every metric to address as its own datagram"""
    return Client(UdpTransport(address), **kwargs)
