"""
udpstats - StatsD client over UDP

Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
from .buffered import BufferedClient, connect_buffered
from .client import Client, connect
from .errors import (
    AddressResolutionError, ClosedError, Error, InvalidConfigurationError, InvalidMetricValueError, MalformedLineError,
    SamplingRateError, TransportError
)
from .protocol import (MessageFormat, MetricKind, Observation, decode_datagram, decode_line, encode)
from .version import __version__
