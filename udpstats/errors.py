"""
udpstats - exception classes

Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""


class Error(Exception):
    """Generic udpstats exception"""


class AddressResolutionError(Error):
    """Destination address could not be parsed or resolved"""


class TransportError(Error):
    """Socket creation or datagram write failed"""


class SamplingRateError(Error, ValueError):
    """Sampling rate must be in (0, 1]"""


class ClosedError(Error):
    """Operation attempted on a closed client"""


class InvalidMetricValueError(Error, ValueError):
    """Metric value can't be represented in the line protocol"""


class MalformedLineError(Error, ValueError):
    """Line protocol input could not be parsed"""


class InvalidConfigurationError(Error):
    """Invalid configuration"""
