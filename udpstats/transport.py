# Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
import logging
import socket
from typing import Tuple, Union

from udpstats.errors import AddressResolutionError, TransportError

Address = Union[str, Tuple[str, int]]

LOG = logging.getLogger(__name__)


def parse_address(address: Address) -> Tuple[str, int]:
    """Split "host:port", "[ipv6]:port" or a (host, port) tuple"""
    if isinstance(address, tuple):
        if len(address) != 2:
            raise AddressResolutionError("Address {!r} must be a (host, port) pair".format(address))
        host, port = address
    else:
        host, sep, port = str(address).rpartition(":")
        if not sep:
            raise AddressResolutionError("Address {!r} is not in host:port form".format(address))
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
    try:
        port = int(port)
    except (TypeError, ValueError) as ex:
        raise AddressResolutionError("Invalid port in address {!r}".format(address)) from ex
    if not 0 < port < 65536:
        raise AddressResolutionError("Port {!r} out of range in address {!r}".format(port, address))
    return host or "127.0.0.1", port


class UdpTransport:
    """Fire and forget datagram sender, the destination is resolved once at construction"""
    def __init__(self, address: Address):
        host, port = parse_address(address)
        try:
            addrinfo = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
        except (socket.gaierror, UnicodeError) as ex:
            raise AddressResolutionError("Can't resolve {!r}: {}".format(host, ex)) from ex
        family, socktype, proto, _, sockaddr = addrinfo[0]
        try:
            self._socket = socket.socket(family, socktype, proto)
        except OSError as ex:
            raise TransportError("Can't create UDP socket: {}: {}".format(ex.__class__.__name__, ex)) from ex
        self.dest_addr = sockaddr
        LOG.debug("Sending statsd datagrams to %r", self.dest_addr)

    def send(self, payload: bytes) -> None:
        try:
            self._socket.sendto(payload, self.dest_addr)
        except OSError as ex:
            raise TransportError(
                "Sending {} bytes to {!r} failed: {}: {}".format(len(payload), self.dest_addr, ex.__class__.__name__, ex)
            ) from ex

    def close(self) -> None:
        self._socket.close()
        LOG.debug("Closed statsd socket for %r", self.dest_addr)
