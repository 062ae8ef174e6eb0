"""
udpstats: fixtures for tests

Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import selectors
import socket
import threading
from types import TracebackType
from typing import Callable, Iterator, List, Optional, Type

import pytest

from udpstats import logutil
from udpstats.errors import TransportError

logutil.configure_logging()


def port_is_bound(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            sock.bind(("127.0.0.1", port))
        except OSError:
            return True
    return False


@pytest.fixture(scope="session", name="get_available_port")
def fixture_get_available_port() -> Callable[[], int]:
    first_free_port = 30000

    def get_available_port():
        nonlocal first_free_port
        port = first_free_port
        while port < 40000:
            if not port_is_bound(port):
                first_free_port = port + 1
                return port
            port += 1
        raise RuntimeError("No available port")

    return get_available_port


class UdpServer:
    def __init__(self, port: int) -> None:
        self.port = port
        self.address = "127.0.0.1:{}".format(port)
        self.socket = socket.socket(family=socket.AF_INET, type=socket.SOCK_DGRAM)

    def __enter__(self) -> "UdpServer":
        self.socket.bind(("127.0.0.1", self.port))
        # fail the test instead of hanging when an expected datagram never arrives
        self.socket.settimeout(5.0)
        return self

    def __exit__(
        self, exc_type: Type, exc_val: BaseException, exc_tb: TracebackType
    ) -> None:
        self.socket.close()

    def has_message(self) -> bool:
        selector = selectors.DefaultSelector()
        selector.register(self.socket, selectors.EVENT_READ)
        try:
            return len(selector.select(timeout=-1)) > 0
        finally:
            selector.unregister(self.socket)

    def get_message(self) -> str:
        return self.socket.recv(65535).decode()


@pytest.fixture(name="udp_server")
def fixture_udp_server(get_available_port: Callable[[], int]) -> Iterator[UdpServer]:
    with UdpServer(port=get_available_port()) as udp_server:
        yield udp_server


class RecordingTransport:
    """Collects datagrams in memory, fails the next sends when told to"""
    def __init__(self) -> None:
        self.datagrams: List[bytes] = []
        self.fail_sends = 0
        self.closed = False
        self.lock = threading.Lock()

    def send(self, payload: bytes) -> None:
        with self.lock:
            if self.fail_sends:
                self.fail_sends -= 1
                raise TransportError("simulated failure sending {} bytes".format(len(payload)))
            self.datagrams.append(payload)

    def close(self) -> None:
        self.closed = True

    def lines(self) -> List[bytes]:
        return [line for datagram in self.datagrams for line in datagram.split(b"\n")]


@pytest.fixture(name="transport")
def fixture_transport() -> RecordingTransport:
    return RecordingTransport()


def cycle(values: List[float]) -> Callable[[], float]:
    index = 0

    def next_value() -> float:
        nonlocal index
        value = values[index % len(values)]
        index += 1
        return value

    return next_value


@pytest.fixture(name="cycle")
def fixture_cycle() -> Callable[[List[float]], Callable[[], float]]:
    return cycle


class FlushRecorder:
    def __init__(self) -> None:
        self.errors: List[Optional[TransportError]] = []
        self.flushed = threading.Event()

    def __call__(self, error: Optional[TransportError]) -> None:
        self.errors.append(error)
        self.flushed.set()


@pytest.fixture(name="flush_recorder")
def fixture_flush_recorder() -> FlushRecorder:
    return FlushRecorder()
