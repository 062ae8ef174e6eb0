"""
udpstats - StatsD client batching lines into larger datagrams

Lines are joined with newlines into a pending buffer which is sent as one
datagram when the next line would not fit, when flush_interval has passed
since the buffer became non-empty, or when the client is closed.

Copyright (c) 2026 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import datetime
import threading
import time
from typing import Callable, List, Optional, Union

from udpstats.client import Client
from udpstats.errors import ClosedError, TransportError
from udpstats.transport import Address, UdpTransport

FlushHook = Callable[[Optional[TransportError]], None]


class FlushTimerThread(threading.Thread):
    def __init__(self, client: "BufferedClient"):
        super().__init__(name="StatsFlushTimer", daemon=True)
        self.client = client

    def run(self):
        self.client.log.debug("Flush timer started")
        self.client.flush_on_deadline()
        self.client.log.debug("Flush timer stopped")


class BufferedClient(Client):
    def __init__(
        self,
        transport: UdpTransport,
        max_buffer_bytes: int,
        flush_interval: Union[datetime.timedelta, float],
        *,
        flush_hook: Optional[FlushHook] = None,
        **kwargs,
    ):
        if isinstance(flush_interval, datetime.timedelta):
            flush_interval = flush_interval.total_seconds()
        if max_buffer_bytes <= 0:
            raise ValueError("max_buffer_bytes must be positive, got {!r}".format(max_buffer_bytes))
        if not flush_interval > 0:
            raise ValueError("flush_interval must be positive, got {!r}".format(flush_interval))
        super().__init__(transport, **kwargs)
        self.max_buffer_bytes = max_buffer_bytes
        self.flush_interval = flush_interval
        # Called with the lock held after every datagram send attempt, its exceptions are
        # reported like failed sends
        self.flush_hook = flush_hook
        self._condition = threading.Condition()
        self._buffer = bytearray()
        self._deadline: Optional[float] = None
        self._timer_error: Optional[Exception] = None
        self._timer_thread = FlushTimerThread(self)
        self._timer_thread.start()

    def flush(self) -> None:
        with self._condition:
            if self._closed:
                raise ClosedError("Client is closed")
            errors = [self._take_timer_error()]
            if self._buffer:
                errors.append(self._flush_locked())
        self._raise_first(errors)

    def close(self) -> None:
        with self._condition:
            if self._closed:
                return
            self._closed = True
            self._condition.notify_all()
        try:
            # Appends are rejected from here on, whatever is buffered goes out once
            with self._condition:
                errors = [self._take_timer_error()]
                if self._buffer:
                    errors.append(self._flush_locked())
        finally:
            self._timer_thread.join()
            self._transport.close()
        self._raise_first(errors)

    def flush_on_deadline(self) -> None:
        """Flush timer loop, returns once the client is closed"""
        with self._condition:
            while not self._closed:
                if self._deadline is None:
                    self._condition.wait()
                    continue
                remaining = self._deadline - time.monotonic()
                if remaining > 0:
                    self._condition.wait(remaining)
                    continue
                error = self._flush_locked()
                # Nobody is waiting for this flush, report it from the next call instead
                if error is not None and self._timer_error is None:
                    self._timer_error = error

    def _write(self, line: bytes) -> None:
        with self._condition:
            if self._closed:
                raise ClosedError("Client is closed")
            errors = [self._take_timer_error()]
            if len(line) > self.max_buffer_bytes:
                # Never buffer a line that can't fit, send it alone after what's already pending
                if self._buffer:
                    errors.append(self._flush_locked())
                errors.append(self._send_locked(line))
            else:
                if self._buffer and len(self._buffer) + 1 + len(line) > self.max_buffer_bytes:
                    errors.append(self._flush_locked())
                if self._buffer:
                    self._buffer += b"\n"
                    self._buffer += line
                else:
                    self._buffer += line
                    self._deadline = time.monotonic() + self.flush_interval
                    self._condition.notify_all()
        self._raise_first(errors)

    def _flush_locked(self) -> Optional[Exception]:
        payload = bytes(self._buffer)
        self._buffer.clear()
        self._deadline = None
        return self._send_locked(payload)

    def _send_locked(self, payload: bytes) -> Optional[Exception]:
        error: Optional[Exception] = None
        try:
            self._transport.send(payload)
        except TransportError as ex:
            error = ex
        if self.flush_hook is not None:
            try:
                self.flush_hook(error)
            except Exception as ex:  # pylint: disable=broad-except
                # A failing hook is reported like a failed send, the send error wins if both failed
                if error is None:
                    error = ex
        return error

    def _take_timer_error(self) -> Optional[Exception]:
        error, self._timer_error = self._timer_error, None
        return error

    @staticmethod
    def _raise_first(errors: List[Optional[Exception]]) -> None:
        for error in errors:
            if error is not None:
                raise error


def connect_buffered(
    address: Address, max_buffer_bytes: int, flush_interval: Union[datetime.timedelta, float], **kwargs
) -> BufferedClient:
    """Create a client batching metrics into datagrams of at most max_buffer_bytes"""
    transport = UdpTransport(address)
    try:
        return BufferedClient(transport, max_buffer_bytes, flush_interval, **kwargs)
    except Exception:
        transport.close()
        raise
