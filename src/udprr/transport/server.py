from __future__ import annotations
import socket
import threading
from typing import Callable, Protocol, Union

from loguru import logger as log

from udprr.transport.addressing import BUFFER_SIZE, open_bound_socket, resolve, validate_port
from udprr.transport.errors import EndpointClosedError, InvalidArgumentError

# how often the receive loop wakes up to notice close()
_POLL_INTERVAL_S = 0.1


class DatagramHandler(Protocol):
    def on_receive(self, data: bytes, src_address: str, src_port: int) -> None: ...


HandlerFn = Callable[[bytes, str, int], None]


class ServerEndpoint:
    """
    UDP server endpoint with its own receive thread.

    The thread starts during construction and runs until close(). Every
    datagram is copied out of the scratch buffer and handed to the handler
    on that thread, one at a time, in arrival order. A slow handler slows
    down receiving for this endpoint.

    The handler is a callable ``(data, src_address, src_port)``, an object
    with an ``on_receive`` method of that signature, or nothing when a
    subclass overrides ``on_receive`` itself.
    """

    def __init__(self, bind_address: str, port: int,
                 handler: Union[DatagramHandler, HandlerFn, None] = None):
        validate_port(port, "Server port")
        self._handler = self._callback_for(handler)

        self._sock = open_bound_socket(bind_address, port)
        self._sock.settimeout(_POLL_INTERVAL_S)
        self._buf = bytearray(BUFFER_SIZE)
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self.failure: OSError | None = None

        host, bound_port = self.address
        log.debug("server endpoint bound to {}:{}", host, bound_port)
        self._thread = threading.Thread(
            target=self._run, name=f"udprr-server-{bound_port}", daemon=True)
        self._thread.start()

    def _callback_for(self, handler) -> HandlerFn:
        if handler is None:
            if type(self).on_receive is ServerEndpoint.on_receive:
                raise TypeError("a handler is required unless on_receive is overridden")
            return self.on_receive
        on_receive = getattr(handler, "on_receive", None)
        if callable(on_receive):
            return on_receive
        if callable(handler):
            return handler
        raise TypeError(f"handler must be callable or have on_receive(): {handler!r}")

    def on_receive(self, data: bytes, src_address: str, src_port: int) -> None:
        raise NotImplementedError

    @property
    def address(self) -> tuple[str, int]:
        host, port = self._sock.getsockname()[:2]
        return host, port

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _run(self) -> None:
        view = memoryview(self._buf)
        while not self._closed.is_set():
            try:
                n, addr = self._sock.recvfrom_into(self._buf, BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                # a receive failure and a close look the same to the loop
                if not self._closed.is_set():
                    self.failure = e
                    log.warning("receive loop on {} stopped by transport error: {}",
                                self._thread.name, e)
                break
            if self._closed.is_set():
                break
            data = bytes(view[:n])
            try:
                self._handler(data, addr[0], addr[1])
            except Exception:
                log.exception("handler failed for datagram from {}:{}", addr[0], addr[1])
        log.debug("receive loop on {} exited", self._thread.name)

    def send_response(self, data: bytes | None, dest_address: str, dest_port: int) -> None:
        validate_port(dest_port, "Destination port")
        if not data:
            return
        if len(data) > BUFFER_SIZE:
            raise InvalidArgumentError(
                f"Data to send is too big: {len(data)}. Maximal size: {BUFFER_SIZE}")
        if self._closed.is_set():
            raise EndpointClosedError("server endpoint is closed")

        _, sockaddr = resolve(dest_address, dest_port, self._sock.family)
        self._sock.sendto(data, sockaddr)

    def close(self) -> None:
        with self._close_lock:
            if self._closed.is_set():
                return
            self._closed.set()

        # the handler may close its own endpoint; don't join ourselves
        if threading.current_thread() is not self._thread:
            self._thread.join()
        self._sock.close()
        log.debug("server endpoint {} closed", self._thread.name)

    def __enter__(self) -> ServerEndpoint:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
