from __future__ import annotations
import socket

from loguru import logger as log

from udprr.transport.addressing import (
    BUFFER_SIZE, UdpEndpoint, open_bound_socket, resolve, validate_port,
)
from udprr.transport.errors import (
    EndpointClosedError, InvalidArgumentError, ResponseTimeoutError, UnknownHostError,
)
from udprr.utils.retry import RetryPolicy, with_retries

CLIENT_TIMEOUT_S = 0.5


class ClientEndpoint:
    """
    UDP client talking to one fixed server.

    Requests and responses are not paired by this class; the caller
    decides which response belongs to which request.
    """

    def __init__(self, server_address: str, server_port: int,
                 bind_address: str = "127.0.0.1", bind_port: int = 0):
        validate_port(server_port, "Server port")
        validate_port(bind_port)
        self._server = UdpEndpoint(server_address, server_port)

        self._sock = open_bound_socket(bind_address, bind_port)
        try:
            _, self._server_addr = resolve(server_address, server_port, self._sock.family)
        except UnknownHostError:
            self._sock.close()
            raise
        self._sock.settimeout(CLIENT_TIMEOUT_S)
        self._closed = False
        log.debug("client endpoint {}:{} -> {}:{}", *self.local_address,
                  server_address, server_port)

    @property
    def server(self) -> UdpEndpoint:
        return self._server

    @property
    def local_address(self) -> tuple[str, int]:
        host, port = self._sock.getsockname()[:2]
        return host, port

    @property
    def closed(self) -> bool:
        return self._closed

    def send_request(self, data: bytes) -> None:
        if self._closed:
            raise EndpointClosedError("client endpoint is closed")
        if len(data) > BUFFER_SIZE:
            raise InvalidArgumentError(
                f"Data to send is too big: {len(data)}. Maximal size: {BUFFER_SIZE}")
        self._sock.sendto(data, self._server_addr)

    def receive_response(self) -> bytes:
        if self._closed:
            raise EndpointClosedError("client endpoint is closed")
        try:
            data, _ = self._sock.recvfrom(BUFFER_SIZE)
        except socket.timeout as e:
            raise ResponseTimeoutError(
                f"no response within {CLIENT_TIMEOUT_S * 1000:.0f} ms") from e
        return data

    def request_once(self, data: bytes) -> bytes:
        self.send_request(data)
        return self.receive_response()

    def request(self, data: bytes, *, policy: RetryPolicy | None = None) -> bytes:
        if policy is None:
            return self.request_once(data)
        return with_retries(lambda: self.request_once(data), policy)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._sock.close()

    def __enter__(self) -> ClientEndpoint:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
