from __future__ import annotations
import socket
from dataclasses import dataclass

from udprr.transport.errors import InvalidArgumentError, UnknownHostError

MAX_PORT = 0xFFFF
BUFFER_SIZE = 1500  # typical link MTU; hard ceiling for one datagram


def validate_port(port: int, what: str = "Port") -> int:
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidArgumentError(f"{what} value must be an int: {port!r}")
    if port < 0 or port > MAX_PORT:
        raise InvalidArgumentError(f"{what} value out of range: {port}")
    return port


@dataclass(frozen=True)
class UdpEndpoint:
    host: str
    port: int

    def __post_init__(self):
        validate_port(self.port)


def resolve(host: str, port: int, family: int = socket.AF_UNSPEC) -> tuple[int, tuple]:
    """
    Resolve host/port to (address family, sockaddr) for a datagram socket.
    The first result getaddrinfo returns wins.
    """
    try:
        infos = socket.getaddrinfo(host, port, family, socket.SOCK_DGRAM)
    except socket.gaierror as e:
        raise UnknownHostError(f"cannot resolve {host!r}: {e}") from e
    if not infos:
        raise UnknownHostError(f"cannot resolve {host!r}")
    fam, _, _, _, sockaddr = infos[0]
    return fam, sockaddr


def open_bound_socket(host: str, port: int) -> socket.socket:
    """Resolve host, then open and bind a datagram socket to it."""
    family, sockaddr = resolve(host, port)
    sock = socket.socket(family, socket.SOCK_DGRAM)
    try:
        sock.bind(sockaddr)
    except OSError:
        sock.close()
        raise
    return sock
