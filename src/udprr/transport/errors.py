from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Bad port, oversized payload or bad buffer length. Raised before any I/O."""


class UnknownHostError(OSError):
    pass


class ResponseTimeoutError(TimeoutError):
    """No datagram arrived within the client's fixed receive window."""


class EndpointClosedError(OSError):
    pass
