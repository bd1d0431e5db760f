from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class Settings:
    echo_http: str
    echo_http_host: str
    echo_http_port: int
    echo_udp_host: str
    echo_udp_port: int


def get_settings() -> Settings:
    """
    Centralized configuration for the echo service, its clients and tests.
    Values come from environment variables with safe defaults.
    """
    http_host = os.getenv("ECHO_HTTP_HOST", "127.0.0.1")
    http_port = int(os.getenv("ECHO_HTTP_PORT", "8000"))
    return Settings(
        echo_http=os.getenv("ECHO_HTTP", f"http://{http_host}:{http_port}"),
        echo_http_host=http_host,
        echo_http_port=http_port,
        echo_udp_host=os.getenv("ECHO_UDP_HOST", "127.0.0.1"),
        echo_udp_port=int(os.getenv("ECHO_UDP_PORT", "9000")),
    )
