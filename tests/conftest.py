import os
import socket
import threading
import time

import httpx
import pytest
import uvicorn

from udprr.api.client import EchoApiClient
from udprr.transport.client import ClientEndpoint
from udprr.transport.server import ServerEndpoint


class Recorder:
    """Handler that remembers every datagram it was given."""

    def __init__(self):
        self.calls = []
        self.threads = []
        self._cond = threading.Condition()

    def __call__(self, data: bytes, src_address: str, src_port: int) -> None:
        with self._cond:
            self.calls.append((data, src_address, src_port))
            self.threads.append(threading.current_thread().name)
            self._cond.notify_all()

    def wait_for(self, n: int, timeout_s: float = 2.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.calls) >= n, timeout_s)


class EchoEndpoint(ServerEndpoint):
    def on_receive(self, data, src_address, src_port):
        self.send_response(data, src_address, src_port)


@pytest.fixture
def recorder():
    return Recorder()

@pytest.fixture
def recording_server(recorder):
    server = ServerEndpoint("127.0.0.1", 0, recorder)
    try:
        yield server
    finally:
        server.close()

@pytest.fixture
def echo_server():
    server = EchoEndpoint("127.0.0.1", 0)
    try:
        yield server
    finally:
        server.close()

@pytest.fixture
def echo_client(echo_server):
    host, port = echo_server.address
    client = ClientEndpoint(host, port, "127.0.0.1", 0)
    try:
        yield client
    finally:
        client.close()


def _free_tcp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]

def _wait_for_http_ready(url: str, server: uvicorn.Server, timeout_s: float = 15.0) -> None:
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        if server.started:
            try:
                r = httpx.get(url, timeout=1.0)
                if r.status_code == 200:
                    return
            except httpx.HTTPError:
                pass
        time.sleep(0.05)
    raise RuntimeError(f"Echo service did not become ready at {url} within {timeout_s}s")

@pytest.fixture(scope="session")
def echo_service():
    """
    Runs the echo service under uvicorn in a background thread for the session.
    The UDP side binds an ephemeral port; tests read it back from /status.
    """
    host = "127.0.0.1"
    port = _free_tcp_port()
    overrides = {
        "ECHO_HTTP_HOST": host,
        "ECHO_HTTP_PORT": str(port),
        "ECHO_HTTP": f"http://{host}:{port}",
        "ECHO_UDP_HOST": host,
        "ECHO_UDP_PORT": "0",
    }
    saved = {k: os.environ.get(k) for k in overrides}
    os.environ.update(overrides)

    from services.echo_sim.app.main import app

    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, name="echo-service", daemon=True)
    thread.start()
    try:
        _wait_for_http_ready(f"{overrides['ECHO_HTTP']}/health", server)
        yield overrides["ECHO_HTTP"]
    finally:
        server.should_exit = True
        thread.join(timeout=5)
        for k, v in saved.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v

@pytest.fixture
def echo_api(echo_service):
    client = EchoApiClient(echo_service)
    client.reset()
    client.set_faults(delay_ms=0, drop_rate=0.0)
    try:
        yield client
    finally:
        client.close()

@pytest.fixture
def echo_udp(echo_api):
    host, port = echo_api.udp_address()
    client = ClientEndpoint(host, port)
    try:
        yield client
    finally:
        client.close()
