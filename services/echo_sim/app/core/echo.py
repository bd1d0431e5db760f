from __future__ import annotations
import threading
from dataclasses import dataclass, field

from loguru import logger as log

from udprr.transport.server import ServerEndpoint
from .faults import FaultConfig

@dataclass
class EchoModel:
    received: int = 0
    echoed: int = 0
    dropped: int = 0
    reset_count: int = 0
    faults: FaultConfig = field(default_factory=FaultConfig)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def count(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    def reset(self) -> None:
        with self._lock:
            self.received = self.echoed = self.dropped = 0
            self.reset_count += 1
        # keep faults as-is; tests can choose to reset them explicitly

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "received": self.received,
                "echoed": self.echoed,
                "dropped": self.dropped,
                "reset_count": self.reset_count,
            }


class EchoServer(ServerEndpoint):
    """Sends every datagram straight back to where it came from."""

    def __init__(self, bind_address: str, port: int, model: EchoModel):
        # set before the receive thread starts
        self.model = model
        super().__init__(bind_address, port)

    def on_receive(self, data: bytes, src_address: str, src_port: int) -> None:
        self.model.count("received")
        if self.model.faults.should_drop():
            self.model.count("dropped")
            log.debug("dropped {} bytes from {}:{}", len(data), src_address, src_port)
            return
        self.model.faults.apply_delay()
        self.model.count("echoed")
        self.send_response(data, src_address, src_port)
