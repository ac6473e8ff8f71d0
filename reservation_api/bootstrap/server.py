"""uvicorn listener."""

import copy
import signal
import socket
from typing import Callable

import uvicorn
from uvicorn.config import LOGGING_CONFIG


def port_available(host: str, port: int) -> bool:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    address = (host, port, 0, 0) if family == socket.AF_INET6 else (host, port)
    with socket.socket(family, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind(address)
        except OSError:
            return False
    return True


def uvicorn_log_config() -> dict:
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s %(levelprefix)s %(message)s"
    log_config["formatters"]["default"]["datefmt"] = "%Y-%m-%d %H:%M:%S"
    log_config["formatters"]["access"]["fmt"] = (
        '%(asctime)s %(levelprefix)s %(message)s - "%(request_line)s" %(status_code)s'
    )
    log_config["formatters"]["access"]["datefmt"] = "%Y-%m-%d %H:%M:%S"
    return log_config


class GatewayServer(uvicorn.Server):
    """uvicorn server that reports signals and readiness to the bootstrap.

    Captured signals are not re-raised after shutdown, so a SIGTERM ends with
    the exit code chosen by the bootstrap instead of the default signal action.
    """

    def __init__(self, config: uvicorn.Config,
                 on_signal: Callable[[int], None] | None = None,
                 on_listening: Callable[[], None] | None = None):
        super().__init__(config)
        self._on_signal = on_signal
        self._on_listening = on_listening

    def handle_exit(self, sig, frame) -> None:
        if self._on_signal:
            self._on_signal(sig)
        if self.should_exit and sig == signal.SIGINT:
            self.force_exit = True
        else:
            self.should_exit = True

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        if self.started and self._on_listening:
            self._on_listening()
