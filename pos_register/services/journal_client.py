"""Socket client for the virtual journal collector (fire-and-forget lines)."""
import logging
import socket
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pos_register.exceptions import JournalUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class JournalClientConfig:
    """Journal collector settings (timeouts and delay in seconds)."""
    server_host: str = 'localhost'
    server_port: int = 9090
    connect_timeout: float = 5.0
    read_timeout: float = 300.0
    retry_attempts: int = 3
    retry_delay: float = 2.0
    enabled: bool = True

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'JournalClientConfig':
        return cls(
            server_host=config.get('JOURNAL_SERVER_HOST', cls.server_host),
            server_port=int(config.get('JOURNAL_SERVER_PORT', cls.server_port)),
            connect_timeout=float(config.get('JOURNAL_CONNECT_TIMEOUT', cls.connect_timeout)),
            read_timeout=float(config.get('JOURNAL_READ_TIMEOUT', cls.read_timeout)),
            retry_attempts=int(config.get('JOURNAL_RETRY_ATTEMPTS', cls.retry_attempts)),
            retry_delay=float(config.get('JOURNAL_RETRY_DELAY', cls.retry_delay)),
            enabled=bool(config.get('JOURNAL_ENABLED', cls.enabled)),
        )


class JournalSocketClient:
    """
    TCP client for the journal collector.

    Lines are written newline-terminated with no acknowledgment. Once a send
    fails the connection is closed and stays closed: there is no reconnect
    after the initial retry budget.
    """

    def __init__(self, config: JournalClientConfig, sleep=time.sleep):
        self.config = config
        self._sleep = sleep
        self._sock: Optional[socket.socket] = None
        self._connected = False
        self.attempts = 0

    def connect(self) -> bool:
        """Try to connect up to retry_attempts times. Returns True on success."""
        if not self.config.enabled:
            logger.info("[JOURNAL] Remote journal is disabled in configuration")
            return False

        address = (self.config.server_host, self.config.server_port)
        max_attempts = max(self.config.retry_attempts, 0)
        self.attempts = 0

        while self.attempts < max_attempts and not self._connected:
            self.attempts += 1
            logger.info(
                f"[JOURNAL] Connecting to {address[0]}:{address[1]} "
                f"(attempt {self.attempts}/{max_attempts})"
            )
            try:
                self._sock = self._open(address)
            except JournalUnavailableError as e:
                logger.warning(f"[JOURNAL] {e.message}")
            else:
                self._connected = True
                logger.info("[JOURNAL] Connected to journal server")
                return True

            if self.attempts < max_attempts:
                self._sleep(self.config.retry_delay)

        logger.error(f"[JOURNAL] Could not connect after {self.attempts} attempts, logging locally only")
        return False

    def _open(self, address) -> socket.socket:
        try:
            sock = socket.create_connection(address, timeout=self.config.connect_timeout)
        except socket.timeout:
            raise JournalUnavailableError(f'Connection timeout (attempt {self.attempts})')
        except OSError as e:
            raise JournalUnavailableError(f'Connection failed (attempt {self.attempts}): {e}')
        sock.settimeout(self.config.read_timeout)
        return sock

    def is_connected(self) -> bool:
        return self._connected and self._sock is not None

    def send_line(self, line: str) -> bool:
        """Write one line. A failure drops the connection; the line is not retried."""
        if not self.is_connected():
            return False
        try:
            self._sock.sendall((line + '\n').encode('utf-8'))
            return True
        except OSError as e:
            logger.warning(f"[JOURNAL] Connection to journal server lost: {e}")
            self._close_resources()
            return False

    def disconnect(self) -> None:
        if not self._connected:
            return
        self._close_resources()
        logger.info("[JOURNAL] Disconnected from journal server")

    def _close_resources(self) -> None:
        self._connected = False
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.warning(f"[JOURNAL] Error closing socket: {e}")
