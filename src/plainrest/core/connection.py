"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket and turns the TCP byte stream back into
whole HTTP messages.

TCP has no message boundaries:

    client sends:   "GET / HTTP/1.1\\r\\n...\\r\\n\\r\\n"  "POST /api ..."
    recv() may see: "GET / HT"  "TP/1.1\\r\\n...\\r\\n\\r\\nPOST /a"  "pi ..."

So the connection keeps a buffer. A request is complete once the
``\\r\\n\\r\\n`` header terminator has arrived plus Content-Length body
bytes; anything left over belongs to the next (pipelined) request.

The first request must arrive within ``timeout``; later requests on a
kept-alive connection get ``keep_alive_timeout``, after which the
connection is quietly dropped.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional
import logging
import socket
import uuid

from ..http.request import HTTPParseError
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """
    One client connection, possibly carrying several requests.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port).
        id: Short identifier used in log lines.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: tuple[str, int]
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    requests_handled: int = 0
    closed: bool = False

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0          # first request
    keep_alive_timeout: float = 5.0          # subsequent requests
    max_request_size: int = 10 * 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request.

        Returns:
            The raw request bytes, or None if the client closed the
            connection or an idle keep-alive connection timed out.

        Raises:
            TimeoutError: The first request did not arrive in time.
            HTTPParseError: The request exceeds ``max_request_size`` (413).
        """
        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._append(chunk)

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])

            if body_start + content_length > self.max_request_size:
                raise self._too_large(body_start + content_length)

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break  # closed mid-body; the parser sees a short body
                self._append(chunk)

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")
        finally:
            self.socket.settimeout(self.timeout)

    def _append(self, chunk: bytes) -> None:
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise self._too_large(len(self._buffer))

    def _too_large(self, size: int) -> HTTPParseError:
        return HTTPParseError(
            f"Request too large: {size} bytes",
            status_code=HTTPStatus.PAYLOAD_TOO_LARGE,
        )

    def _recv(self) -> bytes:
        try:
            data = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""
        return data

    @staticmethod
    def _parse_content_length(headers: bytes) -> int:
        """Content-Length from raw header bytes, 0 if absent or invalid."""
        for line in headers.decode("latin-1").lower().split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(int(line.split(":", 1)[1].strip()), 0)
                except ValueError:
                    return 0
        return 0

    def send_response(self, data: bytes) -> bool:
        """
        Write a serialized response.

        Returns:
            False if the client has gone away.
        """
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        return True

    def close(self):
        """Half-close, drain briefly, then release the socket. Idempotent."""
        if self.closed:
            return
        self.closed = True

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
