"""HTTP request model, wire parser and responder."""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field

from response import NOT_FOUND_HEAD, OCTET_STREAM_HEAD, HTTPResponse
from socket_handler import (
    ConnectionIOError,
    HTTPError,
    peer_address,
    read_http_request,
    write_http_response,
)
from utils import expand_home

logger = logging.getLogger(__name__)

HEADER_BODY_SEPARATOR = "\r\n\r\n"


class HTTPRequestParseError(HTTPError, ValueError):
    """Request bytes could not be parsed; the connection gets no response."""


class MissingBodySeparatorError(HTTPRequestParseError):
    """No CRLF CRLF separator in the bytes read."""


class MissingRequestLineError(HTTPRequestParseError):
    """The request line is empty."""


class InvalidRequestLineError(HTTPRequestParseError):
    """The request line lacks a method, path or version token."""


class MalformedHeaderError(HTTPRequestParseError):
    """A header line has no colon."""


class FileUnavailableError(HTTPError):
    """A file requested through ``send_file`` could not be resolved or read."""


@dataclass(frozen=True, slots=True)
class HTTPRequest:
    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    connection: socket.socket | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_bytes(cls, raw: bytes, connection: socket.socket | None = None) -> HTTPRequest:
        """Parse the bytes of a single read into a request bound to ``connection``."""
        text = raw.decode("utf-8", errors="replace")

        raw_head, separator, body = text.partition(HEADER_BODY_SEPARATOR)
        if not separator:
            raise MissingBodySeparatorError("Missing CRLF CRLF request separator")

        lines = raw_head.split("\r\n")
        if not lines[0]:
            raise MissingRequestLineError("Missing request line")

        request_line_parts = lines[0].split(" ")
        if len(request_line_parts) < 3:
            raise InvalidRequestLineError("Invalid request line")
        method, path, _http_version = request_line_parts[:3]

        headers: dict[str, str] = {}
        for line in lines[1:]:
            if ":" not in line:
                raise MalformedHeaderError("Malformed header line")
            name, value = line.split(":", 1)
            headers[name] = value

        return cls(method=method, path=path, headers=headers, body=body, connection=connection)

    def send_bytes(self, payload: bytes) -> None:
        """Reply 200 with an octet-stream body."""
        client_socket = self._require_connection()
        write_http_response(client_socket, OCTET_STREAM_HEAD)
        write_http_response(client_socket, payload)

    def send_file(self, path: str) -> None:
        """Reply with the contents of ``path``, expanding a leading ``~``.

        When the file cannot be resolved or read, a well-formed 404 is
        written instead and ``FileUnavailableError`` is raised.
        """
        try:
            file_path = expand_home(path)
        except KeyError as exc:
            self._send_file_missing(path)
            raise FileUnavailableError(f"Cannot expand {path!r}: home directory is not set") from exc

        try:
            with open(file_path, "rb") as file_obj:
                content = file_obj.read()
        except OSError as exc:
            self._send_file_missing(path)
            raise FileUnavailableError(f"Cannot read {file_path!r}: {exc}") from exc

        self.send_bytes(content)

    def not_found(self, msg: str) -> None:
        """Reply 404 followed directly by ``msg``.

        The head lacks the blank line, matching what existing clients get.
        """
        client_socket = self._require_connection()
        write_http_response(client_socket, NOT_FOUND_HEAD)
        write_http_response(client_socket, msg.encode("utf-8"))

    def peer_address(self) -> tuple[str, int]:
        return peer_address(self._require_connection())

    def _send_file_missing(self, path: str) -> None:
        response = HTTPResponse(status_code=404, body=f"File not available: {path}")
        write_http_response(self._require_connection(), response.to_bytes())

    def _require_connection(self) -> socket.socket:
        if self.connection is None:
            raise ConnectionIOError("Request is not bound to a connection")
        return self.connection


def read_request(client_socket: socket.socket) -> HTTPRequest:
    """Read once from ``client_socket`` and parse the result."""
    raw = read_http_request(client_socket)
    logger.debug("Read %d request bytes", len(raw))
    return HTTPRequest.from_bytes(raw, client_socket)
