"""Low-level socket read/write utilities."""

from __future__ import annotations

import socket

from config import BUFFER_SIZE


class HTTPError(Exception):
    """Base class for failures that end the connection that produced them."""


class ConnectionIOError(HTTPError):
    """Raised when reading from or writing to a client socket fails."""


def read_http_request(client_socket: socket.socket, buffer_size: int = BUFFER_SIZE) -> bytes:
    """Perform one bounded read; no reassembly across reads."""
    try:
        return client_socket.recv(buffer_size)
    except OSError as exc:
        raise ConnectionIOError(f"Failed to read request: {exc}") from exc


def write_http_response(client_socket: socket.socket, payload: bytes) -> None:
    """Write the complete payload to a client socket."""
    try:
        client_socket.sendall(payload)
    except OSError as exc:
        raise ConnectionIOError(f"Failed to write response: {exc}") from exc


def peer_address(client_socket: socket.socket) -> tuple[str, int]:
    try:
        return client_socket.getpeername()
    except OSError as exc:
        raise ConnectionIOError(f"Connection has no peer: {exc}") from exc
