"""Unit tests for response writing through a bound request."""

import socket
from collections.abc import Callable

import pytest

from request import FileUnavailableError, HTTPRequest
from response import HTTPResponse
from socket_handler import ConnectionIOError

OK_HEAD = b"HTTP/1.1 200 OK\r\nContent-Type: application/octet-stream\r\n\r\n"


def _capture(action: Callable[[HTTPRequest], None]) -> bytes:
    server_side, client_side = socket.socketpair()
    with client_side:
        with server_side:
            action(HTTPRequest(method="GET", path="/", connection=server_side))
        chunks = []
        while chunk := client_side.recv(4096):
            chunks.append(chunk)
    return b"".join(chunks)


def test_send_bytes_writes_octet_stream_head_and_payload() -> None:
    payload = bytes(range(256)) * 3

    raw = _capture(lambda request: request.send_bytes(payload))

    assert raw == OK_HEAD + payload


def test_send_bytes_with_empty_payload() -> None:
    assert _capture(lambda request: request.send_bytes(b"")) == OK_HEAD


def test_send_file_matches_send_bytes(tmp_path) -> None:
    target = tmp_path / "photo.bin"
    target.write_bytes(b"\x00\x01binary\xff")

    from_file = _capture(lambda request: request.send_file(str(target)))
    from_bytes = _capture(lambda request: request.send_bytes(target.read_bytes()))

    assert from_file == from_bytes == OK_HEAD + b"\x00\x01binary\xff"


def test_send_file_expands_leading_tilde(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "notes.txt").write_bytes(b"from home")
    monkeypatch.setenv("HOME", str(tmp_path))

    raw = _capture(lambda request: request.send_file("~/notes.txt"))

    assert raw == OK_HEAD + b"from home"


def test_send_file_missing_writes_well_formed_404(tmp_path) -> None:
    missing = str(tmp_path / "absent.txt")
    errors: list[Exception] = []

    def send(request: HTTPRequest) -> None:
        with pytest.raises(FileUnavailableError) as exc_info:
            request.send_file(missing)
        errors.append(exc_info.value)

    raw = _capture(send)

    assert len(errors) == 1
    assert isinstance(errors[0].__cause__, OSError)
    head, body = raw.split(b"\r\n\r\n", 1)
    assert head.startswith(b"HTTP/1.1 404 Not Found\r\n")
    assert f"Content-Length: {len(body)}".encode() in head
    assert missing.encode() in body


def test_send_file_with_tilde_and_no_home_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HOME", raising=False)

    def send(request: HTTPRequest) -> None:
        with pytest.raises(FileUnavailableError):
            request.send_file("~/notes.txt")

    raw = _capture(send)

    assert raw.startswith(b"HTTP/1.1 404 Not Found\r\n")


def test_not_found_reproduces_missing_blank_line() -> None:
    # Known defect: the head ends with CR only and no blank line precedes the body.
    raw = _capture(lambda request: request.not_found("nothing here"))

    assert raw == b"HTTP/1.1 404 Not Found\r\n\rnothing here"


def test_peer_address_on_open_connection() -> None:
    with socket.create_server(("127.0.0.1", 0)) as listener:
        with socket.create_connection(listener.getsockname(), timeout=1.0) as client_side:
            server_side, _address = listener.accept()
            with server_side:
                request = HTTPRequest(method="GET", path="/", connection=server_side)

                assert request.peer_address() == client_side.getsockname()


def test_peer_address_after_close_raises_io_error() -> None:
    server_side, client_side = socket.socketpair()
    client_side.close()
    server_side.close()
    request = HTTPRequest(method="GET", path="/", connection=server_side)

    with pytest.raises(ConnectionIOError):
        request.peer_address()


def test_write_on_closed_connection_raises_io_error() -> None:
    server_side, client_side = socket.socketpair()
    client_side.close()
    server_side.close()
    request = HTTPRequest(method="GET", path="/", connection=server_side)

    with pytest.raises(ConnectionIOError):
        request.send_bytes(b"data")


def test_unbound_request_cannot_respond() -> None:
    with pytest.raises(ConnectionIOError):
        HTTPRequest(method="GET", path="/").not_found("gone")


def test_http_response_serialization_sets_length() -> None:
    raw = HTTPResponse(status_code=404, body="missing").to_bytes()

    assert raw.startswith(b"HTTP/1.1 404 Not Found\r\n")
    assert b"Content-Type: text/plain; charset=utf-8\r\n" in raw
    assert b"Content-Length: 7\r\n" in raw
    assert b"Connection: close\r\n" in raw
    assert raw.endswith(b"\r\n\r\nmissing")
