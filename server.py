"""Main HTTP server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import argparse
import itertools
import json
import logging
import socket
import threading
import time
from collections.abc import Callable

from config import (
    ACCEPT_POLL_SECS,
    HOST,
    LISTEN_BACKLOG,
    LOG_FORMAT,
    PORT,
    SOCKET_TIMEOUT_SECS,
)
from request import HTTPRequest, HTTPRequestParseError, read_request
from socket_handler import HTTPError
from utils import local_ip, qr_rows, share_url

logger = logging.getLogger(__name__)

Handler = Callable[[HTTPRequest], None]


class HTTPServer:
    """Accepts connections and hands each one to its own worker thread."""

    def __init__(
        self,
        handler: Handler,
        host: str = HOST,
        port: int = PORT,
        *,
        socket_timeout_secs: float | None = SOCKET_TIMEOUT_SECS,
        log_format: str = LOG_FORMAT,
    ) -> None:
        self.handler = handler
        self.host = host
        self.port = port
        self.socket_timeout_secs = socket_timeout_secs
        self.log_format = log_format

        self._server_socket: socket.socket | None = None
        self._connection_ids = itertools.count(1)
        self._running = False

    def start(self) -> None:
        """Bind, then accept connections until ``stop`` is called.

        A bind failure propagates to the caller.
        """
        self._running = True
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server_socket:
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(LISTEN_BACKLOG)
            server_socket.settimeout(ACCEPT_POLL_SECS)
            self.port = server_socket.getsockname()[1]
            self._server_socket = server_socket
            logger.info("Listening on %s:%s", self.host, self.port)

            while self._running:
                try:
                    client_socket, address = server_socket.accept()
                except socket.timeout:
                    continue
                except OSError as exc:
                    # A closed listener means stop() ran.
                    if not self._running or server_socket.fileno() == -1:
                        break
                    logger.warning("Unable to accept connection: %s", exc)
                    continue

                connection_id = next(self._connection_ids)
                worker = threading.Thread(
                    target=self._handle_client,
                    args=(client_socket, address, connection_id),
                    name=f"http-conn-{connection_id}",
                    daemon=True,
                )
                worker.start()

    def stop(self) -> None:
        self._running = False
        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None

    def _handle_client(
        self,
        client_socket: socket.socket,
        address: tuple[str, int],
        connection_id: int,
    ) -> None:
        with client_socket:
            client_socket.settimeout(self.socket_timeout_secs)
            started_at = time.perf_counter()
            try:
                request = read_request(client_socket)
            except HTTPRequestParseError as exc:
                logger.info("client=%s connection_id=%s parse_error=%s", address[0], connection_id, exc)
                return
            except HTTPError as exc:
                logger.warning("client=%s connection_id=%s io_error=%s", address[0], connection_id, exc)
                return

            try:
                self.handler(request)
            except HTTPError as exc:
                logger.warning("client=%s connection_id=%s handler_error=%s", address[0], connection_id, exc)
                return
            except Exception:
                logger.exception("Unhandled error in request handler")
                return

            self._log_request(
                address=address,
                request=request,
                started_at=started_at,
                connection_id=connection_id,
            )

    def _log_request(
        self,
        *,
        address: tuple[str, int],
        request: HTTPRequest,
        started_at: float,
        connection_id: int,
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        event = {
            "client": address[0],
            "method": request.method,
            "path": request.path,
            "connection_id": connection_id,
            "body_bytes": len(request.body.encode("utf-8")),
            "latency_ms": round(duration_ms, 3),
        }
        if self.log_format == "json":
            logger.info(json.dumps(event, sort_keys=True))
            return

        logger.info(
            "client=%s method=%s path=%s connection_id=%s body_bytes=%s duration_ms=%.2f",
            event["client"],
            event["method"],
            event["path"],
            event["connection_id"],
            event["body_bytes"],
            duration_ms,
        )


def serve(port: int, handler: Handler) -> None:
    """Serve ``handler`` on all interfaces at ``port``; blocks until stopped."""
    HTTPServer(handler, host="0.0.0.0", port=port).start()


def share_file_handler(file_path: str) -> Handler:
    """Build a handler that answers every request with ``file_path``."""

    def handle(request: HTTPRequest) -> None:
        request.send_file(file_path)
        logger.info("Sent %s to %s", file_path, request.peer_address()[0])

    return handle


def _port(value: str) -> int:
    port = int(value)
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError("port must be between 1 and 65535")
    return port


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Share a file over HTTP on the local network")
    parser.add_argument("path", help="file to serve; a leading ~ expands to $HOME")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("-p", "--port", type=_port, default=PORT)
    parser.add_argument("--socket-timeout", type=float, default=SOCKET_TIMEOUT_SECS)
    parser.add_argument("--log-format", choices=["plain", "json"], default=LOG_FORMAT)
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = _parse_args()
    logging.basicConfig(level=logging.INFO)
    server = HTTPServer(
        share_file_handler(args.path),
        host=args.host,
        port=args.port,
        socket_timeout_secs=args.socket_timeout,
        log_format=args.log_format,
    )
    url = share_url(local_ip(), args.port, args.path)
    for row in qr_rows(url):
        print(row)
    print(url)
    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()
