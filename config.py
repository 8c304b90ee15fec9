"""Configuration constants for the file-sharing HTTP server."""

HOST: str = "0.0.0.0"
PORT: int = 8008
BUFFER_SIZE: int = 4096
SOCKET_TIMEOUT_SECS: float | None = None
ACCEPT_POLL_SECS: float = 0.2
LISTEN_BACKLOG: int = 128
LOG_FORMAT: str = "plain"
HOME_ENV_VAR: str = "HOME"
