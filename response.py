"""HTTP response wire formats."""

from dataclasses import dataclass

OCTET_STREAM_HEAD: bytes = (
    b"HTTP/1.1 200 OK\r\n"
    b"Content-Type: application/octet-stream\r\n"
    b"\r\n"
)

# Known defect kept for compatibility: no final LF and no blank line before the body.
NOT_FOUND_HEAD: bytes = b"HTTP/1.1 404 Not Found\r\n\r"

REASON_PHRASES: dict[int, str] = {
    404: "Not Found",
}


@dataclass(slots=True)
class HTTPResponse:
    status_code: int
    body: bytes | str = b""

    def __post_init__(self) -> None:
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")

    def to_bytes(self) -> bytes:
        """Serialize the response into well-formed HTTP/1.1 wire format bytes."""
        reason = REASON_PHRASES.get(self.status_code, "Unknown")
        header_lines = [
            f"HTTP/1.1 {self.status_code} {reason}",
            "Content-Type: text/plain; charset=utf-8",
            f"Content-Length: {len(self.body)}",
            "Connection: close",
        ]
        head = "\r\n".join(header_lines).encode("iso-8859-1") + b"\r\n\r\n"
        return head + self.body
