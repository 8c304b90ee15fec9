"""Utility helpers shared across server modules."""

import os
import socket
from pathlib import Path

import qrcode
import qrcode.constants

from config import HOME_ENV_VAR

DARK_CELL = "██"
LIGHT_CELL = "  "


def expand_home(path: str) -> str:
    """Replace a leading ``~`` with the home directory from the environment.

    The home value and the remainder are concatenated literally, so ``~/a``
    becomes ``$HOME/a`` and ``~a`` becomes ``$HOMEa``. Raises ``KeyError``
    when the variable is unset.
    """
    if not path.startswith("~"):
        return path
    return os.environ[HOME_ENV_VAR] + path.removeprefix("~")


def local_ip() -> str:
    """Best-effort address of the interface used for outbound traffic."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as probe:
            # UDP connect only selects a route; nothing is sent.
            probe.connect(("10.255.255.255", 1))
            return probe.getsockname()[0]
    except OSError:
        pass

    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return "127.0.0.1"


def share_url(host: str, port: int, file_path: str) -> str:
    return f"http://{host}:{port}/{Path(file_path).name}"


def qr_rows(text: str) -> list[str]:
    """Render ``text`` as a QR code, two full blocks per dark module."""
    code = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_L, border=0)
    code.add_data(text)
    code.make(fit=True)
    return ["".join(DARK_CELL if cell else LIGHT_CELL for cell in row) for row in code.get_matrix()]
