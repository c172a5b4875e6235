"""
Host-specific configuration lookup.

The shared ``settings.env`` holds the defaults for every machine; a
``{hostname}-settings.env`` next to it overrides values for a single host.
"""

import socket
from pathlib import Path

BASE_SETTINGS_FILE = "settings.env"


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split(".")[0]


def host_settings_file(hostname: str | None = None) -> str:
    return f"{hostname or get_hostname()}-settings.env"


def settings_files(base_dir: Path | None = None) -> tuple[str, ...]:
    """
    Return the env files pydantic-settings should read, lowest priority first.

    Files that don't exist are left out, so a fresh checkout runs purely on
    environment variables and defaults.
    """
    base = base_dir or Path(".")
    candidates = [base / BASE_SETTINGS_FILE, base / host_settings_file()]
    return tuple(str(path) for path in candidates if path.exists())
