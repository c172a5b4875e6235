import re
import secrets
import time
from typing import Iterable

# Everything outside letters, digits, dot and hyphen is replaced
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(original_name: str) -> str:
    """Replace characters that are unsafe in a storage name with underscores."""
    return _UNSAFE_CHARS.sub("_", original_name)


def unique_storage_name(original_name: str) -> str:
    """
    Build a collision-resistant storage name for an uploaded file.

    Format: ``<epoch-ms>-<random 0..999999999>-<sanitized original>``.
    Two uploads of the same original name in the same millisecond still get
    different names thanks to the random component.
    """
    timestamp_ms = int(time.time() * 1000)
    random_suffix = secrets.randbelow(1_000_000_000)
    return f"{timestamp_ms}-{random_suffix}-{sanitize_filename(original_name)}"


def has_image_extension(name: str, extensions: Iterable[str]) -> bool:
    suffix = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return suffix in {ext.lower().lstrip(".") for ext in extensions}


def is_hidden_name(name: str) -> bool:
    return name.startswith(".")
