"""
Utilities package for Photo Frame.

Pure helpers that support the main application logic without side effects.
"""

from .host_config import get_hostname, settings_files
from .naming import has_image_extension, is_hidden_name, sanitize_filename, unique_storage_name

__all__ = [
    "get_hostname",
    "settings_files",
    "has_image_extension",
    "is_hidden_name",
    "sanitize_filename",
    "unique_storage_name",
]
