import hashlib
import secrets
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.host_config import get_hostname, settings_files


def _generate_admin_password() -> str:
    return secrets.token_hex(4)


class Settings(BaseSettings):
    # Filstier
    photos_directory: str = "photos"
    photos_url_prefix: str = "/photos"
    frontend_directory: str = "public"

    # Billedformater der vises i slideshowet
    image_extensions: List[str] = ["jpg", "jpeg", "png", "gif", "webp"]

    # Admin login
    admin_username: str = "admin"
    admin_password: str = Field(default_factory=_generate_admin_password)
    token_secret: Optional[str] = None  # Derived from the credentials when empty
    token_ttl_seconds: int = 12 * 60 * 60
    login_max_failures: int = 5
    login_failure_window_seconds: int = 300

    # Upload
    max_upload_files: int = 50

    # Synkronisering
    coalesce_window_seconds: float = 0.5  # Triggers inside the window collapse into one rebuild
    polling_interval_seconds: float = 1.0  # External change detection interval
    skip_unchanged_snapshots: bool = True
    websocket_send_timeout_seconds: float = 5.0

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3000
    cors_allow_origins: List[str] = ["*"]

    # Logging konfiguration
    log_level: str = "INFO"
    log_file_path: str = "logs/photoframe.log"
    log_retention_days: int = 14

    model_config = SettingsConfigDict(env_file=settings_files(), extra="ignore")

    @property
    def photos_path(self) -> Path:
        """Returnerer photo directory som absolut Path objekt"""
        return Path(self.photos_directory).resolve()

    @property
    def log_directory(self) -> Path:
        """Returnerer log directory som Path objekt"""
        return Path(self.log_file_path).parent

    @property
    def signing_key(self) -> bytes:
        """
        Key used to sign session tokens.

        Without an explicit ``token_secret`` the key is derived from the admin
        credential pair, so tokens survive restarts and die with a password
        change.
        """
        if self.token_secret:
            return self.token_secret.encode("utf-8")
        material = f"{self.admin_username}:{self.admin_password}".encode("utf-8")
        return hashlib.sha256(material).digest()

    @property
    def config_file_info(self) -> dict:
        """Return information about which configuration files are being used."""
        return {
            "hostname": get_hostname(),
            "active_config_files": list(settings_files()),
        }
