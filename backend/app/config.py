"""Application configuration with environment variable support.

All settings can be overridden via environment variables prefixed with ``FEATUREBOARD_``,
or via a ``.env`` file in the project root.

Examples::

    FEATUREBOARD_PORT=9000 featureboard start
    FEATUREBOARD_DATA_DIR=/var/data/featureboard featureboard start
    FEATUREBOARD_ADMIN_POLICY=email_domain FEATUREBOARD_ADMIN_EMAIL_DOMAIN=acme.com featureboard start
"""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root: two levels up from this file (backend/app/config.py -> featureboard/)
_BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Featureboard configuration: all values overridable via env vars."""

    model_config = SettingsConfigDict(
        env_prefix="FEATUREBOARD_",
        env_file=str(_BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Paths
    data_dir: Path = _BASE_DIR / "data"

    # Logging
    log_level: str = "INFO"

    # Authorization
    admin_policy: Literal["role", "email_domain", "allow_list"] = "role"
    admin_email_domain: str = "yourcompany.com"
    admin_emails: list[str] = []

    # Lifecycle rules
    status_transitions: Literal["free", "forward"] = "free"
    user_deletion_policy: Literal["forbid", "cascade", "reassign"] = "forbid"

    # Sessions
    session_ttl_hours: int = 24 * 7
    session_cookie_name: str = "featureboard_session"
    bcrypt_rounds: int = 12

    # Attachments
    max_attachment_bytes: int = 10 * 1024 * 1024

    @property
    def db_path(self) -> Path:
        return self.data_dir / "featureboard.db"

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.db_path}"

    @property
    def attachments_dir(self) -> Path:
        return self.data_dir / "attachments"


# Singleton instance, import this everywhere
settings = Settings()

BASE_DIR = _BASE_DIR
DATA_DIR = settings.data_dir
DATABASE_URL = settings.database_url
