"""Database and application configuration."""

from pathlib import Path
from typing import List, Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from PLACEMARK_* environment variables."""

    # Where the ledger and catalog live
    data_dir: Path = Path.home() / ".placemark"
    database_path: Optional[Path] = None

    # SQLAlchemy settings
    sql_echo: bool = False  # Set to True to log all SQL queries

    # Extra folders that operations must never write into
    protected_folders: List[str] = []

    @property
    def resolved_database_path(self) -> Path:
        """Database file, defaulting to placemark.db inside data_dir."""
        if self.database_path is not None:
            return Path(self.database_path).expanduser()
        return Path(self.data_dir).expanduser() / "placemark.db"

    @property
    def database_url(self) -> str:
        """Construct SQLite database URL."""
        return f"sqlite:///{self.resolved_database_path}"

    model_config = ConfigDict(
        env_prefix="PLACEMARK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra fields from .env
    )


# Global settings instance
settings = Settings()
