from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="TABOL_", extra="ignore")

    # Paths
    tables_dir: Path = Path("tables")
    table_extension: str = ".tbl"

    # Generation
    default_count: int = Field(default=10, ge=0)
    max_depth: int = Field(default=100, ge=1)           # Nested interpolations before giving up
    seed: int | None = None                             # Fixed seed for reproducible output

    # Logging
    log_level: str = "WARNING"
    log_file: Path | None = None
    enable_color: bool = True

    def definition_path(self, definition: str) -> Path:
        """Where the definition named `definition` lives, e.g. tables/names.tbl."""
        return self.tables_dir / f"{definition}{self.table_extension}"


settings = Settings()
