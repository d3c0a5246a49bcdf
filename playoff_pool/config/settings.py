"""Application settings and configuration management.

This file implements a centralized configuration system using Pydantic Settings.
It handles environment variables, default values, and configuration validation
for the playoff pool stat pipeline.

Key Benefits:
- Type safety: All settings have defined types with validation
- Environment integration: Automatically loads from .env files
- One place to point the importer at a different database or stats provider

For beginners:

Pydantic Settings: A Python library that automatically validates configuration
and loads values from environment variables, .env files, and defaults.

Environment Variables: System variables that configure applications without
changing code. Example: DATABASE_URL=sqlite:///pool.db
"""

from datetime import datetime
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    Configuration Sources (in priority order):
    1. Environment variables (highest priority)
    2. .env file values
    3. Default values defined here (lowest priority)

    Example Usage:
    - In code: `settings.database_url`
    - Environment variable: `DATABASE_URL=sqlite:///prod.db`
    - .env file: `espn_base_url=http://localhost:9000/nfl`
    """

    model_config = SettingsConfigDict(
        env_file=".env",  # Load from .env file in project root
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow DATABASE_URL or database_url
    )

    # API Configuration - FastAPI admin server settings
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Database Configuration - SQLAlchemy connection settings
    database_url: str = "sqlite:///data/database/playoff_pool.db"
    database_pool_size: int = 5  # Connection pool size (max concurrent connections)
    database_echo: bool = False  # Log all SQL queries (True for debugging)

    # Logging Configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    log_file: Path = Path("data/logs/playoff_pool.log")

    # Stats providers - base URLs can be pointed at a mirror for testing
    espn_base_url: str = "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
    sleeper_base_url: str = "https://api.sleeper.app/v1"

    # HTTP behaviour shared by every provider client
    http_timeout: float = 15.0  # Request timeout in seconds
    http_max_retries: int = 3
    http_retry_delay: float = 1.0  # Base delay, doubled on every retry
    http_user_agent: str = "playoff-pool/1.0"

    # Sleeper serves its full player directory (~5MB) from one endpoint;
    # keep a fetched copy this long before asking again
    sleeper_players_cache_ttl: int = 3600

    # CSV ingestion
    csv_delimiter: str = ","
    csv_max_upload_bytes: int = 10 * 1024 * 1024  # 10MB

    # Known-bad provider names. Keys are "Player Name|TEAM", values are the
    # external id of the internal player the record should resolve to.
    identity_aliases: dict[str, str] = {}

    # Season used when a fetch request does not name one
    default_season_year: int | None = None

    @property
    def project_root(self) -> Path:
        """Project root directory (playoff_pool/config/settings.py -> root)."""
        return Path(__file__).parent.parent.parent

    @property
    def data_dir(self) -> Path:
        """Directory for databases, logs and cached provider payloads."""
        return self.project_root / "data"

    @property
    def season_year(self) -> int:
        """Season to fetch when none is given.

        NFL seasons start in September and their playoffs finish in February,
        so before August we are still in the previous year's season.
        """
        if self.default_season_year:
            return self.default_season_year
        now = datetime.now()
        return now.year if now.month >= 8 else now.year - 1


# Global settings instance - singleton pattern for application-wide configuration
# Example: from playoff_pool.config.settings import settings; print(settings.database_url)
settings = Settings()
