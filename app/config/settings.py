from urllib.parse import urlsplit

from pydantic_settings import BaseSettings, SettingsConfigDict

# Origins accepted by the origin guard outside production when nothing is configured
DEV_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:3001"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    environment: str = "development"  # "production" enables origin validation
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]

    # Origin guard - scheme+host entries, e.g. "https://example.com"
    # Empty list = derive from site_url (or localhost in development)
    allowed_origins: list[str] = []
    site_url: str = ""

    # GitHub API
    github_token: str = ""
    github_api_base: str = "https://api.github.com"

    # Database - empty string = no database, timelines come from the GitHub API
    database_url: str = ""
    # Force the live GitHub API path even when a database is configured
    use_github_api: bool = False

    # Rate limiting (per client identity)
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60

    # In-process response cache
    cache_maxsize: int = 512

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() == "production"

    @property
    def database_enabled(self) -> bool:
        """Check if the database read path should be used."""
        return bool(self.database_url) and not self.use_github_api

    @property
    def origin_allow_list(self) -> list[str]:
        """Normalized scheme+host entries accepted by the origin guard."""
        if self.allowed_origins:
            return [o.strip().lower().rstrip("/") for o in self.allowed_origins if o.strip()]

        if self.site_url:
            parts = urlsplit(self.site_url)
            if parts.scheme and parts.netloc:
                origin = f"{parts.scheme}://{parts.netloc}".lower()
                host = parts.netloc.lower()
                if host.startswith("www."):
                    return [origin]
                return [origin, f"{parts.scheme}://www.{host}"]

        if self.is_production:
            return []
        return list(DEV_ORIGINS)


settings = Settings()
