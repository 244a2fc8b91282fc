from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "Clinic API"
    port: int = 5000
    log_level: str = "INFO"

    db_user: str = "clinic"
    db_password: str = "clinic"  # pragma: allowlist secret
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "clinic"
    database_url: str | None = None
    db_pool_size: int = 10
    db_pool_timeout: int = 30

    cors_origins: list[str] = ["http://localhost:3000"]

    # Placeholders until therapist assignment and headquarter routing exist.
    default_therapist_id: int = 1
    default_headquarter_id: int = 1

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def sqlalchemy_url(self) -> str:
        """Return the explicit database URL or assemble one from the DB_* parts."""

        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
