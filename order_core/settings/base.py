from pydantic_settings import BaseSettings, SettingsConfigDict


class OrderCoreBaseSettings(BaseSettings):
    """Every settings module reads the environment, then an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )
