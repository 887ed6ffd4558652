"""Configuration management using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CONFLUENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Confluence instance
    base_url: str = Field(
        default="",
        description="Confluence base URL (e.g. https://example.atlassian.net)",
    )
    username: str = Field(
        default="",
        description="Atlassian account email (cloud) or username (server)",
    )
    api_token: str = Field(
        default="",
        description="Atlassian API token (cloud) or password (server)",
    )
    api_base_path: str = Field(
        default="/wiki/api/v2",
        description="REST API path appended to base_url",
    )

    # HTTP
    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )

    def is_configured(self) -> bool:
        """Check if enough is set to talk to a Confluence instance."""
        return bool(self.base_url and self.username and self.api_token)


# Global settings instance
settings = Settings()
