"""
Application settings and configuration management.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Log level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ImportedBomAction(str, Enum):
    """How imported BOMs are represented in a generated POM."""
    IMPORT = "import"
    COPY = "copy"


MAVEN_CENTRAL_URL = "https://repo.maven.apache.org/maven2"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Logging settings
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON log records")

    # Repository settings
    repository_urls: List[str] = Field(
        default=[MAVEN_CENTRAL_URL],
        description="Remote Maven repositories, searched in order"
    )
    local_repository: Optional[str] = Field(
        default=None,
        description="Directory laid out as a Maven repository, searched before remote repositories"
    )
    request_timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")
    user_agent: str = Field(default="dependency-management", description="User agent for repository requests")

    # Resolution settings
    resolution_cache_size: int = Field(default=256, description="Maximum number of cached BOM resolutions")
    max_import_depth: int = Field(default=50, description="Maximum nesting of BOM imports and parents")

    model_config = SettingsConfigDict(
        env_prefix="DEPENDENCY_MANAGEMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_settings(self) -> List[str]:
        """Validate settings and return list of warnings."""
        warnings = []

        if not self.repository_urls and not self.local_repository:
            warnings.append("No repositories are configured - BOM imports cannot be resolved")

        for url in self.repository_urls:
            if url.startswith("http://"):
                warnings.append(f"Repository {url} is not using HTTPS")

        if self.request_timeout_seconds <= 0:
            warnings.append("Request timeout must be positive")

        if self.resolution_cache_size < 0:
            warnings.append("Resolution cache size must not be negative")

        return warnings


class PomCustomizationSettings(BaseSettings):
    """Settings for customization of generated POMs."""

    enabled: bool = Field(default=True, description="Add dependency management to generated POMs")
    imported_bom_action: ImportedBomAction = Field(
        default=ImportedBomAction.IMPORT,
        description="Import BOMs in the generated POM, or copy their managed versions into it"
    )

    model_config = SettingsConfigDict(
        env_prefix="DEPENDENCY_MANAGEMENT_POM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
