"""Configuration management for VisionDesk."""

from typing import List, Literal, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, SecretStr, field_validator


class DatabaseConfig(BaseSettings):
    """Database configuration."""

    url: str = Field(
        default="sqlite:///visiondesk.db",
        description="SQLAlchemy database URL",
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement",
    )

    class Config:
        env_prefix = "DATABASE_"


class AuthConfig(BaseSettings):
    """Authentication and authorization configuration."""

    jwt_secret: SecretStr = Field(
        default=SecretStr("visiondesk-development-secret"),
        description="Secret used to sign access tokens",
    )
    jwt_refresh_secret: SecretStr = Field(
        default=SecretStr("visiondesk-development-refresh-secret"),
        description="Secret used to sign refresh tokens",
    )
    algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm",
    )
    access_token_expire_minutes: int = Field(
        default=60,
        ge=1,
        description="Access token lifetime in minutes",
    )
    refresh_token_expire_days: int = Field(
        default=7,
        ge=1,
        description="Refresh token lifetime in days",
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor for password hashes",
    )
    min_password_length: int = Field(
        default=6,
        ge=1,
        description="Minimum accepted password length",
    )
    moderator_verify_scope: Literal["global", "project"] = Field(
        default="global",
        description="Whether moderators may verify tickets in any project or only in projects they can read",
    )
    initial_admin_email: Optional[str] = Field(
        default=None,
        description="Email of the admin account seeded at startup when no admin exists",
    )
    initial_admin_password: Optional[SecretStr] = Field(
        default=None,
        description="Password of the seeded admin account",
    )
    initial_admin_name: str = Field(
        default="Administrator",
        description="Display name of the seeded admin account",
    )

    class Config:
        env_prefix = "AUTH_"


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server",
    )
    port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="Port for the API server",
    )
    enable_cors: bool = Field(
        default=True,
        description="Enable CORS for the API server",
    )
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed by CORS",
    )

    class Config:
        env_prefix = "SERVER_"


class AnalyticsConfig(BaseSettings):
    """Analytics configuration."""

    leaderboard_size: int = Field(
        default=10,
        ge=1,
        description="Number of users in the dashboard performance leaderboard",
    )
    recent_activity_limit: int = Field(
        default=10,
        ge=1,
        description="Number of recently updated tasks on the dashboard",
    )
    default_time_frame: Literal["7d", "30d", "90d", "1y"] = Field(
        default="30d",
        description="Time frame used when a request does not give one",
    )

    class Config:
        env_prefix = "ANALYTICS_"


class Settings(BaseSettings):
    """Main settings combining all configurations."""

    # Sub-configurations
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)

    # General settings
    environment: Literal["development", "production", "test"] = Field(
        default="development",
        description="Deployment environment",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value):
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def expose_errors(self) -> bool:
        """Whether unexpected error details may be returned to clients."""
        return self.debug and self.environment != "production"

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from environment and files."""
        from dotenv import load_dotenv
        load_dotenv()
        return cls()


# Global settings instance
settings = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global settings
    if settings is None:
        settings = Settings.load()
    return settings


def reload_settings():
    """Reload settings from environment."""
    global settings
    settings = Settings.load()
    return settings
