"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Arena Auth API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Profile directory
    database_url: str = Field(..., alias="DATABASE_URL")
    database_pool_size: int = Field(default=5, alias="DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(default=10, alias="DATABASE_MAX_OVERFLOW")

    # Redis (login rate limiting)
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_username: str = Field(default="default", alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_decode_responses: bool = Field(default=True, alias="REDIS_DECODE_RESPONSES")

    # Firebase
    firebase_credentials_path: str | None = Field(
        default=None,
        alias="FIREBASE_CREDENTIALS_PATH",
        description="Path to Firebase service account JSON file",
    )

    firebase_config_json: str | None = Field(
        default=None,
        alias="FIREBASE_CONFIG_JSON",
        description="Raw JSON string of the Firebase service account",
    )

    firebase_web_api_key: str = Field(
        default="",
        alias="FIREBASE_WEB_API_KEY",
        description="Web API key used for password sign-in against Identity Toolkit",
    )
    firebase_auth_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1",
        alias="FIREBASE_AUTH_URL",
    )
    firebase_token_url: str = Field(
        default="https://securetoken.googleapis.com/v1/token",
        alias="FIREBASE_TOKEN_URL",
    )
    firebase_revoke_on_sign_out: bool = Field(default=False, alias="FIREBASE_REVOKE_ON_SIGN_OUT")

    # Token store
    token_store_url: str = Field(
        default="http://localhost:5000/api/v1/token",
        alias="TOKEN_STORE_URL",
    )
    token_store_api_key: str = Field(default="", alias="TOKEN_STORE_API_KEY")
    token_store_create_method: str = Field(default="POST", alias="TOKEN_STORE_CREATE_METHOD")
    token_store_update_method: str = Field(default="PUT", alias="TOKEN_STORE_UPDATE_METHOD")
    # Unset means no timeout on token store calls
    token_store_timeout: float | None = Field(default=None, alias="TOKEN_STORE_TIMEOUT")

    # Registration surface
    registration_strict_status: bool = Field(
        default=False,
        alias="REGISTRATION_STRICT_STATUS",
        description="Return 400 instead of 200 when registration fails",
    )

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_per_minute: int = Field(default=60, alias="RATE_LIMIT_PER_MINUTE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
