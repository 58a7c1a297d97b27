import json
from pathlib import Path
from typing import Annotated, Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL

DEFAULT_FRONTEND_ORIGIN = "http://localhost:5173"


class Settings(BaseSettings):
    """Runtime configuration read from the environment and ``.env``."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    app_name: str = "SpeedIssuesFlow"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False, alias="DEBUG")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8080, alias="PORT")

    # Database: SQLite by default, any SQLAlchemy driver otherwise
    db_path: str = Field(default="data/sif.db", description="SQLite database file", alias="DB_PATH")
    db_driver_async: str = Field(default="sqlite+aiosqlite", alias="DB_DRIVER_ASYNC")
    db_driver_sync: str = Field(default="sqlite", alias="DB_DRIVER_SYNC")
    db_host: Optional[str] = Field(default=None, alias="DB_HOST")
    db_port: Optional[int] = Field(default=None, alias="DB_PORT")
    db_user: Optional[str] = Field(default=None, alias="DB_USER")
    db_password: Optional[str] = Field(default=None, alias="DB_PASSWORD")
    db_name: Optional[str] = Field(default=None, alias="DB_NAME")
    db_schema: Optional[str] = Field(default=None, description="PostgreSQL search_path", alias="DB_SCHEMA")
    db_echo: bool = Field(default=False, alias="DB_ECHO")
    sqlite_busy_timeout_seconds: int = Field(default=30, alias="SQLITE_BUSY_TIMEOUT_SECONDS")
    sqlite_journal_mode: str = Field(default="WAL", alias="SQLITE_JOURNAL_MODE")
    sqlite_synchronous: str = Field(default="NORMAL", alias="SQLITE_SYNCHRONOUS")

    # Authentication
    auth_jwt_secret: str = Field(default="change-me", alias="AUTH_JWT_SECRET")
    auth_access_token_lifetime: int = Field(
        default=3600, description="Access token lifetime in seconds", alias="AUTH_ACCESS_TOKEN_LIFETIME"
    )
    auth_reset_token_secret: str = Field(default="change-me-reset", alias="AUTH_RESET_TOKEN_SECRET")
    auth_verification_token_secret: str = Field(
        default="change-me-verify", alias="AUTH_VERIFICATION_TOKEN_SECRET"
    )
    auth_superuser_email: str = Field(
        default="admin@internal.sfl",
        description="Bootstrap administrator created at startup",
        alias="AUTH_SUPERUSER_EMAIL",
    )
    auth_superuser_password: str = Field(default="Admin123!@#", alias="AUTH_SUPERUSER_PASSWORD")

    # Authorization
    casbin_auto_save: bool = Field(default=True, alias="CASBIN_AUTO_SAVE")
    strict_capabilities: Optional[bool] = Field(
        default=None,
        description="Raise on unknown capability names, follows DEBUG when unset",
        alias="STRICT_CAPABILITIES",
    )

    # Uploaded files
    media_root: str = Field(default="data/media", alias="MEDIA_ROOT")
    media_base_url: str = Field(default="http://localhost:8080/media", alias="MEDIA_BASE_URL")
    max_upload_size: int = Field(
        default=50 * 1024 * 1024, description="Maximum upload size in bytes", alias="MAX_UPLOAD_SIZE"
    )

    # Share links
    share_base_url: str = Field(
        default=DEFAULT_FRONTEND_ORIGIN,
        description="Front-end origin used to build share links",
        alias="SHARE_BASE_URL",
    )
    share_token_bytes: int = Field(default=24, alias="SHARE_TOKEN_BYTES")

    # Report generation
    llm_provider: Literal["ollama", "openai", "gemini", "openrouter"] = Field(
        default="gemini", alias="LLM_PROVIDER"
    )
    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_HOST")
    ollama_model: str = Field(default="llama3", alias="OLLAMA_MODEL")
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")
    google_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="models/gemini-2.0-flash", alias="GEMINI_MODEL")
    openrouter_api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")
    openrouter_model: Optional[str] = Field(default="openai/gpt-4o-mini", alias="OPENROUTER_MODEL")
    openrouter_max_tokens: int = Field(default=2048, alias="OPENROUTER_MAX_TOKENS")
    temperature: float = Field(default=0.3, alias="LLM_TEMPERATURE")
    max_tokens: int = Field(default=2048, alias="LLM_MAX_TOKENS")
    operation_timeout: int = Field(
        default=120, description="Report generation timeout in seconds", alias="LLM_TIMEOUT"
    )

    # HTTP
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [DEFAULT_FRONTEND_ORIGIN], alias="CORS_ORIGINS"
    )

    # Logging
    log_file: Optional[str] = Field(default="sif.log", alias="LOG_FILE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: Any) -> list[str]:
        """Accept a JSON list or a comma separated string; a wildcard falls back to the front-end."""
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                try:
                    value = json.loads(value)
                except json.JSONDecodeError as exc:
                    raise ValueError("Invalid JSON for CORS origins") from exc
            else:
                value = value.split(",")
        if value is None:
            value = []
        if not isinstance(value, list):
            raise ValueError("CORS origins must be a list or comma separated string")

        origins = [str(item).strip() for item in value if str(item).strip()]
        if not origins or origins == ["*"]:
            return [DEFAULT_FRONTEND_ORIGIN]
        return origins

    @property
    def capabilities_strict(self) -> bool:
        if self.strict_capabilities is None:
            return self.debug
        return self.strict_capabilities

    def _dsn(self, driver: str) -> str:
        driver = driver.lower()
        if driver.startswith("sqlite"):
            db_path = Path(self.db_path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
            return f"{driver}:///{db_path.as_posix()}"

        url = URL.create(
            drivername=driver,
            username=self.db_user,
            password=self.db_password,
            host=self.db_host or "localhost",
            port=self.db_port or (5432 if "postgres" in driver else None),
            database=self.db_name,
        )
        return url.render_as_string(hide_password=False)

    @property
    def database_dsn_async(self) -> str:
        return self._dsn(self.db_driver_async or "sqlite+aiosqlite")

    @property
    def database_dsn_sync(self) -> str:
        return self._dsn(self.db_driver_sync or "sqlite")

    @property
    def media_root_path(self) -> Path:
        media_root = Path(self.media_root)
        media_root.mkdir(parents=True, exist_ok=True)
        return media_root


settings = Settings()


def get_current_model_info() -> dict[str, Optional[str]]:
    """Provider and model used for reports."""
    models = {
        "ollama": settings.ollama_model,
        "openai": settings.openai_model,
        "gemini": settings.gemini_model,
        "openrouter": settings.openrouter_model,
    }
    return {"llm_provider": settings.llm_provider, "llm_model": models.get(settings.llm_provider)}
