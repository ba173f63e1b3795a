from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseModel):
    url: Optional[str] = Field(default=None)
    key: Optional[str] = Field(default=None)
    bucket: str = Field(default="documents")


class GoogleDriveSettings(BaseModel):
    client_id: Optional[str] = Field(default=None)
    client_secret: Optional[str] = Field(default=None)
    refresh_token: Optional[str] = Field(default=None)
    token_uri: str = Field(default="https://oauth2.googleapis.com/token")
    folder_name: str = Field(default="EDMS Documents")


class OpenAISettings(BaseModel):
    api_key: Optional[str] = Field(default=None)
    model: str = Field(default="gpt-4o")


_BASE_DIR = Path(__file__).resolve().parent.parent
_ROOT_ENV = _BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ROOT_ENV),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field(default="development", alias="APP_ENV")
    # Unset selects the in-memory backend.
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    upload_dir: Path = Field(default=Path("uploads"), alias="UPLOAD_DIR")
    max_upload_bytes: int = Field(default=20 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    default_user_id: int = Field(default=1, alias="DEFAULT_USER_ID")
    allow_origins: Union[list[str], str] = Field(
        default_factory=lambda: ["http://localhost:5000", "http://127.0.0.1:5000"], alias="CORS_ALLOW_ORIGINS"
    )
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")
    sentry_dsn: Optional[str] = Field(default=None, alias="SENTRY_DSN")
    sentry_traces_sample_rate: float = Field(default=0.0, alias="SENTRY_TRACES_SAMPLE_RATE")

    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    google_drive: GoogleDriveSettings = Field(default_factory=GoogleDriveSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)

    @model_validator(mode="after")
    def load_nested_env(self) -> "Settings":
        """Fill the credential groups from their flat environment names."""
        self.supabase = SupabaseSettings(
            url=os.getenv("SUPABASE_URL", self.supabase.url),
            key=os.getenv("SUPABASE_KEY", self.supabase.key),
            bucket=os.getenv("SUPABASE_BUCKET", self.supabase.bucket),
        )
        self.google_drive = GoogleDriveSettings(
            client_id=os.getenv("GOOGLE_DRIVE_CLIENT_ID", self.google_drive.client_id),
            client_secret=os.getenv("GOOGLE_DRIVE_CLIENT_SECRET", self.google_drive.client_secret),
            refresh_token=os.getenv("GOOGLE_DRIVE_REFRESH_TOKEN", self.google_drive.refresh_token),
            token_uri=self.google_drive.token_uri,
            folder_name=os.getenv("GOOGLE_DRIVE_FOLDER_NAME", self.google_drive.folder_name),
        )
        self.openai = OpenAISettings(
            api_key=os.getenv("OPENAI_API_KEY", self.openai.api_key),
            model=os.getenv("OPENAI_MODEL", self.openai.model),
        )

        raw_origins: str | None
        if isinstance(self.allow_origins, str):
            raw_origins = self.allow_origins
        else:
            raw_origins = os.getenv("CORS_ALLOW_ORIGINS")

        if raw_origins:
            self.allow_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]

        if self.database_url is not None and not self.database_url.strip():
            self.database_url = None

        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
