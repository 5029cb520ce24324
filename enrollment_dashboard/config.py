from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_csv(raw: Any, fallback: List[str]) -> List[str]:
    """
    Normalize list-ish env values.

    Supports:
      - list[str] (already parsed)
      - comma-separated string: "01, 1, 001"
      - empty / None -> fallback
    """
    if raw is None:
        return list(fallback)

    if isinstance(raw, (list, tuple)):
        items = [str(x).strip() for x in raw]
        items = [x for x in items if x]
        return items or list(fallback)

    s = str(raw).strip()
    if not s:
        return list(fallback)

    parts = [p.strip() for p in s.split(",")]
    parts = [p for p in parts if p]
    return parts or list(fallback)


DEFAULT_PRIMARY_ROOT_CODES = ["01", "1", "001"]
DEFAULT_RECRUITERS_BASE_URL = "https://instituto-up-formulario.vercel.app/?source="


class Settings(BaseSettings):
    """
    Central app settings.

    - Normalize user-provided values (CORS, log level, DB URL, root codes)
    - Provide a single resolved DB URL source of truth
    - Remain permissive for local dev
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # App identity
    env: str = Field(default="local", alias="APP_ENV")
    app_name: str = Field(default="enrollment-dashboard", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Server runtime (uvicorn)
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS")

    # Preferred: a real SQLAlchemy URL
    database_url: str = Field(default="", alias="DATABASE_URL")

    # Fallback when DATABASE_URL is not set
    db_path: str = Field(default="./data/enrollments.sqlite", alias="DB_PATH")

    # Optional: if you deploy publicly, set this so /health can report it
    public_api_base: str = Field(default="", alias="PUBLIC_API_BASE")

    # Referral links handed out to recruiters: base + two-digit code
    recruiters_base_url: str = Field(default=DEFAULT_RECRUITERS_BASE_URL, alias="RECRUITERS_BASE_URL")

    # Conventional top-of-hierarchy codes, tried in order when picking the primary root
    primary_root_codes: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_PRIMARY_ROOT_CODES),
        alias="PRIMARY_ROOT_CODES",
    )

    # -------------------------
    # Validators / normalizers
    # -------------------------

    @field_validator("log_level", mode="before")
    @classmethod
    def _norm_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip().upper()
        return s or "INFO"

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _norm_cors_allow_origins(cls, v: Any) -> list[str]:
        return _split_csv(v, ["*"])

    @field_validator("primary_root_codes", mode="before")
    @classmethod
    def _norm_primary_root_codes(cls, v: Any) -> list[str]:
        return _split_csv(v, DEFAULT_PRIMARY_ROOT_CODES)

    @field_validator("host", mode="before")
    @classmethod
    def _norm_host(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "127.0.0.1"

    @field_validator("public_api_base", mode="before")
    @classmethod
    def _norm_public_api_base(cls, v: Any) -> str:
        return ("" if v is None else str(v)).strip().rstrip("/")

    @field_validator("recruiters_base_url", mode="before")
    @classmethod
    def _norm_recruiters_base_url(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or DEFAULT_RECRUITERS_BASE_URL

    @field_validator("database_url", mode="before")
    @classmethod
    def _norm_database_url(cls, v: Any) -> str:
        return ("" if v is None else str(v)).strip()

    @field_validator("db_path", mode="before")
    @classmethod
    def _norm_db_path(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "./data/enrollments.sqlite"

    # -------------------------
    # Derived helpers
    # -------------------------

    @property
    def is_prod(self) -> bool:
        return str(self.env).strip().lower() in ("prod", "production")

    @property
    def resolved_database_url(self) -> str:
        """
        Priority:
        1) DATABASE_URL if provided
        2) Build sqlite:/// URL from DB_PATH

        DB_PATH can be a full sqlite URL or a relative/absolute file path.
        """
        if self.database_url:
            return self.database_url

        path = (self.db_path or "").strip() or "./data/enrollments.sqlite"

        if path.startswith("sqlite:"):
            return path

        p = Path(path)

        if not p.is_absolute():
            if str(p).startswith("./"):
                return f"sqlite:///{p.as_posix()}"
            return f"sqlite:///./{p.as_posix()}"

        # Absolute path needs 4 slashes after scheme (sqlite:////abs/path)
        return f"sqlite:////{p.as_posix().lstrip('/')}"


settings = Settings()
