# src/smartplan/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "SMARTPLAN"

STORAGE_BACKENDS = ("kv", "documents")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local user (authentication is handled elsewhere) ----
    user_id: str

    # ---- Storage ----
    storage_backend: str
    data_dir: Path
    kv_db_path: Path
    documents_db_path: Path

    # ---- Reminders ----
    reminders_enabled: bool
    reminder_lead_minutes: int
    reminder_poll_seconds: float

    # ---- LLM / OpenRouter ----
    openrouter_api_key: str | None
    openrouter_base_url: str
    llm_models: list[str]
    llm_temperature: float
    extra_headers: dict[str, str]
    llm_connect_timeout: float
    llm_read_timeout: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="smartplan") or "smartplan"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        user_id = (_env(_k("USER_ID"), "local") or "local").strip() or "local"

        storage_backend = _env(_k("STORAGE_BACKEND"), "kv").strip().lower()
        if storage_backend not in STORAGE_BACKENDS:
            storage_backend = "kv"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/smartplan"))
        kv_db_path = _env_path(_k("KV_DB_PATH"), data_dir / "kv.sqlite3")
        documents_db_path = _env_path(_k("DOCUMENTS_DB_PATH"), data_dir / "documents.sqlite3")

        reminders_enabled = _env_bool(_k("REMINDERS_ENABLED"), True)
        reminder_lead_minutes = max(0, _env_int(_k("REMINDER_LEAD_MINUTES"), 5))
        reminder_poll_seconds = max(0.5, _env_float(_k("REMINDER_POLL_SECONDS"), 15.0))

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")

        http_referer = _env(_k("HTTP_REFERER"), "https://example.com")
        title = _env(_k("APP_TITLE"), app_name)
        extra_headers = {
            "HTTP-Referer": http_referer,
            "X-Title": title,
        }

        llm_models = _env_list(_k("LLM_MODELS"), ["openai/gpt-4o-mini"])
        llm_temperature = _env_float(_k("LLM_TEMPERATURE"), 0.7)

        llm_connect_timeout = _env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0)
        llm_read_timeout = _env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 60.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            user_id=user_id,
            storage_backend=storage_backend,
            data_dir=data_dir,
            kv_db_path=kv_db_path,
            documents_db_path=documents_db_path,
            reminders_enabled=reminders_enabled,
            reminder_lead_minutes=reminder_lead_minutes,
            reminder_poll_seconds=reminder_poll_seconds,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            llm_temperature=llm_temperature,
            extra_headers=extra_headers,
            llm_connect_timeout=llm_connect_timeout,
            llm_read_timeout=llm_read_timeout,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
