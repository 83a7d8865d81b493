# config.py
import os
from dataclasses import dataclass
from typing import List


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _getenv_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def _getenv_list(name: str, default: str) -> List[str]:
    raw = _getenv_str(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    OPENAI_API_KEY: str
    OPENAI_BASE_URL: str
    EXTRACTION_MODEL: str
    HEALTH_MODEL: str
    LLM_TEMPERATURE: float
    DATABASE_URL: str
    API_PREFIX: str
    CORS_ORIGINS: List[str]
    HISTORY_LIMIT: int
    HOST: str
    PORT: int
    LOG_LEVEL: str


def load_settings() -> Settings:
    return Settings(
        OPENAI_API_KEY=_getenv_str("OPENAI_API_KEY", "").strip(),
        OPENAI_BASE_URL=_getenv_str("OPENAI_BASE_URL", "").strip(),
        EXTRACTION_MODEL=_getenv_str("EXTRACTION_MODEL", "gpt-4o-mini"),
        HEALTH_MODEL=_getenv_str("HEALTH_MODEL", "gpt-4.1-nano"),
        LLM_TEMPERATURE=_getenv_float("LLM_TEMPERATURE", 0.2),
        DATABASE_URL=_getenv_str("DATABASE_URL", "sqlite:///./action_items.db"),
        API_PREFIX=_getenv_str("API_PREFIX", "/api").rstrip("/"),
        CORS_ORIGINS=_getenv_list("CORS_ORIGINS", "*"),
        HISTORY_LIMIT=_getenv_int("HISTORY_LIMIT", 5),
        HOST=_getenv_str("HOST", "0.0.0.0"),
        PORT=_getenv_int("PORT", 5000),
        LOG_LEVEL=_getenv_str("LOG_LEVEL", "INFO").upper(),
    )
