# config.py
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from dotenv import load_dotenv

REQUIRED_ENV_VARS = ("DATABASE_URL", "GOOGLE_API_KEY")


def _env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    return float(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    database_url: str
    google_api_key: str = ""
    gemini_model: str = ""
    llm_max_retries: int = 3
    llm_retry_base_delay: float = 1.0
    llm_concurrency: int = 5
    scrape_timeout: float = 30.0
    auto_generate: bool = True
    auto_generate_delay: float = 60.0
    log_level: str = "INFO"
    log_json: bool = True


def load_settings() -> Settings:
    """Read settings from the environment (and .env, if present)."""
    load_dotenv()
    return Settings(
        database_url=(os.getenv("DATABASE_URL") or "sqlite:///./quizzes.db").strip(),
        google_api_key=(os.getenv("GOOGLE_API_KEY") or "").strip(),
        gemini_model=(os.getenv("GEMINI_MODEL") or "").strip(),
        llm_max_retries=_env_int("LLM_MAX_RETRIES", 3),
        llm_retry_base_delay=_env_float("LLM_RETRY_BASE_DELAY", 1.0),
        llm_concurrency=max(1, _env_int("LLM_CONCURRENCY", 5)),
        scrape_timeout=_env_float("SCRAPE_TIMEOUT", 30.0),
        auto_generate=_env_bool("AUTO_GENERATE", True),
        auto_generate_delay=_env_float("AUTO_GENERATE_DELAY", 60.0),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        log_json=_env_bool("LOG_JSON", True),
    )


def validate_env() -> None:
    """Fail fast on startup when required variables are missing."""
    load_dotenv()
    missing = [name for name in REQUIRED_ENV_VARS if not (os.getenv(name) or "").strip()]
    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}\n"
            "Please check your .env file or environment configuration."
        )

    parsed = urlparse(os.environ["DATABASE_URL"].strip())
    if not parsed.scheme or "://" not in os.environ["DATABASE_URL"]:
        raise RuntimeError("DATABASE_URL must be a valid URL")
