"""
Application configuration from environment variables.
Loads .env from the backend directory so the OpenAI key is found regardless of cwd.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to backend/ (parent of pdf_mcq/); load explicitly so the key is set even when run from repo root
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)

_DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment label, only used in startup logging.
    env: str = "development"
    log_level: str = "INFO"

    # Server (uvicorn) bind address.
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins of the browser UI.
    cors_origins: str = _DEFAULT_CORS_ORIGINS

    # LLM: OpenAI chat completions. Empty key -> mock client (placeholder questions).
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    openai_temperature: float = 0.3
    openai_max_tokens: int = 1000
    openai_timeout_seconds: float = 60.0

    # Chunking: max characters per chunk (sentences are never split).
    chunk_max_length: int = 2000
    # Chunk text is cut to this many characters before it goes into the prompt.
    max_prompt_chars: int = 8000

    # Retry policy for rate-limit / context-length errors: total attempts and fixed wait between them.
    generation_max_attempts: int = 3
    retry_backoff_seconds: float = 60.0

    # Uploaded documents kept in memory; oldest session is dropped beyond this.
    max_sessions: int = 100

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
