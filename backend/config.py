from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # Code grading sandbox
    sandbox_backend: Literal["local", "modal"] = "local"
    sandbox_timeout_sec: float = 1.2
    """Wall-clock budget for the candidate's code (module body plus every hidden test)."""
    sandbox_grace_sec: float = 2.0  # interpreter start-up allowance before the parent kills the child
    sandbox_memory_limit_mb: int = 256
    sandbox_python: str = ""  # empty -> sys.executable
    modal_app_name: str = "interview-grader"
    modal_startup_timeout_sec: float = 60.0

    # Evaluation worker pool
    max_concurrent_gradings: int = 4

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors(cls, v: object) -> list[str]:
        """Accept both a JSON list and a comma-separated string for CORS_ORIGINS."""
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v  # type: ignore[return-value]

    log_level: str = "INFO"

    # Error reporting
    sentry_dsn: str = ""
    environment: str = "development"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


settings = Settings()
