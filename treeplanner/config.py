"""Configuration for the Tree Planner service."""
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List
import os

from dotenv import load_dotenv

# Load environment variables from a local .env if present
load_dotenv()

STORAGE_BACKENDS = ("json", "sql")
ESTIMATE_MODES = ("stored", "derived")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings, read from the environment by from_env()."""
    storage: str = "json"
    database_path: str = ".github/state/treeplanner.db.json"
    database_url: str = "sqlite:///./treeplanner.db"
    webhook_url: str = ""
    webhook_timeout: float = 5.0
    lock_timeout: float = 10.0
    raise_tool_errors: bool = False
    plan_estimate_mode: str = "stored"
    log_level: str = "INFO"
    log_format: str = "text"
    environment: str = "development"
    frontend_url: str = "http://localhost:3000"
    cors_origins: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.storage not in STORAGE_BACKENDS:
            raise ValueError(f"TREEPLANNER_STORAGE must be one of: {', '.join(STORAGE_BACKENDS)}")
        if self.plan_estimate_mode not in ESTIMATE_MODES:
            raise ValueError(f"TREEPLANNER_PLAN_ESTIMATE_MODE must be one of: {', '.join(ESTIMATE_MODES)}")

    @property
    def allowed_origins(self) -> List[str]:
        """Browser origins allowed by CORS. Local dev servers are only added outside production."""
        origins = [] if self.environment == "production" else ["http://localhost:3000", "http://127.0.0.1:3000"]
        for origin in [self.frontend_url, *self.cors_origins]:
            if origin and origin not in origins:
                origins.append(origin)
        return origins

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            storage=os.environ.get("TREEPLANNER_STORAGE", "json").lower(),
            database_path=os.environ.get("TREEPLANNER_DATABASE_PATH", ".github/state/treeplanner.db.json"),
            database_url=os.environ.get("DATABASE_URL", "sqlite:///./treeplanner.db"),
            webhook_url=os.environ.get("TREEPLANNER_WEBHOOK_URL", ""),
            webhook_timeout=float(os.environ.get("TREEPLANNER_WEBHOOK_TIMEOUT", "5")),
            lock_timeout=float(os.environ.get("TREEPLANNER_LOCK_TIMEOUT", "10")),
            raise_tool_errors=_env_bool("TREEPLANNER_RAISE_TOOL_ERRORS"),
            plan_estimate_mode=os.environ.get("TREEPLANNER_PLAN_ESTIMATE_MODE", "stored").lower(),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_format=os.environ.get("LOG_FORMAT", "text").lower(),
            environment=os.environ.get("ENVIRONMENT", "development"),
            frontend_url=os.environ.get("FRONTEND_URL", "http://localhost:3000"),
            cors_origins=[o.strip() for o in os.environ.get("TREEPLANNER_CORS_ORIGINS", "").split(",") if o.strip()],
        )


@lru_cache()
def get_settings() -> Settings:
    """Get the process-wide settings instance"""
    return Settings.from_env()
