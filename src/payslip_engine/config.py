"""Process settings for the payslip engine.

Business rules (rates, brackets, working days) are not here; they live in
the ``system_configs`` table and are loaded per request as a PayrollConfig.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    """Settings read from the environment and an optional ``.env`` file."""

    database_url: str
    engine_version: str  # part of every calculation id
    host: str
    port: int
    debug: bool
    log_level: str
    create_schema: bool
    cors_origins: tuple[str, ...]

    @classmethod
    def from_env(cls) -> Settings:
        load_dotenv()

        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./payslips.db"),
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=_flag("DEBUG", "false"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            create_schema=_flag("CREATE_SCHEMA", "true"),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
