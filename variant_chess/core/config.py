"""Application settings, read from the environment once at start-up."""

import os
from dataclasses import dataclass, field
from typing import Optional, Self

ENV_PREFIX = "VARIANT_CHESS_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


@dataclass(frozen=True)
class Settings:
    # No URL means rooms only live in memory (lost on restart, fine for local play)
    database_url: Optional[str] = None
    sql_echo: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])

    @classmethod
    def from_env(cls) -> Self:
        origins = _env("CORS_ORIGINS")
        return cls(
            database_url=_env("DATABASE_URL") or None,
            sql_echo=(_env("SQL_ECHO", "false") or "").lower() in {"1", "true", "yes"},
            log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
            cors_origins=(
                [origin.strip() for origin in origins.split(",") if origin.strip()]
                if origins
                else ["http://localhost:3000"]
            ),
        )
