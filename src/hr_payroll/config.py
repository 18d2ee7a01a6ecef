"""Configuration management for the payroll core."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

UNPAID_LEAVE_SCOPES = ("all_time", "period")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str
    host: str
    port: int
    debug: bool
    log_level: str
    employee_timeout_seconds: float
    run_deadline_seconds: float
    # "all_time" deducts every approved unpaid leave ever recorded on each run.
    unpaid_leave_scope: str = "all_time"

    @property
    def HOST(self) -> str:
        """Alias for host."""
        return self.host

    @property
    def PORT(self) -> int:
        """Alias for port."""
        return self.port

    @property
    def DEBUG(self) -> bool:
        """Alias for debug."""
        return self.debug

    @property
    def filter_unpaid_leave_by_period(self) -> bool:
        return self.unpaid_leave_scope == "period"

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        scope = os.getenv("UNPAID_LEAVE_SCOPE", "all_time").lower()
        if scope not in UNPAID_LEAVE_SCOPES:
            raise ValueError(
                f"UNPAID_LEAVE_SCOPE must be one of {UNPAID_LEAVE_SCOPES}, got '{scope}'"
            )

        return cls(
            database_url=os.getenv(
                "DATABASE_URL",
                "sqlite+aiosqlite:///./hr_payroll.db",
            ),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            employee_timeout_seconds=float(os.getenv("EMPLOYEE_TIMEOUT_SECONDS", "30")),
            run_deadline_seconds=float(os.getenv("RUN_DEADLINE_SECONDS", "600")),
            unpaid_leave_scope=scope,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
