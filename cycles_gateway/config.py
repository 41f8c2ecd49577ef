"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from cycles_gateway.domain.models import ObligationKind
from cycles_gateway.domain.obligations import (
    DEFAULT_BUDGET_TOLERANCE_DAYS,
    DEFAULT_GOAL_TOLERANCE_DAYS,
    DEFAULT_LIABILITY_TOLERANCE_DAYS,
    DEFAULT_RECURRING_TOLERANCE_DAYS,
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (override store)
    database_url: str = "sqlite:///./cycles.db"

    # Backend (PostgREST-style record store)
    backend_api_base: str = "http://localhost:54321"
    backend_api_key: str = ""

    # Service
    service_name: str = "cycles-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Cycle engine
    default_max_cycles: int = 12
    liability_tolerance_days: int = DEFAULT_LIABILITY_TOLERANCE_DAYS
    recurring_tolerance_days: int = DEFAULT_RECURRING_TOLERANCE_DAYS
    goal_tolerance_days: int = DEFAULT_GOAL_TOLERANCE_DAYS
    budget_tolerance_days: int = DEFAULT_BUDGET_TOLERANCE_DAYS

    def tolerance_for(self, kind: ObligationKind) -> int:
        """
        Default tolerance window (days) for an obligation kind.

        Raises:
            ValueError: Unknown obligation kind
        """
        return {
            ObligationKind.LIABILITY: self.liability_tolerance_days,
            ObligationKind.RECURRING_TRANSACTION: self.recurring_tolerance_days,
            ObligationKind.GOAL: self.goal_tolerance_days,
            ObligationKind.BUDGET: self.budget_tolerance_days,
        }[ObligationKind(kind)]


settings = Settings()
