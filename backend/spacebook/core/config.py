# backend/spacebook/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    load_dotenv(env_path)


LockBackend = Literal["local", "redis"]
OverpaymentPolicy = Literal["allow", "reject"]
ReschedulePricing = Literal["locked", "recompute"]


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment label")

    # Database
    database_url: str = Field(
        default="sqlite:///./spacebook.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = False

    log_level: str = "INFO"

    # Per-resource booking lock
    booking_lock_backend: LockBackend = Field(
        default="local",
        description="Where the per-resource booking mutex lives: in-process or Redis",
    )
    redis_url: str = "redis://localhost:6379/0"
    booking_lock_timeout_s: float = Field(default=5.0, gt=0)
    booking_lock_ttl_s: int = Field(default=30, gt=0)

    # Ledger and pricing policies
    overpayment_policy: OverpaymentPolicy = Field(
        default="allow",
        description="Whether payments may push the paid total beyond the reservation total",
    )
    reschedule_pricing: ReschedulePricing = Field(
        default="locked",
        description="locked: total fixed at creation; recompute: snapshot rate x new duration",
    )

    slow_operation_threshold_s: float = 1.0

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value

    @field_validator("booking_lock_backend", "overpayment_policy", "reschedule_pricing", mode="before")
    @classmethod
    def _normalize_choice(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
logger.info(
    "[CONFIG] environment=%s lock_backend=%s overpayment_policy=%s reschedule_pricing=%s",
    settings.environment,
    settings.booking_lock_backend,
    settings.overpayment_policy,
    settings.reschedule_pricing,
)
