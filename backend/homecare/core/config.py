from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from decimal import Decimal
from typing import Any, ClassVar
from pathlib import Path
import os


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"

    # JWT verification (tokens are issued by the auth service)
    SECRET_KEY: str = "fallback_secret_for_dev_only"
    ALGORITHM: str = "HS256"

    # Use an absolute path so running from the repo root or backend/ resolves
    # the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'homecare.db'}"

    LOG_LEVEL: str = "INFO"

    # Refund policy: share of the total refunded when a paid booking is
    # cancelled after its scheduled start.
    PARTIAL_REFUND_RATE: Decimal = Decimal("0.5")

    # Providers see customer/patient contact details this many days either
    # side of the service date.
    DISCLOSURE_WINDOW_DAYS: int = 1

    INVOICE_PREFIX: str = "INV-"
    DEFAULT_CURRENCY: str = "INR"
    DEFAULT_PAYMENT_METHOD: str = "online"

    # Payment gateway selection; "dummy" simulates outcomes locally
    PAYMENT_GATEWAY: str = "dummy"
    GATEWAY_SUCCESS_RATE: int = 90

    # Notifier selection: "log" or "email"
    NOTIFIER: str = "log"

    # SMTP email settings
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "no-reply@localhost"

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=True,
    )

    @field_validator("PARTIAL_REFUND_RATE")
    def check_refund_rate(cls, v: Decimal) -> Decimal:
        if v < 0 or v > 1:
            raise ValueError("PARTIAL_REFUND_RATE must be between 0 and 1")
        return v

    @field_validator("GATEWAY_SUCCESS_RATE")
    def check_success_rate(cls, v: int) -> int:
        if v < 0 or v > 100:
            raise ValueError("GATEWAY_SUCCESS_RATE must be between 0 and 100")
        return v

    @field_validator("PAYMENT_GATEWAY", "NOTIFIER", "LOG_LEVEL", mode="before")
    def strip_whitespace(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


def load_settings() -> "Settings":
    return Settings(_env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")))


settings = load_settings()
