# config.py
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Process configuration, read from the environment once at startup."""

    model_config = {"frozen": True}

    APP_ENV: str = Field(default_factory=lambda: _env("APP_ENV", "dev"))
    LOG_LEVEL: str = Field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    # Generation API (OpenAI compatible)
    OPENAI_API_KEY: str = Field(default_factory=lambda: _env("OPENAI_API_KEY"))
    OPENAI_MODEL: str = Field(default_factory=lambda: _env("OPENAI_MODEL", "gpt-4o-mini"))
    OPENAI_BASE_URL: Optional[str] = Field(default_factory=lambda: _env("OPENAI_BASE_URL") or None)

    # Stripe Checkout
    STRIPE_SECRET_KEY: str = Field(default_factory=lambda: _env("STRIPE_SECRET_KEY"))
    STRIPE_SUCCESS_URL: str = Field(
        default_factory=lambda: _env("STRIPE_SUCCESS_URL", f"/success?session_id={SESSION_ID_PLACEHOLDER}")
    )
    # Without Stripe, premium roasts are refused unless this is switched on explicitly.
    PREMIUM_DEMO_MODE: bool = Field(default_factory=lambda: _env_flag("PREMIUM_DEMO_MODE"))

    FILTER_NORMALIZE_HOMOGLYPHS: bool = Field(default_factory=lambda: _env_flag("FILTER_NORMALIZE_HOMOGLYPHS"))

    HOST: str = Field(default_factory=lambda: _env("HOST", "0.0.0.0"))
    PORT: int = Field(default_factory=lambda: int(_env("PORT", "3000")))

    @field_validator("STRIPE_SUCCESS_URL")
    @classmethod
    def _require_session_placeholder(cls, v: str) -> str:
        if SESSION_ID_PLACEHOLDER not in v:
            raise ValueError(f"STRIPE_SUCCESS_URL must contain {SESSION_ID_PLACEHOLDER}")
        return v

    @property
    def generation_enabled(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    @property
    def payments_enabled(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)
