"""ADREPORT: Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── Currency ──
    usd_to_krw_rate: float = 1500.0  # Fixed reporting rate, not a market rate
    base_currency: str = "KRW"
    social_currency: str = "USD"

    # ── Meta API (social channel source) ──
    meta_access_token: str = ""
    meta_ad_account_id: str = ""
    meta_api_version: str = "v22.0"
    meta_base_url: str = "https://graph.facebook.com"

    # ── Notifications ──
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    telegram_api_base: str = "https://api.telegram.org"
    report_base_url: str = "http://localhost:8000"

    # ── Access ──
    admin_key: Optional[str] = None

    # ── App ──
    log_level: str = "INFO"

    # ── Reporting ──
    top_keywords_limit: int = 20

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/adreport.db"
        return "sqlite:///./adreport.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
