"""Application configuration."""

import logging

from dotenv import load_dotenv
from pydantic import model_validator
from pydantic_settings import BaseSettings

from ticker_api.core.credentials import CredentialPool

load_dotenv()

logger = logging.getLogger(__name__)

# Default allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

# Mirrors of the stock analysis prompt, tried in order
DEFAULT_TEMPLATE_URLS = [
    "https://cdn.jsdelivr.net/gh/mrarogiewicz/prompts@main/stock_analysis_detail.md",
    "https://raw.githubusercontent.com/mrarogiewicz/prompts/main/stock_analysis_detail.md",
    "https://raw.githack.com/mrarogiewicz/prompts/main/stock_analysis_detail.md",
]

DEFAULT_TRANSCRIPT_PROMPT_URL = (
    "https://raw.githubusercontent.com/mrarogiewicz/prompts/"
    "58a7ec6c1a7a09ff0271acf466b6997a2d8ad609/earnings_transcript_summarization.md"
)


def mask_secret(value: str, visible_chars: int = 4) -> str:
    """Mask a secret value for safe logging."""
    if not value:
        return "(not set)"
    if len(value) <= visible_chars * 2:
        return "*" * len(value)
    return f"{value[:visible_chars]}...{value[-visible_chars:]}"


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Ticker Prompt API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Alpha Vantage key pool (ALPHA_KEY, ALPHA_KEY_2 ... ALPHA_KEY_5)
    alpha_key: str = ""
    alpha_key_2: str = ""
    alpha_key_3: str = ""
    alpha_key_4: str = ""
    alpha_key_5: str = ""
    alpha_vantage_url: str = "https://www.alphavantage.co/query"

    # Yahoo Finance
    yahoo_quote_summary_url: str = "https://query1.finance.yahoo.com/v10/finance/quoteSummary"

    # Gemini (API_KEY)
    api_key: str = ""
    analysis_model: str = "gemini-3-pro-preview"
    earnings_model: str = "gemini-3-pro-preview"
    transcript_model: str = "gemini-2.5-flash"

    # Prompt templates
    template_urls: list[str] = DEFAULT_TEMPLATE_URLS
    transcript_prompt_url: str = DEFAULT_TRANSCRIPT_PROMPT_URL

    # Outbound HTTP
    fetch_timeout_seconds: float = 8.0
    chart_concurrent_fetch: bool = False

    # CORS - comma-separated origins or use default
    cors_origins: list[str] = DEFAULT_CORS_ORIGINS

    class Config:
        env_file = ".env"
        extra = "ignore"

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Warn about missing provider credentials on startup."""
        missing = []

        if not self.credential_pool():
            missing.append("ALPHA_KEY")
        if not self.api_key:
            missing.append("API_KEY")

        if missing:
            logger.warning(
                f"Missing environment variables: {', '.join(missing)}. "
                "Dependent endpoints will respond with a configuration error."
            )

        return self

    def credential_pool(self) -> CredentialPool:
        """Build the Alpha Vantage key pool from the configured slots."""
        return CredentialPool.from_values(
            [
                self.alpha_key,
                self.alpha_key_2,
                self.alpha_key_3,
                self.alpha_key_4,
                self.alpha_key_5,
            ]
        )

    def log_config_summary(self) -> None:
        """Log configuration summary with masked secrets."""
        logger.info("=== Configuration Summary ===")
        logger.info(f"App: {self.app_name} v{self.app_version}")
        logger.info(f"Debug: {self.debug}")
        logger.info(f"ALPHA_KEY pool: {len(self.credential_pool())} keys")
        logger.info(f"API_KEY: {mask_secret(self.api_key)}")
        logger.info(f"Fetch timeout: {self.fetch_timeout_seconds}s")
        logger.info(f"Template mirrors: {len(self.template_urls)}")
        logger.info(f"CORS Origins: {len(self.cors_origins)} domains")
        logger.info("=============================")


settings = Settings()


def get_settings() -> Settings:
    """Dependency for FastAPI routes."""
    return settings
