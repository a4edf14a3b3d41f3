"""
Central configuration for the crawler
Based on Pydantic Settings with environment variable support
"""

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database
    database_url: str = "sqlite:///./data/ptcg.db"
    database_echo: bool = False

    # Monitoring
    log_level: str = "INFO"

    # Browser (1920px wide so the Standing column is rendered)
    browser_headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    navigation_timeout_ms: int = 30000
    selector_timeout_ms: int = 15000
    navigation_wait_until: str = "networkidle"
    show_all_settle_ms: int = 2000
    user_agent: Optional[str] = None

    # Source site
    events_url: str = "https://rk9.gg/events/pokemon"
    roster_url_base: str = "https://rk9.gg/roster"
    tcg_link_text: str = "TCG"

    # Polite crawling between roster fetches
    crawl_delay_min_seconds: float = 1.0
    crawl_delay_max_seconds: float = 3.0

    # Retry / backoff for page fetches
    retry_max_attempts: int = 3
    retry_initial_delay_seconds: float = 1.0
    retry_backoff_multiplier: float = 2.0
    retry_max_delay_seconds: float = 30.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def _check_delay_window(self) -> "Settings":
        if self.crawl_delay_min_seconds > self.crawl_delay_max_seconds:
            raise ValueError(
                "crawl_delay_min_seconds must not exceed crawl_delay_max_seconds"
            )
        return self

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}


# Global Settings Instance
settings = Settings()
