"""
Centralised configuration loaded from environment variables.

All settings live here, never scattered across modules.
Every variable is prefixed with TORBLOCK_, e.g. TORBLOCK_CHECK_URL.
"""

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_CHECK_URL = "https://check.torproject.org/exit-addresses"


class Settings(BaseSettings):
    check_url: str = DEFAULT_CHECK_URL
    update_frequency_seconds: int = Field(3600, gt=0)
    request_timeout_seconds: float = Field(10.0, gt=0)
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "TORBLOCK_"


# Default instance, used when TorBlock is not given explicit settings
settings = Settings()
