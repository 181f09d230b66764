from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration for the lifecycle client and gateway"""

    # Backend REST API
    api_url: str = "http://localhost:3000/api"
    api_key: Optional[str] = None
    request_timeout: float = 30.0
    metadata_retry_attempts: int = 3

    # Gateway server
    gateway_host: str = "0.0.0.0"
    gateway_port: int = 8007
    gateway_api_key: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "allow"
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
