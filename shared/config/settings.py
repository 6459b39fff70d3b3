from pydantic_settings import BaseSettings
from typing import List
import os


class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379/0"

    # Storage settings
    store_backend: str = "redis"  # redis, memory
    prompts_key: str = "prompts"
    max_prompts: int = 1000
    comment_max_retries: int = 3

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: str = "*"

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        # Look for .env file in project root
        env_file = os.path.join(os.path.dirname(__file__), "../..", ".env")
        extra = "ignore"


settings = Settings()
