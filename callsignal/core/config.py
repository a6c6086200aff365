from typing import List, Optional

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_connect_timeout: float = 5.0
    redis_socket_timeout: float = 5.0
    transition_max_retries: int = 25

    firebase_service_account_key: Optional[str] = None
    firebase_service_account_file: str = "service_account_key.json"
    fcm_project_id: Optional[str] = None
    fcm_timeout_seconds: float = 10.0

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    port: int = 3000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
