from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Dict, Literal


class Settings(BaseSettings):
    # App
    app_name: str = "DocGov"
    debug: bool = False
    
    # Database
    database_url: str = "sqlite:///./docgov.db"
    database_echo: bool = False
    
    # Storage backend used by the API layer
    store_backend: Literal["memory", "sql"] = "sql"
    # User id -> role for the memory backend, e.g. DOCGOV_MEMORY_ROLES='{"1": "admin"}'
    memory_roles: Dict[int, str] = {}
    
    # Logging
    log_level: str = "INFO"
    log_dir: str = "./logs"
    log_to_file: bool = False
    
    # Activity feed
    recent_activity_limit: int = 20
    
    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DOCGOV_",
        case_sensitive=False,
        extra="ignore"  # Allow extra env vars without raising validation errors
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
