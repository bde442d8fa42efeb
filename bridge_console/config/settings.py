from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Client deletes; falls back to supabase_key when unset

    # Query cache (seconds)
    cache_stale_seconds: float = 0  # 0 = always revalidate in the background
    cache_gc_seconds: float = 600
    cache_max_retries: int = 3
    cache_retry_base_delay: float = 1.0
    cache_retry_max_delay: float = 30.0
    cache_refetch_triggers: str = "focus,reconnect"

    # Realtime
    realtime_enabled: bool = False
    realtime_debounce_seconds: float = 0.5

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Auth
    auth_cache_ttl_seconds: int = 60
    site_url: str = "http://localhost:3000"  # used for password-reset redirects

    # App
    app_name: str = "bridge-console"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_refetch_triggers_list(self) -> List[str]:
        return [t.strip().lower() for t in self.cache_refetch_triggers.split(",") if t.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
