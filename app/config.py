from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    db_name: str = "sarhni_db"
    db_user: str = "postgres"
    db_password: str = ""
    db_host: str = "localhost"
    db_port: str = "5432"
    database_url: str | None = None  # Full async URL, overrides the parts above

    # Environment
    env: str = "development"
    debug: bool = True

    # Sessions
    secret_key: str = "change-me"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Client identification: header set by our own reverse proxy
    trusted_proxy_header: str = "x-real-ip"

    # Rate limiting
    confession_rate_limit: int = 5
    search_rate_limit: int = 20
    rate_limit_window_ms: int = 60 * 1000
    rate_limit_sweep_interval: int = 5 * 60  # seconds

    # Realtime / caching
    sse_keepalive_seconds: int = 15
    cache_revalidate_seconds: int = 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
