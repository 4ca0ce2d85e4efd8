from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Optional full database URL override (useful for tests)
    database_url: str = ""
    db_host: str = "db"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "shiftly"
    # Database connection pool settings
    db_pool_size: int = 20
    db_max_overflow: int = 30
    db_pool_recycle: int = 3600  # Recycle connections after 1 hour
    db_pool_pre_ping: bool = True
    # Resolved permission sets are served from the process-local cache for at most this long
    permission_cache_ttl_seconds: int = 300  # 5 minutes
    # Invitation token lifetime (seconds). Default: 7 days
    invitation_ttl_seconds: int = 604800
    log_level: str = "INFO"

