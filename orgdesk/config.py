from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    database_url: str = "postgresql+psycopg://app:app@db:5432/app"
    redis_url: str = "redis://redis:6379/0"

    jwt_secret: str = "dev-secret-change-me"
    jwt_issuer: str = "orgdesk-api"
    jwt_audience: str = "orgdesk-api"
    jwt_expires_minutes: int = 60

    # global defaults + plan presets are cached per org/role/plan
    permission_cache_ttl_seconds: float = 60.0

    # rate limiting (redis)
    rate_limit_enabled: bool = True
    rate_limit_admin_writes_per_min: int = 30

settings = Settings()
