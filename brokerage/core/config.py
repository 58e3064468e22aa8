from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str = "sqlite:///./brokerage.db"
    create_tables_on_startup: bool = False

    # JWT
    jwt_secret: str
    jwt_alg: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 1 day

    # Logging
    log_level: str = "INFO"

    # Optimistic concurrency: attempts per unit of work before giving up
    conflict_retry_attempts: int = 3


settings = Settings()
