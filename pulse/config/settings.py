from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")
    
    # Telegram Bot
    BOT_TOKEN: str
    
    # Database
    DATABASE_URL: str
    REDIS_URL: str
    
    # LLM
    PROXY_API_URL: str
    PROXY_API_KEY: str
    LLM_FAST_MODEL: str = "gpt-4.1-mini"
    LLM_QUALITY_MODEL: str = "gpt-4.1"
    LLM_REQUEST_TIMEOUT: float = 180.0

    # Workout generation
    GENERATION_TIMEOUT_SECONDS: float = 45.0
    SETTLE_DELAY_SECONDS: float = 1.0
    PRIORITIZED_MIN_EXERCISES: int = 6
    WORKOUT_DURATION_MINUTES: int = 60
    DEFAULT_WORKOUT_AUTHOR: str = "PulseAI"
    CATALOG_MAX_AGE_SECONDS: float = 3600.0
    MIN_CATALOG_SIZE: int = 5
    
    # App Settings
    LOG_LEVEL: str = "INFO"


settings = Settings()
