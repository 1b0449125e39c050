"""
Application configuration management
"""
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Application
    APP_NAME: str = "GitRekt - Ship It Or Get Roasted"
    DEBUG: bool = False
    APP_URL: str = "http://localhost:8000"

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "gitrekt"

    # GitHub
    GITHUB_WEBHOOK_SECRET: Optional[str] = None
    GITHUB_API_BASE: str = "https://api.github.com"
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Periodic scheduler shared secret (unset = open, local development only)
    CRON_SECRET: Optional[str] = None

    # JWT
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # LLM Configuration
    LLM_PROVIDER: str = "gemini"
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    LLM_TEMPERATURE: float = 0.7

    # Social
    TWITTER_CLIENT_ID: Optional[str] = None
    TWITTER_CLIENT_SECRET: Optional[str] = None

    # Roast lifecycle
    DEFAULT_TIMER_MINUTES: int = 30
    DEV_TIMER_SECONDS: int = 10
    SWEEP_INTERVAL_SECONDS: int = 60
    SWEEP_ON_STARTUP: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env

# Global settings instance
settings = Settings()
