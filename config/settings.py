from pydantic_settings import BaseSettings
from typing import Dict, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # API Keys
    GEMINI_API_KEY: Optional[str] = ""
    OPENAI_API_KEY: Optional[str] = ""
    ANTHROPIC_API_KEY: Optional[str] = ""
    
    # Application Settings
    APP_NAME: str = "Market Insights Dashboard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    
    # Insight Provider Configuration
    # Options: "gemini", "chatgpt", "claude"
    INSIGHT_PROVIDER: str = "gemini"
    
    # Model Settings
    GEMINI_MODEL: str = "gemini-pro"
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta/models"
    CHATGPT_MODEL: str = "gpt-3.5-turbo"
    CLAUDE_MODEL: str = "claude-3-5-haiku-20241022"
    AI_REQUEST_TIMEOUT: float = 30.0
    AI_TEMPERATURE: float = 0.7
    AI_MAX_TOKENS: int = 800
    
    # Market Data Settings
    # Options: "synthetic", "remote"
    MARKET_DATA_SOURCE: str = "synthetic"
    MARKET_DATA_API_URL: str = ""
    MARKET_DATA_TIMEOUT: float = 10.0
    MARKET_DATA_DELAY_SECONDS: float = 1.0  # Simulated provider latency
    
    # Session Settings
    # Options: "memory", "redis"
    SESSION_BACKEND: str = "memory"
    SESSION_TTL: int = 86400  # 24 hours
    SESSION_COOKIE_NAME: str = "market_session"
    # email -> sha256 hex digest of the password
    AUTH_ACCOUNTS: Dict[str, str] = {}
    
    # Redis Settings
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_MAX_CONNECTIONS: int = 10
    
    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
