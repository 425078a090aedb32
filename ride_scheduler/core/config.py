"""
Configuration settings for the corporate ride scheduler.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, Field
import logging

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    """Application settings loaded from the environment or a .env file."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        validate_assignment=True,
        extra="forbid",
    )
    
    # Environment
    ENVIRONMENT: str = Field(default="development", description="Application environment")
    DEBUG: bool = Field(default=False, description="Debug mode")
    
    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Corporate Ride Scheduler"
    
    # Database Settings
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://localhost:5432/ride_scheduler",
        description="Database connection URL"
    )
    DATABASE_ECHO: bool = False
    
    # Pricing Settings
    BASE_FARE: float = Field(default=50.0, ge=0.0)
    COST_PER_KM: float = Field(default=15.0, ge=0.0)
    COST_PER_MINUTE: float = Field(default=2.0, ge=0.0)
    AVERAGE_SPEED_KMH: float = Field(default=30.0, gt=0.0)
    
    # Cancellation policy
    CANCELLATION_CUTOFF_HOURS: float = Field(default=2.0, ge=0.0)
    
    # Listing
    DEFAULT_PAGE_SIZE: int = Field(default=10, ge=1, le=100)
    MAX_PAGE_SIZE: int = Field(default=100, ge=1, le=1000)
    ADMIN_ACTIONS_DEFAULT_LIMIT: int = Field(default=50, ge=1, le=1000)
    
    # Analytics
    ANALYTICS_DEFAULT_WINDOW_DAYS: int = Field(default=30, ge=1, le=366)
    
    # Logging Settings
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FILE: str = "logs/app.log"
    LOG_JSON: bool = False
    
    # Security Headers
    CORS_ORIGINS: list = Field(default=["http://localhost:3000"], description="Allowed CORS origins")
    
    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v):
        if not v.startswith(('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')):
            raise ValueError("DATABASE_URL must be a PostgreSQL or aiosqlite URL")
        return v
    
    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v):
        allowed_envs = ['development', 'staging', 'production', 'testing']
        if v not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed_envs}")
        return v
    
    @property
    def async_database_url(self) -> str:
        """Database URL rewritten for the asyncpg driver where needed."""
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.DATABASE_URL
    
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"
    
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

# Global settings instance with error handling
try:
    settings = Settings()
    if settings.is_production() and settings.DEBUG:
        logger.warning("DEBUG mode is enabled in production environment")
except Exception as e:
    logger.error(f"Failed to load settings: {e}")
    raise
