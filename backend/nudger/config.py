"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Web server bind address and port
    host: str = "0.0.0.0"
    port: int = 3002
    
    # Expo-compatible push gateway endpoint
    push_gateway_url: str = "https://exp.host/--/api/v2/push/send"
    
    # Hard timeout for a single gateway call
    dispatch_timeout_seconds: float = 10.0
    
    # Upper bound on gateway calls in flight at once
    max_concurrent_dispatches: int = 10
    
    # Start the minute tick with the app (tests turn this off)
    scheduler_enabled: bool = True
    
    log_level: str = "INFO"
    
    class Config:
        env_prefix = ""
        case_sensitive = False


settings = Settings()
