"""
Configuration management for the FastAPI application.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Jeonggam Space API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for the interior design website and admin CMS"

    # CORS Configuration
    # Local development ports for the public site and the admin panel
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8000",
    ]

    # Supabase Configuration
    # Both values are required; if either is empty the backend is treated as unconfigured
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    STORAGE_BUCKET: str = "images"

    # JWT Configuration
    # SECRET_KEY should be a long random string (e.g., generated with: openssl rand -hex 32)
    # IMPORTANT: Keep this secret and use a strong, unique value in production
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production-use-openssl-rand-hex-32"

    # Query cache freshness windows (seconds)
    CACHE_STALE_SECONDS: int = 300
    LOGO_CACHE_STALE_SECONDS: int = 600
    # Entries kept before the least recently used is evicted
    CACHE_MAX_ENTRIES: int = 256

    # Rate limiting (slowapi). Use a Redis URI when running several workers
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    LOGIN_RATE_LIMIT: str = "5/minute"
    UPLOAD_RATE_LIMIT: str = "20/hour"
    CONTACT_RATE_LIMIT: str = "10/hour"

    # Convert uploaded images to WebP before storing them
    CONVERT_UPLOADS_TO_WEBP: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
