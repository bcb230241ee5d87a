from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Dict
import os

class Settings(BaseSettings):
    # === DATABASE ===
    DATABASE_URL: str = Field(default=os.environ.get("DATABASE_URL", "sqlite:///./hackportal.db"), description="SQLAlchemy database URL")
    DB_STATEMENT_TIMEOUT_MS: int = Field(default=int(os.environ.get("DB_STATEMENT_TIMEOUT_MS", 5000)), description="PostgreSQL statement timeout in milliseconds")
    DB_POOL_TIMEOUT_SECONDS: int = Field(default=int(os.environ.get("DB_POOL_TIMEOUT_SECONDS", 10)), description="Seconds to wait for a pooled connection")

    # === IDENTITY PROVIDER ===
    IDENTITY_MODE: str = Field(default=os.environ.get("IDENTITY_MODE", "jwt"), description="'jwt' verifies tokens locally, 'remote' asks the provider")
    IDENTITY_PROVIDER_URL: str = Field(default=os.environ.get("IDENTITY_PROVIDER_URL", ""), description="Base URL of the identity provider")
    IDENTITY_PROVIDER_ANON_KEY: str = Field(default=os.environ.get("IDENTITY_PROVIDER_ANON_KEY", ""), description="Public API key sent as the apikey header")
    IDENTITY_TIMEOUT_SECONDS: float = Field(default=float(os.environ.get("IDENTITY_TIMEOUT_SECONDS", 5.0)), description="Timeout for identity provider calls")
    SECRET_KEY: str = Field(default=os.environ.get("SECRET_KEY", ""), description="JWT secret shared with the identity provider")
    ALGORITHM: str = Field(default=os.environ.get("ALGORITHM", "HS256"), description="JWT algorithm")
    JWT_AUDIENCE: str = Field(default=os.environ.get("JWT_AUDIENCE", "authenticated"), description="Expected JWT audience")
    SESSION_COOKIE_NAME: str = Field(default=os.environ.get("SESSION_COOKIE_NAME", "sb-access-token"), description="Cookie carrying the access token")
    OAUTH_PROVIDERS: List[str] = Field(default=["github", "google"], description="OAuth providers offered on the login page")
    SITE_URL: str = Field(default=os.environ.get("SITE_URL", "http://localhost:8000"), description="Public URL used for OAuth redirects")

    # === PROFILE ===
    MIN_APPLICANT_AGE: int = Field(default=int(os.environ.get("MIN_APPLICANT_AGE", 13)), description="Youngest age allowed to complete a profile")
    MAX_APPLICANT_AGE: int = Field(default=int(os.environ.get("MAX_APPLICANT_AGE", 100)), description="Oldest age allowed to complete a profile")
    PROFILE_RETRY_ATTEMPTS: int = Field(default=int(os.environ.get("PROFILE_RETRY_ATTEMPTS", 3)), description="Attempts when creating a profile")
    PROFILE_RETRY_BACKOFF_SECONDS: float = Field(default=float(os.environ.get("PROFILE_RETRY_BACKOFF_SECONDS", 0.1)), description="Initial backoff between profile creation attempts")

    # === ADMIN CONSOLE ===
    DEFAULT_PAGE_SIZE: int = Field(default=int(os.environ.get("DEFAULT_PAGE_SIZE", 25)), description="Rows per page in the review console")
    MAX_PAGE_SIZE: int = Field(default=int(os.environ.get("MAX_PAGE_SIZE", 100)), description="Upper bound on rows per page")

    # === EMAIL ===
    EMAIL_HOST: str = Field(default=os.environ.get("EMAIL_HOST", ""), description="SMTP host, empty disables notifications")
    EMAIL_PORT: int = Field(default=int(os.environ.get("EMAIL_PORT", 587)), description="SMTP port")
    EMAIL_HOST_USER: str = Field(default=os.environ.get("EMAIL_HOST_USER", ""), description="SMTP username")
    EMAIL_HOST_PASSWORD: str = Field(default=os.environ.get("EMAIL_HOST_PASSWORD", ""), description="SMTP password")
    EMAIL_FROM: str = Field(default=os.environ.get("EMAIL_FROM", "noreply@example.com"), description="Email sender address")

    # === EVENT ===
    EVENT_NAME: str = Field(default=os.environ.get("EVENT_NAME", "Hackathon"), description="Event name shown in emails and the landing page")
    EVENT_SCHEDULE: List[Dict[str, str]] = Field(default=[], description="Schedule entries (time, title, location) shown on /schedule")

    # === CORS ===
    CORS_ORIGINS: List[str] = Field(default=["http://localhost:3000", "http://127.0.0.1:3000"], description="Allowed browser origins")

    # === DEBUG MODE ===
    DEBUG: bool = Field(default=os.environ.get("DEBUG", "False").lower() == "true", description="Debug mode")

    class Config:
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
