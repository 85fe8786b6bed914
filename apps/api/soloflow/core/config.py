"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"
    VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./soloflow.db"

    # Hosted database admin endpoint (setup scripts only)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Session Token (supports key rotation)
    SESSION_SECRET: str = "change-this-in-production"
    SESSION_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    SESSION_EXPIRES_HOURS: int = 24

    # Google OAuth
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = "http://localhost:8000/auth/google/callback"

    # Domain restriction (comma-separated)
    ALLOWED_EMAIL_DOMAINS: str = ""

    # Admin allow-list (comma-separated emails)
    ADMIN_EMAILS: str = ""

    # Public URL of the app (Stripe return URLs)
    APP_URL: str = "http://localhost:8000"

    # CORS
    CORS_ORIGINS: str = "http://localhost:8000"

    # Stripe billing
    STRIPE_API_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_PRICE_PRO_MONTHLY: str = ""
    STRIPE_PRICE_PRO_YEARLY: str = ""
    STRIPE_PRICE_BUSINESS_MONTHLY: str = ""
    STRIPE_PRICE_BUSINESS_YEARLY: str = ""

    # Dev-only
    DEV_SECRET: str = "change-me"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_AUTH: int = 5  # Login attempts
    RATE_LIMIT_API: int = 120
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def allowed_domains_list(self) -> list[str]:
        """Parse ALLOWED_EMAIL_DOMAINS into lowercase list."""
        if not self.ALLOWED_EMAIL_DOMAINS:
            return []
        return [d.strip().lower() for d in self.ALLOWED_EMAIL_DOMAINS.split(",") if d.strip()]

    @property
    def admin_emails_list(self) -> list[str]:
        """Parse ADMIN_EMAILS into lowercase list."""
        return [e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()]

    @property
    def session_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.SESSION_SECRET]
        if self.SESSION_SECRET_PREVIOUS:
            secrets.append(self.SESSION_SECRET_PREVIOUS)
        return secrets

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only outside local development."""
        return self.ENV not in ("dev", "test")


settings = Settings()
