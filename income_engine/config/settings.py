"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_pool_size: int = Field(default=10, ge=1)
    database_max_overflow: int = Field(default=20, ge=0)

    # Redis (for Dramatiq broker and distributed locks)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = "logs"
    health_check_port: int = Field(
        default=8080, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Profit settings
    monthly_profit_percent: Decimal = Field(
        default=Decimal("10"),
        gt=0,
        le=100,
        description="Flat monthly return credited per cycle, in percent",
    )
    cycle_length_days: int = Field(
        default=30, ge=1, description="Length of one accrual cycle in days"
    )
    deposit_lock_days: int = Field(
        default=180, ge=1, description="Days a completed deposit stays locked"
    )

    # Referral settings
    referral_max_depth: int = Field(
        default=10, ge=1, le=50,
        description="Upline depth for referral and direct income chains",
    )
    trading_bonus_max_depth: int = Field(
        default=20, ge=1, le=50,
        description="Upline depth for the trading bonus referral schedule",
    )
    trading_bonus_enabled: bool = Field(
        default=False,
        description="Credit monthly trading bonuses and distribute them upline",
    )

    # Wallet rules
    minimum_deposit_amount: Decimal = Field(
        default=Decimal("100"), gt=0, description="Minimum deposit amount (USD)"
    )
    minimum_withdrawal_amount: Decimal = Field(
        default=Decimal("10"), gt=0, description="Minimum withdrawal amount (USD)"
    )
    withdrawal_step: Decimal = Field(
        default=Decimal("10"), gt=0,
        description="Withdrawals must be a multiple of this amount",
    )
    p2p_fee_percent: Decimal = Field(
        default=Decimal("0"), ge=0, le=100,
        description="Platform fee charged to the sender of a P2P transfer",
    )

    # Schedule (UTC)
    daily_distribution_hour: int = Field(default=2, ge=0, le=23)
    monthly_salary_day: int = Field(default=1, ge=1, le=28)
    monthly_salary_hour: int = Field(default=3, ge=0, le=23)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f'Invalid log level: {v}')
        return level

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Reject test-only settings in production."""
        if self.environment == 'production' and self.database_url.startswith('sqlite'):
            raise ValueError(
                "SQLite is only supported outside production. "
                "Set DATABASE_URL to a PostgreSQL database."
            )
        return self

    @property
    def is_postgres(self) -> bool:
        """Whether the configured database is PostgreSQL."""
        return self.database_url.startswith('postgresql')

    @property
    def redis_url_masked(self) -> str:
        """Redis URL with the password hidden, for logs."""
        auth = ":****@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"


# Global settings instance
settings = Settings()
