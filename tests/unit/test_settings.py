"""
Tests for settings validation.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from income_engine.config.settings import Settings


class TestSettings:
    """Settings validators."""

    def test_postgres_url_normalized(self):
        """Plain postgresql:// URLs get the asyncpg driver."""
        settings = Settings(database_url="postgresql://u:p@db/income")
        assert settings.database_url == "postgresql+asyncpg://u:p@db/income"
        assert settings.is_postgres is True

    def test_unsupported_url_rejected(self):
        """Only PostgreSQL and aiosqlite URLs are accepted."""
        with pytest.raises(ValidationError):
            Settings(database_url="mysql://u:p@db/income")

    def test_sqlite_rejected_in_production(self):
        """SQLite is for tests only."""
        with pytest.raises(ValidationError):
            Settings(
                database_url="sqlite+aiosqlite:///income.db",
                environment="production",
            )

    def test_sqlite_allowed_outside_production(self):
        """Test environment may use SQLite."""
        settings = Settings(
            database_url="sqlite+aiosqlite:///income.db", environment="test"
        )
        assert settings.is_postgres is False

    def test_log_level_normalized(self):
        """Log level is upper-cased."""
        settings = Settings(database_url="postgresql://db/x", log_level="debug")
        assert settings.log_level == "DEBUG"

    def test_defaults(self):
        """Business defaults."""
        settings = Settings(database_url="postgresql://db/x")
        assert settings.monthly_profit_percent == Decimal("10")
        assert settings.cycle_length_days == 30
        assert settings.deposit_lock_days == 180
        assert settings.referral_max_depth == 10
        assert settings.trading_bonus_enabled is False

    def test_profit_percent_bounds(self):
        """Monthly percent must be in (0, 100]."""
        with pytest.raises(ValidationError):
            Settings(database_url="postgresql://db/x", monthly_profit_percent=Decimal("0"))
