"""
Integration tests for the scheduled entry points.
"""

import pytest

from income_engine.config.settings import settings
from income_engine.services.distribution.cycle_runner import (
    run_daily_distribution,
    run_monthly_distribution,
)


class TestCycleRunner:
    """Entry points return serializable summaries."""

    @pytest.mark.asyncio
    async def test_daily_on_empty_database(self, session_maker):
        """Nothing to distribute is a successful run."""
        result = await run_daily_distribution(session_maker)

        assert result["name"] == "referral_income"
        assert result["success"] is True
        assert result["units_discovered"] == 0
        assert result["results"] == []

    @pytest.mark.asyncio
    async def test_monthly_without_trading_bonus(self, session_maker, monkeypatch):
        """Trading bonus is skipped when disabled."""
        monkeypatch.setattr(settings, "trading_bonus_enabled", False)

        result = await run_monthly_distribution(session_maker)

        assert set(result) == {"salary"}
        assert result["salary"]["success"] is True

    @pytest.mark.asyncio
    async def test_monthly_with_trading_bonus(self, session_maker, monkeypatch):
        """Enabled trading bonus adds both bonus summaries."""
        monkeypatch.setattr(settings, "trading_bonus_enabled", True)

        result = await run_monthly_distribution(session_maker)

        assert set(result) == {"salary", "trading_bonus", "trading_bonus_referral"}
        assert result["trading_bonus"]["payouts_count"] == 0
