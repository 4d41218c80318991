"""
Integration tests for monthly trading bonuses and their upline distribution.
"""

from decimal import Decimal

import pytest

from income_engine.models import IncomeSource, SourceType
from income_engine.services.distribution import TradingBonusService
from income_engine.services.ledger import LedgerService


class TestTradingBonusCredit:
    """Monthly bonus per active deposit."""

    @pytest.mark.asyncio
    async def test_credited_once_per_month(self, factory, ledger, session_maker, clock):
        """10% of an active $1,000 deposit, once per calendar month."""
        user = await factory.user()
        deposit = await factory.deposit(user, Decimal("1000"))
        clock.advance(days=30)
        service = TradingBonusService(session_maker, clock=clock)

        first = await service.credit_monthly_trading_bonuses()
        second = await service.credit_monthly_trading_bonuses()

        assert first.payouts_count == 1
        assert first.total_distributed == Decimal("100.00")
        assert second.units_skipped == 1
        assert second.payouts_count == 0
        rows = await ledger.transactions(IncomeSource.TRADING_BONUS)
        assert len(rows) == 1
        assert rows[0].correlation_key == f"trading_bonus:deposit:{deposit.id}:period:2026-01"
        assert await ledger.balance(user) == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_unlocked_deposit_skipped(self, factory, ledger, session_maker, clock):
        """Deposits past their unlock date earn no bonus."""
        user = await factory.user()
        await factory.deposit(user, lock_days=10)
        clock.advance(days=20)

        service = TradingBonusService(session_maker, clock=clock)
        summary = await service.credit_monthly_trading_bonuses()

        assert summary.sources_scanned == 0
        assert await ledger.transactions(IncomeSource.TRADING_BONUS) == []

    @pytest.mark.asyncio
    async def test_zero_percent_credits_nothing(self, factory, ledger, session_maker, clock):
        """An explicit zero rate is honoured, not replaced by the default."""
        user = await factory.user()
        await factory.deposit(user)
        service = TradingBonusService(
            session_maker, clock=clock, monthly_percent=Decimal("0")
        )

        summary = await service.credit_monthly_trading_bonuses()

        assert summary.payouts_count == 0
        assert await ledger.transactions(IncomeSource.TRADING_BONUS) == []


class TestTradingBonusReferrals:
    """Bonus distribution up the 20-level schedule."""

    @pytest.mark.asyncio
    async def test_distributed_to_uplines_once(self, factory, ledger, session_maker, clock):
        """A $100 bonus pays $10.00 and $5.00 to the first two levels."""
        a, b, c = await factory.chain(3)
        await factory.deposit(c, Decimal("1000"))
        clock.advance(days=5)
        service = TradingBonusService(session_maker, clock=clock)
        await service.credit_monthly_trading_bonuses()

        first = await service.distribute_trading_bonus_referrals()
        second = await service.distribute_trading_bonus_referrals()

        assert first.units_processed == 1
        assert first.payouts_count == 2
        assert second.units_discovered == 0
        assert await ledger.balance(b) == Decimal("10.00")
        assert await ledger.balance(a) == Decimal("5.00")

        rows = await ledger.transactions(IncomeSource.REFERRAL_INCOME)
        bonus = (await ledger.transactions(IncomeSource.TRADING_BONUS))[0]
        assert {row.correlation_key for row in rows} == {
            f"referral_income:trading_bonus:{bonus.id}:level:1",
            f"referral_income:trading_bonus:{bonus.id}:level:2",
        }
        markers = await ledger.markers()
        assert [(m.source_type, m.source_id) for m in markers] == [
            (SourceType.TRADING_BONUS.value, bonus.id)
        ]

    @pytest.mark.asyncio
    async def test_deeper_levels_than_deposit_schedule(
        self, factory, ledger, session_maker, clock
    ):
        """Levels 11 to 20 are paid for trading bonuses."""
        users = await factory.chain(22)
        await factory.deposit(users[-1], Decimal("1000"))
        service = TradingBonusService(session_maker, clock=clock)
        await service.credit_monthly_trading_bonuses()

        summary = await service.distribute_trading_bonus_referrals()

        assert summary.payouts_count == 20
        assert await ledger.balance(users[-21]) == Decimal("0.50")
        assert await ledger.balance(users[0]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_failed_bonus_retried_next_month(
        self, factory, ledger, session_maker, clock, monkeypatch
    ):
        """A bonus whose distribution rolled back is paid on a later run."""
        a, b, c = await factory.chain(3)
        await factory.deposit(c, Decimal("1000"))
        clock.advance(days=5)
        service = TradingBonusService(session_maker, clock=clock)
        await service.credit_monthly_trading_bonuses()

        original = LedgerService.apply_credit

        async def failing_referral_credit(self, user_id, amount, income_source, **kwargs):
            if income_source == IncomeSource.REFERRAL_INCOME:
                raise RuntimeError("ledger write failed")
            return await original(self, user_id, amount, income_source, **kwargs)

        monkeypatch.setattr(LedgerService, "apply_credit", failing_referral_credit)
        failed = await service.distribute_trading_bonus_referrals()

        assert failed.units_failed == 1
        assert await ledger.markers() == []
        assert await ledger.balance(b) == Decimal("0")

        monkeypatch.setattr(LedgerService, "apply_credit", original)
        clock.advance(days=31)
        retry = await service.distribute_trading_bonus_referrals()

        assert retry.units_discovered == 1
        assert retry.units_processed == 1
        assert await ledger.balance(b) == Decimal("10.00")
        assert await ledger.balance(a) == Decimal("5.00")
        assert len(await ledger.markers()) == 1
