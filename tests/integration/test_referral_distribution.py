"""
Integration tests for deposit cycle referral distribution.

Covers:
- Per-level amounts and the A -> B -> C scenario
- Idempotent re-runs
- Depth cap
- All-or-nothing units
- Cycle gating
- Root depositors
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from loguru import logger

from income_engine.models import DepositStatus, IncomeSource, SourceType
from income_engine.services.distribution import ReferralIncomeDistributor
from income_engine.services.distribution.idempotency import (
    DistributionGuard,
    referral_income_key,
)
from income_engine.services.ledger import LedgerService


class TestReferralIncomeAmounts:
    """What a completed cycle pays."""

    @pytest.mark.asyncio
    async def test_two_level_chain(self, factory, ledger, session_maker, clock):
        """C deposits $1,000: B earns $10.00 (level 1), A earns $5.00 (level 2)."""
        a, b, c = await factory.chain(3)
        deposit = await factory.deposit(c, Decimal("1000"))
        clock.advance(days=30)

        summary = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        assert summary.success is True
        assert summary.units_processed == 1
        assert summary.payouts_count == 2
        assert summary.total_distributed == Decimal("15.00")
        assert await ledger.balance(b) == Decimal("10.00")
        assert await ledger.balance(a) == Decimal("5.00")
        assert await ledger.balance(c) == Decimal("0")

        rows = await ledger.transactions(IncomeSource.REFERRAL_INCOME)
        by_level = {row.referral_level: row for row in rows}
        assert by_level[1].user_id == b.id
        assert by_level[2].user_id == a.id
        for row in rows:
            assert row.source_user_id == c.id
            assert row.source_id == deposit.id
            assert row.cycle_number == 1
        assert by_level[1].correlation_key == (
            f"referral_income:deposit:{deposit.id}:cycle:1:level:1"
        )
        assert by_level[1].description.endswith("(level 1, 10%)")
        assert by_level[2].description.endswith("(level 2, 5%)")

        markers = await ledger.markers()
        assert len(markers) == 1
        assert markers[0].source_id == deposit.id
        assert markers[0].cycle_number == 1
        assert markers[0].payouts_count == 2
        assert Decimal(markers[0].total_distributed) == Decimal("15.00")

    @pytest.mark.asyncio
    async def test_full_schedule(self, factory, ledger, session_maker, clock):
        """Ten levels of a $100 profit pay 10/5/2/1 then 0.5 six times."""
        users = await factory.chain(11)
        await factory.deposit(users[-1], Decimal("1000"))
        clock.advance(days=30)

        summary = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        expected = ["10.00", "5.00", "2.00", "1.00"] + ["0.50"] * 6
        for level, amount in enumerate(expected, start=1):
            assert await ledger.balance(users[-1 - level]) == Decimal(amount)
        assert summary.total_distributed == Decimal("21.00")


class TestIdempotency:
    """Running twice never pays twice."""

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, factory, ledger, session_maker, clock):
        """The second run finds no units and writes nothing."""
        a, b, c = await factory.chain(3)
        await factory.deposit(c)
        clock.advance(days=30)
        distributor = ReferralIncomeDistributor(session_maker, clock=clock)

        await distributor.run()
        rows_after_first = len(await ledger.transactions())
        second = await distributor.run()

        assert second.units_discovered == 0
        assert second.payouts_count == 0
        assert len(await ledger.transactions()) == rows_after_first
        assert len(await ledger.markers()) == 1
        assert await ledger.balance(b) == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_marked_unit_is_skipped(self, factory, ledger, session_maker, clock):
        """A unit distributed after discovery is skipped, not paid again."""
        a, b = await factory.chain(2)
        await factory.deposit(b)
        clock.advance(days=30)
        distributor = ReferralIncomeDistributor(session_maker, clock=clock)

        units = await distributor.discover()
        first = await distributor.distribute_cycle(units[0])
        again = await distributor.distribute_cycle(units[0])

        assert first.status == "distributed"
        assert again.status == "skipped"
        assert await ledger.balance(a) == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_new_cycle_paid_on_later_run(self, factory, ledger, session_maker, clock):
        """Only the newly completed cycle is distributed a month later."""
        a, b = await factory.chain(2)
        await factory.deposit(b)
        clock.advance(days=30)
        distributor = ReferralIncomeDistributor(session_maker, clock=clock)
        await distributor.run()

        clock.advance(days=30)
        summary = await distributor.run()

        assert summary.units_discovered == 1
        assert summary.results[0].cycle_number == 2
        assert await ledger.balance(a) == Decimal("20.00")

    @pytest.mark.asyncio
    async def test_paid_level_skipped_others_paid(
        self, factory, ledger, session_maker, clock
    ):
        """A level paid before the marker was written is not paid again."""
        a, b, c = await factory.chain(3)
        deposit = await factory.deposit(c)
        clock.advance(days=30)
        async with session_maker() as session:
            async with session.begin():
                await LedgerService(session, clock).apply_credit(
                    a.id,
                    Decimal("5.00"),
                    IncomeSource.REFERRAL_INCOME,
                    correlation_key=referral_income_key(deposit.id, 1, 2),
                    referral_level=2,
                    source_user_id=c.id,
                    source_type=SourceType.DEPOSIT,
                    source_id=deposit.id,
                    cycle_number=1,
                )

        async with session_maker() as session:
            guard = DistributionGuard(session)
            assert await guard.already_paid(deposit.id, 1, 2) is True
            assert await guard.already_paid(deposit.id, 1, 1) is False

        summary = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        assert summary.units_processed == 1
        assert summary.payouts_count == 1
        assert await ledger.balance(b) == Decimal("10.00")
        assert await ledger.balance(a) == Decimal("5.00")
        assert len(await ledger.transactions(IncomeSource.REFERRAL_INCOME)) == 2
        markers = await ledger.markers()
        assert markers[0].payouts_count == 1


class TestDepthCap:
    """Depth is capped at the configured maximum."""

    @pytest.mark.asyncio
    async def test_zero_depth_pays_nobody(self, factory, ledger, session_maker, clock):
        """An explicit depth of zero is honoured, not replaced by the default."""
        a, b = await factory.chain(2)
        await factory.deposit(b)
        clock.advance(days=30)

        summary = await ReferralIncomeDistributor(
            session_maker, clock=clock, max_depth=0
        ).run()

        assert summary.units_processed == 1
        assert summary.payouts_count == 0
        assert await ledger.balance(a) == Decimal("0")

    @pytest.mark.asyncio
    async def test_no_payout_beyond_level_ten(self, factory, ledger, session_maker, clock):
        """A 15-deep upline is paid on levels 1-10 only."""
        users = await factory.chain(16)
        depositor = users[-1]
        await factory.deposit(depositor)
        clock.advance(days=30)

        await ReferralIncomeDistributor(session_maker, clock=clock, max_depth=10).run()

        rows = await ledger.transactions(IncomeSource.REFERRAL_INCOME)
        assert sorted(row.referral_level for row in rows) == list(range(1, 11))
        for unpaid in users[:5]:
            assert await ledger.balance(unpaid) == Decimal("0")


class TestAtomicity:
    """A unit commits entirely or not at all."""

    @pytest.mark.asyncio
    async def test_failure_mid_chain_rolls_back_unit(
        self, factory, ledger, session_maker, clock, monkeypatch
    ):
        """A failure on level 3 leaves no referral rows and no marker."""
        users = await factory.chain(6)
        await factory.deposit(users[-1])
        clock.advance(days=30)

        original = LedgerService.apply_credit

        async def failing_apply_credit(self, user_id, amount, income_source, **kwargs):
            if kwargs.get("referral_level") == 3:
                raise RuntimeError("ledger write failed")
            return await original(self, user_id, amount, income_source, **kwargs)

        monkeypatch.setattr(LedgerService, "apply_credit", failing_apply_credit)

        summary = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        assert summary.units_failed == 1
        assert summary.success is False
        assert "ledger write failed" in summary.results[0].error
        assert await ledger.transactions(IncomeSource.REFERRAL_INCOME) == []
        assert await ledger.markers() == []
        for user in users:
            assert await ledger.balance(user) == Decimal("0")

        monkeypatch.setattr(LedgerService, "apply_credit", original)
        retry = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        assert retry.units_processed == 1
        assert retry.payouts_count == 5
        assert len(await ledger.markers()) == 1

    @pytest.mark.asyncio
    async def test_failed_unit_does_not_stop_run(
        self, factory, ledger, session_maker, clock, monkeypatch
    ):
        """Other units still distribute when one fails."""
        a, b = await factory.chain(2)
        x = await factory.user()
        y = await factory.user(sponsor=x)
        await factory.deposit(b)
        await factory.deposit(y)
        clock.advance(days=30)

        original = LedgerService.apply_credit

        async def failing_for_a(self, user_id, amount, income_source, **kwargs):
            if user_id == a.id:
                raise RuntimeError("ledger write failed")
            return await original(self, user_id, amount, income_source, **kwargs)

        monkeypatch.setattr(LedgerService, "apply_credit", failing_for_a)

        summary = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        assert summary.units_failed == 1
        assert summary.units_processed == 1
        assert await ledger.balance(x) == Decimal("10.00")
        assert await ledger.balance(a) == Decimal("0")


class TestCycleGating:
    """Only whole, completed cycles of locked deposits are distributed."""

    @pytest.mark.asyncio
    async def test_29_days_pays_nothing(self, factory, ledger, session_maker, clock):
        """A deposit younger than one cycle is not discovered."""
        a, b = await factory.chain(2)
        await factory.deposit(b)
        clock.advance(days=29)

        summary = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        assert summary.units_discovered == 0
        assert await ledger.transactions(IncomeSource.REFERRAL_INCOME) == []

    @pytest.mark.asyncio
    async def test_65_days_pays_two_cycles(self, factory, ledger, session_maker, clock):
        """Two whole cycles are distributed as two units."""
        a, b = await factory.chain(2)
        await factory.deposit(b)
        clock.advance(days=65)

        summary = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        assert summary.units_processed == 2
        assert sorted(m.cycle_number for m in await ledger.markers()) == [1, 2]
        assert await ledger.balance(a) == Decimal("20.00")

    @pytest.mark.asyncio
    async def test_unlocked_deposit_not_distributed(
        self, factory, ledger, session_maker, clock
    ):
        """Deposits past their unlock date stop accruing."""
        a, b = await factory.chain(2)
        await factory.deposit(b, lock_days=20)
        clock.advance(days=30)

        summary = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        assert summary.units_discovered == 0

    @pytest.mark.asyncio
    async def test_pending_deposit_not_distributed(
        self, factory, ledger, session_maker, clock
    ):
        """Unapproved deposits never accrue."""
        a, b = await factory.chain(2)
        await factory.deposit(b, status=DepositStatus.PENDING)
        clock.advance(days=30)

        summary = await ReferralIncomeDistributor(session_maker, clock=clock).run()

        assert summary.units_discovered == 0


class TestRootDepositor:
    """Deposits of users without sponsor."""

    @pytest.mark.asyncio
    async def test_root_unit_marked_with_zero_payouts(
        self, factory, ledger, session_maker, clock
    ):
        """The unit completes, is marked, and is not rediscovered."""
        root = await factory.user()
        await factory.deposit(root)
        clock.advance(days=30)
        messages: list[str] = []
        handler_id = logger.add(lambda message: messages.append(message.record["message"]))

        try:
            distributor = ReferralIncomeDistributor(session_maker, clock=clock)
            summary = await distributor.run()
            second = await distributor.run()
        finally:
            logger.remove(handler_id)

        assert summary.units_processed == 1
        assert summary.payouts_count == 0
        markers = await ledger.markers()
        assert len(markers) == 1
        assert markers[0].payouts_count == 0
        assert second.units_discovered == 0
        assert await ledger.transactions(IncomeSource.REFERRAL_INCOME) == []
        assert "Deposit cycle distributed" in messages
