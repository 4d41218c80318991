"""
Distribution services.

- deposit_cycles: cycle counting and profit math
- idempotency: correlation keys and the distribution guard
- upline_payer: per-level payouts for one unit
- referral_distribution_service: daily deposit cycle driver
- trading_bonus_service: monthly trading bonus and its referrals
- cycle_runner: zero-argument entry points for jobs
"""

from income_engine.services.distribution.deposit_cycles import (
    completed_cycles,
    cycle_profit,
    level_payout,
)
from income_engine.services.distribution.idempotency import DistributionGuard
from income_engine.services.distribution.referral_distribution_service import (
    ReferralIncomeDistributor,
)
from income_engine.services.distribution.summary import (
    CycleResult,
    DistributionSummary,
)
from income_engine.services.distribution.trading_bonus_service import (
    TradingBonusService,
)
from income_engine.services.distribution.upline_payer import UplinePayer, UplineUnit

__all__ = [
    "CycleResult",
    "DistributionGuard",
    "DistributionSummary",
    "ReferralIncomeDistributor",
    "TradingBonusService",
    "UplinePayer",
    "UplineUnit",
    "completed_cycles",
    "cycle_profit",
    "level_payout",
]
