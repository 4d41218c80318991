"""
Services.

Business logic layer.
"""

# Core ledger and sponsor tree
from income_engine.services.ledger import LedgerService
from income_engine.services.sponsor import ChainLink, SponsorChainResolver

# Scheduled distribution
from income_engine.services.distribution import (
    DistributionSummary,
    ReferralIncomeDistributor,
    TradingBonusService,
)
from income_engine.services.rank import RankSalaryEvaluator, SalarySummary

# User-facing flows
from income_engine.services.deposit import DepositService, DirectIncomePayer
from income_engine.services.user import UserService
from income_engine.services.wallet import (
    TransferService,
    WithdrawalService,
    add_funds,
)

__all__ = [
    # Core
    "LedgerService",
    "ChainLink",
    "SponsorChainResolver",
    # Distribution
    "DistributionSummary",
    "ReferralIncomeDistributor",
    "TradingBonusService",
    "RankSalaryEvaluator",
    "SalarySummary",
    # Flows
    "DepositService",
    "DirectIncomePayer",
    "UserService",
    "TransferService",
    "WithdrawalService",
    "add_funds",
]
