"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from income_engine.models.base import Base
from income_engine.models.deposit import Deposit
from income_engine.models.distribution_marker import DistributionMarker
from income_engine.models.enums import (
    BalanceField,
    DepositStatus,
    IncomeSource,
    SourceType,
    TransactionDirection,
    TransactionStatus,
    UserRewardStatus,
)
from income_engine.models.reward import RewardTier, UserReward
from income_engine.models.transaction import Transaction
from income_engine.models.user import User
from income_engine.models.wallet import Wallet

__all__ = [
    # Base
    "Base",
    # Enums
    "BalanceField",
    "DepositStatus",
    "IncomeSource",
    "SourceType",
    "TransactionDirection",
    "TransactionStatus",
    "UserRewardStatus",
    # Core Models
    "User",
    "Wallet",
    "Deposit",
    "Transaction",
    "DistributionMarker",
    # Reward Models
    "RewardTier",
    "UserReward",
]
