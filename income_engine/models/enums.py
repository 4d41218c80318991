"""
Model enums.

String enums stored in VARCHAR columns.
"""

from enum import Enum


class DepositStatus(str, Enum):
    """Deposit lifecycle."""

    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class TransactionStatus(str, Enum):
    """Transaction status. Only pending rows may change status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TransactionDirection(str, Enum):
    """Credit adds to a balance, debit subtracts."""

    CREDIT = "credit"
    DEBIT = "debit"


class IncomeSource(str, Enum):
    """Categorical source tag of a ledger entry."""

    DEPOSIT = "deposit"
    TRADING_BONUS = "trading_bonus"
    REFERRAL_INCOME = "referral_income"
    DIRECT_INCOME = "direct_income"
    SALARY_INCOME = "salary_income"
    FAST_TRACK_REWARD = "fast_track_reward"
    P2P_TRANSFER_SENT = "p2p_transfer_sent"
    P2P_TRANSFER_RECEIVED = "p2p_transfer_received"
    PLATFORM_FEE = "platform_fee"
    WITHDRAWAL = "withdrawal"
    MANUAL_DEPOSIT = "manual_deposit"
    ADMIN_PACKAGE_DEPOSIT = "admin_package_deposit"


class BalanceField(str, Enum):
    """Wallet balance a ledger entry applies to."""

    BALANCE = "balance"
    PACKAGE_BALANCE = "package_balance"


class SourceType(str, Enum):
    """Kind of event a payout originates from."""

    DEPOSIT = "deposit"
    TRADING_BONUS = "trading_bonus"
    SALARY_PERIOD = "salary_period"
    REWARD_TIER = "reward_tier"
    TRANSFER = "transfer"


class UserRewardStatus(str, Enum):
    """Fast-track reward progress."""

    IN_PROGRESS = "in_progress"
    ACHIEVED = "achieved"
    EXPIRED = "expired"
