"""
Exception types.

Typed failures surfaced to callers of ledger and wallet operations.
"""

from decimal import Decimal


class IncomeEngineError(Exception):
    """Base class for business rule violations."""


class InvalidAmountError(IncomeEngineError, ValueError):
    """Raised when an amount is zero, negative or breaks an amount rule."""


class InsufficientBalanceError(IncomeEngineError):
    """Raised when a debit would take a wallet balance below zero."""

    def __init__(
        self,
        user_id: int,
        requested: Decimal,
        available: Decimal | None = None,
        balance_field: str = "balance",
    ) -> None:
        self.user_id = user_id
        self.requested = requested
        self.available = available
        self.balance_field = balance_field
        message = (
            f"Insufficient {balance_field} for user {user_id}: "
            f"requested {requested}"
        )
        if available is not None:
            message += f", available {available}"
        super().__init__(message)


class UserNotFoundError(IncomeEngineError, LookupError):
    """Raised when a referenced user (id or referral code) does not exist."""


class DepositStateError(IncomeEngineError):
    """Raised when a deposit is missing or not in the expected status."""


class TransactionStateError(IncomeEngineError):
    """Raised when a transaction is missing or not in the expected status."""


class SelfTransferError(IncomeEngineError):
    """Raised when a user tries to transfer funds to themselves."""


class UserAlreadyExistsError(IncomeEngineError, ValueError):
    """Raised when registering an email that is already taken."""
