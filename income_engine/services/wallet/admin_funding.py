"""
Admin wallet funding.

Credits a fixed amount to a list of users identified by referral code.
Each code is its own transaction so one bad code does not block the rest.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from income_engine.models.enums import BalanceField, IncomeSource
from income_engine.repositories.user_repository import UserRepository
from income_engine.services.ledger import LedgerService
from income_engine.utils.datetime_utils import Clock, utc_now
from income_engine.utils.exceptions import IncomeEngineError, InvalidAmountError

WalletType = Literal["balance", "package"]

_WALLET_TARGETS: dict[str, tuple[BalanceField, IncomeSource]] = {
    "balance": (BalanceField.BALANCE, IncomeSource.MANUAL_DEPOSIT),
    "package": (BalanceField.PACKAGE_BALANCE, IncomeSource.ADMIN_PACKAGE_DEPOSIT),
}


@dataclass
class FundingResult:
    """Outcome for one referral code."""

    referral_code: str
    success: bool
    user_id: int | None = None
    transaction_id: int | None = None
    error: str | None = None


async def add_funds(
    session_maker: async_sessionmaker[AsyncSession],
    referral_codes: list[str],
    amount: Decimal,
    wallet_type: WalletType = "balance",
    clock: Clock = utc_now,
) -> list[FundingResult]:
    """
    Credit amount to each user in referral_codes.

    Args:
        session_maker: Session factory
        referral_codes: Target users
        amount: Positive amount per user
        wallet_type: "balance" (manual_deposit) or "package"
            (admin_package_deposit)
        clock: Time oracle

    Returns:
        One result per code, in input order

    Raises:
        InvalidAmountError: If amount is not positive or wallet_type unknown
    """
    if amount <= 0:
        raise InvalidAmountError(f"Funding amount must be positive, got {amount}")
    if wallet_type not in _WALLET_TARGETS:
        raise InvalidAmountError(f"Unknown wallet type: {wallet_type}")

    balance_field, income_source = _WALLET_TARGETS[wallet_type]
    results: list[FundingResult] = []

    for code in referral_codes:
        code = code.strip()
        try:
            async with session_maker() as session:
                async with session.begin():
                    user = await UserRepository(session).get_by_referral_code(code)
                    if user is None:
                        results.append(
                            FundingResult(code, False, error="User not found")
                        )
                        continue
                    transaction = await LedgerService(session, clock).apply_credit(
                        user.id,
                        amount,
                        income_source,
                        description=f"Admin funding ({wallet_type})",
                        balance_field=balance_field,
                    )
                    results.append(
                        FundingResult(
                            code, True, user_id=user.id, transaction_id=transaction.id
                        )
                    )
        except IncomeEngineError as e:
            logger.warning(f"Admin funding failed for {code}: {e}")
            results.append(FundingResult(code, False, error=str(e)))

    logger.info(
        "Admin funding finished",
        extra={
            "wallet_type": wallet_type,
            "amount": str(amount),
            "requested": len(referral_codes),
            "succeeded": sum(1 for r in results if r.success),
        },
    )
    return results
