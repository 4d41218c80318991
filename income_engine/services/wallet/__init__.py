"""
Wallet services.

- withdrawal_service: pending withdrawal requests and admin settlement
- transfer_service: P2P package balance transfers
- admin_funding: bulk admin credits by referral code
"""

from income_engine.services.wallet.admin_funding import FundingResult, add_funds
from income_engine.services.wallet.transfer_service import (
    TransferResult,
    TransferService,
)
from income_engine.services.wallet.withdrawal_service import (
    WithdrawalService,
    validate_withdrawal_amount,
)

__all__ = [
    "FundingResult",
    "TransferResult",
    "TransferService",
    "WithdrawalService",
    "add_funds",
    "validate_withdrawal_amount",
]
