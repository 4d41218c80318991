"""
Deposit services.

- service: DepositService (create / approve / reject)
- direct_income: first-deposit commission to the direct sponsor
"""

from .direct_income import DirectIncomePayer
from .service import DepositService


__all__ = [
    "DepositService",
    "DirectIncomePayer",
]
