"""
Ledger services.

- ledger_service: atomic balance mutation + audit row
"""

from income_engine.services.ledger.ledger_service import LedgerService

__all__ = [
    "LedgerService",
]
