"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Mock deposit objects
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest


@pytest.fixture
def mock_deposit():
    """
    Create mock deposit object with default values.

    Default values:
    - id: 1
    - user_id: 100
    - amount: 1000
    - created_at: 2026-01-01 12:00 UTC

    Returns:
        MagicMock: Mock deposit object
    """
    deposit = MagicMock()
    deposit.id = 1
    deposit.user_id = 100
    deposit.amount = Decimal("1000")
    deposit.created_at = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    return deposit
