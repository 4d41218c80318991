"""
Rank services.

- rank_evaluator: downline volume, monthly salary, fast-track tiers
"""

from income_engine.services.rank.rank_evaluator import (
    RankSalaryEvaluator,
    SalarySummary,
)

__all__ = [
    "RankSalaryEvaluator",
    "SalarySummary",
]
