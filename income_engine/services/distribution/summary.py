"""
Distribution run results.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

UnitStatus = Literal["distributed", "skipped", "failed"]


@dataclass
class CycleResult:
    """Outcome of one distribution unit (a deposit cycle or a bonus)."""

    source_type: str
    source_id: int
    user_id: int
    cycle_number: int
    principal: Decimal
    status: UnitStatus = "distributed"
    payouts_count: int = 0
    total_distributed: Decimal = Decimal("0")
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Serializable form for job logs."""
        return {
            "source_type": self.source_type,
            "source_id": self.source_id,
            "user_id": self.user_id,
            "cycle_number": self.cycle_number,
            "principal": str(self.principal),
            "status": self.status,
            "payouts_count": self.payouts_count,
            "total_distributed": str(self.total_distributed),
            "error": self.error,
        }


@dataclass
class DistributionSummary:
    """Aggregate of one distribution run."""

    name: str
    sources_scanned: int = 0
    units_discovered: int = 0
    units_processed: int = 0
    units_skipped: int = 0
    units_failed: int = 0
    payouts_count: int = 0
    total_principal: Decimal = Decimal("0")
    total_distributed: Decimal = Decimal("0")
    results: list[CycleResult] = field(default_factory=list)

    def add(self, result: CycleResult) -> None:
        """Fold a unit result into the totals."""
        self.results.append(result)
        if result.status == "failed":
            self.units_failed += 1
            return
        if result.status == "skipped":
            self.units_skipped += 1
            return
        self.units_processed += 1
        self.payouts_count += result.payouts_count
        self.total_principal += result.principal
        self.total_distributed += result.total_distributed

    @property
    def success(self) -> bool:
        """True when no unit failed."""
        return self.units_failed == 0

    def as_dict(self) -> dict[str, Any]:
        """Serializable form for job logs."""
        return {
            "name": self.name,
            "success": self.success,
            "sources_scanned": self.sources_scanned,
            "units_discovered": self.units_discovered,
            "units_processed": self.units_processed,
            "units_skipped": self.units_skipped,
            "units_failed": self.units_failed,
            "payouts_count": self.payouts_count,
            "total_principal": str(self.total_principal),
            "total_distributed": str(self.total_distributed),
            "results": [result.as_dict() for result in self.results],
        }
