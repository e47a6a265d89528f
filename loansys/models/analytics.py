"""
Analytics and metrics domain models.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict


@dataclass
class PortfolioMetrics:
    """Aggregate money figures over a collection of loans."""

    loan_count: int
    total_principal: Decimal
    total_disbursed: Decimal
    total_expected: Decimal
    total_received: Decimal
    pending_collection: Decimal

    @property
    def collection_rate(self) -> Decimal:
        """Percentage of the expected repayments already received."""
        if self.total_expected == 0:
            return Decimal("0")
        return (self.total_received / self.total_expected * 100).quantize(Decimal("0.01"))


@dataclass
class StatusBreakdown:
    """Number of loans per lifecycle status."""

    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def active(self) -> int:
        return (
            self.counts.get("Approved", 0)
            + self.counts.get("Assigned", 0)
            + self.counts.get("Funds Disbursed", 0)
        )

    def get(self, status: str) -> int:
        return self.counts.get(status, 0)


@dataclass
class BorrowerSummary:
    """Borrower dashboard figures."""

    total_borrowed: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    paid_emi_count: int
    total_emi_count: int

    @property
    def remaining_emi_count(self) -> int:
        return self.total_emi_count - self.paid_emi_count
