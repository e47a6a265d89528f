"""
Loan domain models: status lifecycle, repayment entries and the loan record.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from .base import BaseModel, Entity, quantize_amount

MAX_DURATION_MONTHS = 600


class LoanStatus(str, Enum):
    """Loan status enumeration.

    Values are the labels stored in the loan collection.
    """

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    ASSIGNED = "Assigned"
    DISBURSED = "Funds Disbursed"
    COMPLETED = "Completed"

    @property
    def is_terminal(self) -> bool:
        return self in (LoanStatus.REJECTED, LoanStatus.COMPLETED)

    @classmethod
    def active_statuses(cls) -> tuple:
        return (cls.APPROVED, cls.ASSIGNED, cls.DISBURSED)


class Repayment(BaseModel):
    """One equated monthly installment of a loan's repayment schedule.

    The amount is fixed when the schedule is generated; marking the entry as
    paid produces a new instance.
    """

    model_config = ConfigDict(frozen=True)

    month: str = Field(..., description="Installment label, e.g. 'Month 1'")
    amount: Decimal = Field(..., ge=0, description="Installment amount")
    paid: bool = Field(default=False)
    paid_at: Optional[datetime] = Field(default=None)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return quantize_amount(v)

    def mark_paid(self, paid_at: Optional[datetime] = None) -> "Repayment":
        """Return a copy of this installment flagged as paid."""
        return self.model_copy(update={"paid": True, "paid_at": paid_at})


class Loan(Entity):
    """Loan application and its lifecycle state."""

    borrower_id: int = Field(..., description="Identifier of the requesting borrower")
    borrower_name: str = Field(default="", description="Display name of the borrower")
    lender_id: Optional[int] = Field(default=None)
    lender_name: Optional[str] = Field(default=None)
    amount: Decimal = Field(..., gt=0, description="Principal amount")
    duration: int = Field(..., gt=0, le=MAX_DURATION_MONTHS, description="Tenure in months")
    purpose: str = Field(default="", max_length=500)
    aadhar: Optional[str] = Field(default=None, description="Borrower Aadhaar number")
    pan: Optional[str] = Field(default=None, description="Borrower PAN")
    address: Optional[str] = Field(default=None)
    status: LoanStatus = Field(default=LoanStatus.PENDING)
    disbursed_at: Optional[datetime] = Field(default=None)
    repayments: List[Repayment] = Field(default_factory=list)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        """Keep at most two decimal places on the principal."""
        if v.as_tuple().exponent < -2:
            v = quantize_amount(v)
        return v

    @property
    def has_lender(self) -> bool:
        return self.lender_id is not None

    @property
    def has_schedule(self) -> bool:
        return bool(self.repayments)

    @property
    def all_paid(self) -> bool:
        return self.has_schedule and all(r.paid for r in self.repayments)

    @property
    def paid_count(self) -> int:
        return sum(1 for r in self.repayments if r.paid)

    @property
    def total_expected(self) -> Decimal:
        return sum((r.amount for r in self.repayments), Decimal("0"))

    @property
    def total_paid(self) -> Decimal:
        return sum((r.amount for r in self.repayments if r.paid), Decimal("0"))

    @property
    def outstanding(self) -> Decimal:
        return max(self.total_expected - self.total_paid, Decimal("0"))
