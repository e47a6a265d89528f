"""
EMI Calculator Service

Repayment schedule generation and amortized installment calculations.
All money values are ``Decimal`` rounded half-up to two decimal places.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

from ..models.base import quantize_amount
from ..models.loan import Repayment
from ..security.pii_protection import get_structured_logger

logger = get_structured_logger().get_logger(__name__)

Number = Union[int, float, str, Decimal, None]

ZERO = Decimal("0.00")


def _to_decimal(value: Number) -> Decimal:
    """Coerce user input to Decimal; anything non-numeric becomes zero."""
    if isinstance(value, bool):
        return Decimal("0")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def month_label(index: int) -> str:
    return f"Month {index}"


def generate_emi_schedule(principal: Number, duration: Number) -> List[Repayment]:
    """
    Split a principal into ``duration`` equal monthly installments.

    Args:
        principal: Loan principal; negative or non-numeric means 0
        duration: Tenure in months; zero, negative or non-numeric means 1

    Returns:
        List of unpaid repayments labelled ``Month 1`` .. ``Month n``

    Example:
        >>> [r.amount for r in generate_emi_schedule(12000, 12)][:2]
        [Decimal('1000.00'), Decimal('1000.00')]
    """
    amount = max(_to_decimal(principal), Decimal("0"))
    months = int(_to_decimal(duration))
    if months < 1:
        months = 1

    per_month = quantize_amount(amount / months)
    return [
        Repayment(month=month_label(i), amount=per_month, paid=False)
        for i in range(1, months + 1)
    ]


def calculate_emi(principal: Number, annual_rate: Number, tenure: Number) -> Decimal:
    """
    Standard amortized installment ``P*r*(1+r)^n / ((1+r)^n - 1)``.

    ``r`` is the monthly rate (annual percentage / 12 / 100). Non-positive or
    non-numeric principal, rate or tenure yields ``Decimal('0.00')``.

    Example:
        >>> calculate_emi(100000, 12, 12)
        Decimal('8884.88')
    """
    p = _to_decimal(principal)
    annual = _to_decimal(annual_rate)
    n = int(_to_decimal(tenure))
    if p <= 0 or annual <= 0 or n <= 0:
        return ZERO

    r = annual / 12 / 100
    factor = (1 + r) ** n
    return quantize_amount(p * r * factor / (factor - 1))


def calculate_total_interest(principal: Number, annual_rate: Number, tenure: Number) -> Decimal:
    """Interest paid over the whole tenure at the rounded EMI."""
    emi = calculate_emi(principal, annual_rate, tenure)
    if emi == 0:
        return ZERO
    n = int(_to_decimal(tenure))
    return quantize_amount(emi * n - _to_decimal(principal))


def amortization_schedule(
    principal: Number, annual_rate: Number, tenure: Number
) -> List[Dict[str, Any]]:
    """
    Month by month split of each installment into interest and principal.

    The final row absorbs rounding drift so the closing balance is exactly zero.
    A zero rate gives straight-line installments with no interest.
    """
    p = _to_decimal(principal)
    annual = _to_decimal(annual_rate)
    n = int(_to_decimal(tenure))
    if p <= 0 or n <= 0 or annual < 0:
        return []

    r = annual / 12 / 100
    emi = calculate_emi(p, annual, n) if annual > 0 else quantize_amount(p / n)

    rows = []
    balance = quantize_amount(p)
    for month in range(1, n + 1):
        interest = quantize_amount(balance * r)
        if month == n:
            principal_part = balance
            installment = balance + interest
        else:
            principal_part = min(emi - interest, balance)
            installment = emi
        closing = balance - principal_part
        rows.append({
            "month": month_label(month),
            "opening_balance": balance,
            "installment": installment,
            "interest": interest,
            "principal": principal_part,
            "closing_balance": closing,
        })
        balance = closing
    return rows


class EMICalculator:
    """EMI calculator bound to a default annual interest rate."""

    def __init__(self, default_annual_rate: Optional[Decimal] = None):
        self.default_annual_rate = (
            Decimal(str(default_annual_rate)) if default_annual_rate is not None else Decimal("12")
        )

    def generate_schedule(self, principal: Number, duration: Number) -> List[Repayment]:
        return generate_emi_schedule(principal, duration)

    def calculate_emi(self, principal: Number, tenure: Number, annual_rate: Number = None) -> Decimal:
        rate = self.default_annual_rate if annual_rate is None else annual_rate
        return calculate_emi(principal, rate, tenure)

    def loan_summary(self, principal: Number, tenure: Number, annual_rate: Number = None) -> Dict[str, Any]:
        """
        Calculate the installment, total payment and total interest of a loan.

        Args:
            principal: Loan principal
            tenure: Tenure in months
            annual_rate: Annual interest percentage, defaults to the configured rate

        Returns:
            Dict containing emi, total_payment, total_interest and the inputs
        """
        rate = self.default_annual_rate if annual_rate is None else _to_decimal(annual_rate)
        emi = calculate_emi(principal, rate, tenure)
        n = int(_to_decimal(tenure))
        total_payment = quantize_amount(emi * n) if emi else ZERO
        total_interest = calculate_total_interest(principal, rate, tenure)

        logger.debug(
            "EMI summary calculated",
            operation="loan_summary",
            tenure=n,
            annual_rate=str(rate),
            emi=str(emi),
        )
        return {
            "principal": quantize_amount(_to_decimal(principal)),
            "annual_rate": rate,
            "tenure_months": n,
            "emi": emi,
            "total_payment": total_payment,
            "total_interest": total_interest,
        }

    def amortization_schedule(self, principal: Number, tenure: Number, annual_rate: Number = None) -> List[Dict[str, Any]]:
        rate = self.default_annual_rate if annual_rate is None else annual_rate
        return amortization_schedule(principal, rate, tenure)
