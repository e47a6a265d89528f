"""
Analytics service: portfolio aggregates recomputed from the loan collection.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List

import pandas as pd

from ..models.analytics import BorrowerSummary, PortfolioMetrics, StatusBreakdown
from ..models.loan import Loan, LoanStatus
from ..utils.currency_utils import CurrencyUtils
from ..utils.date_utils import DateUtils

DISBURSED_STATUSES = (LoanStatus.DISBURSED, LoanStatus.COMPLETED, LoanStatus.APPROVED)

LOAN_COLUMNS = [
    "id",
    "borrower_name",
    "lender_name",
    "amount",
    "duration",
    "purpose",
    "status",
    "paid_emis",
    "total_emis",
    "expected",
    "received",
    "created_at",
    "disbursed_at",
]


def compute_portfolio_metrics(loans: Iterable[Loan]) -> PortfolioMetrics:
    """
    Aggregate principal, disbursement and repayment totals.

    Disbursed counts loans in Funds Disbursed, Completed or Approved status.
    Pending collection is expected minus received, floored at zero.
    """
    loans = list(loans)
    total_principal = sum((l.amount for l in loans), Decimal("0"))
    total_disbursed = sum(
        (l.amount for l in loans if l.status in DISBURSED_STATUSES), Decimal("0")
    )
    total_expected = sum((l.total_expected for l in loans), Decimal("0"))
    total_received = sum((l.total_paid for l in loans), Decimal("0"))

    return PortfolioMetrics(
        loan_count=len(loans),
        total_principal=total_principal,
        total_disbursed=total_disbursed,
        total_expected=total_expected,
        total_received=total_received,
        pending_collection=max(total_expected - total_received, Decimal("0")),
    )


def status_breakdown(loans: Iterable[Loan]) -> StatusBreakdown:
    counts = OrderedDict((status.value, 0) for status in LoanStatus)
    for loan in loans:
        counts[LoanStatus(loan.status).value] += 1
    return StatusBreakdown(counts=dict(counts))


def borrower_summary(loans: Iterable[Loan]) -> BorrowerSummary:
    """Totals shown to a borrower for their own loans."""
    loans = list(loans)
    total_borrowed = sum((l.amount for l in loans), Decimal("0"))
    total_paid = sum((l.total_paid for l in loans), Decimal("0"))
    return BorrowerSummary(
        total_borrowed=total_borrowed,
        total_paid=total_paid,
        total_outstanding=max(total_borrowed - total_paid, Decimal("0")),
        paid_emi_count=sum(l.paid_count for l in loans),
        total_emi_count=sum(len(l.repayments) for l in loans),
    )


def borrower_totals(loans: Iterable[Loan]) -> Dict[str, Decimal]:
    """Principal requested per borrower name, in first-seen order."""
    totals: Dict[str, Decimal] = OrderedDict()
    for loan in loans:
        key = loan.borrower_name or "Unknown"
        totals[key] = totals.get(key, Decimal("0")) + loan.amount
    return dict(totals)


def repayment_overview(loans: Iterable[Loan], currency: str = "INR") -> List[Dict[str, object]]:
    """Display rows of every installment for the lender repayment table."""
    rows = []
    for loan in loans:
        for repayment in loan.repayments:
            rows.append({
                "loan_id": loan.id,
                "borrower_name": loan.borrower_name or "Unknown",
                "month": repayment.month,
                "amount": CurrencyUtils.format_amount(repayment.amount, currency),
                "paid": repayment.paid,
                "paid_on": DateUtils.format_date(repayment.paid_at),
                "disbursed_on": DateUtils.format_date(loan.disbursed_at),
            })
    return rows


def loans_to_dataframe(loans: Iterable[Loan]) -> pd.DataFrame:
    """Flatten loans into a DataFrame for analyst exports."""
    rows = [
        {
            "id": loan.id,
            "borrower_name": loan.borrower_name,
            "lender_name": loan.lender_name,
            "amount": float(loan.amount),
            "duration": loan.duration,
            "purpose": loan.purpose,
            "status": LoanStatus(loan.status).value,
            "paid_emis": loan.paid_count,
            "total_emis": len(loan.repayments),
            "expected": float(loan.total_expected),
            "received": float(loan.total_paid),
            "created_at": loan.created_at,
            "disbursed_at": loan.disbursed_at,
        }
        for loan in loans
    ]
    return pd.DataFrame(rows, columns=LOAN_COLUMNS)


class AnalyticsService:
    """Read-only analytics over the loan repository."""

    def __init__(self, loan_repository, currency: str = "INR"):
        self.loan_repository = loan_repository
        self.currency = currency

    def portfolio_metrics(self) -> PortfolioMetrics:
        return compute_portfolio_metrics(self.loan_repository.find_all())

    def status_breakdown(self) -> StatusBreakdown:
        return status_breakdown(self.loan_repository.find_all())

    def borrower_summary(self, borrower_id: int) -> BorrowerSummary:
        return borrower_summary(self.loan_repository.find_by_borrower(borrower_id))

    def borrower_totals(self) -> Dict[str, Decimal]:
        return borrower_totals(self.loan_repository.find_all())

    def monthly_requests(self) -> List[Dict[str, object]]:
        """Number and principal of loan requests per calendar month."""
        df = loans_to_dataframe(self.loan_repository.find_all())
        if df.empty:
            return []
        created = pd.to_datetime(df["created_at"], utc=True)
        df = df.assign(month=created.dt.strftime("%Y-%m"))
        grouped = df.groupby("month").agg(count=("id", "count"), amount=("amount", "sum"))
        return [
            {"month": month, "count": int(row["count"]), "amount": float(row["amount"])}
            for month, row in grouped.sort_index().iterrows()
        ]

    def repayment_overview(self, lender_id: int = None) -> List[Dict[str, object]]:
        if lender_id is None:
            loans = self.loan_repository.find_all()
        else:
            loans = self.loan_repository.find_by_lender(lender_id)
        return repayment_overview(loans, self.currency)

    def export_loans(self) -> pd.DataFrame:
        return loans_to_dataframe(self.loan_repository.find_all())
