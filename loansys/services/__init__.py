"""
Services package initialization.

This module provides access to all service classes used in the application.
"""

from .emi_calculator import (
    EMICalculator,
    amortization_schedule,
    calculate_emi,
    calculate_total_interest,
    generate_emi_schedule,
)
from .loan_lifecycle import LoanAction, next_status, transition
from .analytics_service import (
    AnalyticsService,
    borrower_summary,
    borrower_totals,
    compute_portfolio_metrics,
    loans_to_dataframe,
    repayment_overview,
    status_breakdown,
)
from .loan_service import LoanService
from .user_service import UserService

__all__ = [
    "EMICalculator",
    "amortization_schedule",
    "calculate_emi",
    "calculate_total_interest",
    "generate_emi_schedule",
    "LoanAction",
    "next_status",
    "transition",
    "AnalyticsService",
    "borrower_summary",
    "borrower_totals",
    "compute_portfolio_metrics",
    "loans_to_dataframe",
    "repayment_overview",
    "status_breakdown",
    "LoanService",
    "UserService",
]
