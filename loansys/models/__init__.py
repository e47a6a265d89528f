"""
Domain Models

This module contains the core domain entities and value objects
for the loan management application.
"""

from .base import BaseModel, Entity, quantize_amount
from .loan import MAX_DURATION_MONTHS, Loan, LoanStatus, Repayment
from .user import User, UserRole
from .analytics import PortfolioMetrics, StatusBreakdown, BorrowerSummary

__all__ = [
    "BaseModel",
    "Entity",
    "quantize_amount",
    "MAX_DURATION_MONTHS",
    "Loan",
    "LoanStatus",
    "Repayment",
    "User",
    "UserRole",
    "PortfolioMetrics",
    "StatusBreakdown",
    "BorrowerSummary",
]
