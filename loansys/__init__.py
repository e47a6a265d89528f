"""
loansys

Loan lifecycle and repayment domain package for the role-based
loan-management application (admin, lender, borrower, analyst).
"""

__version__ = "0.1.0"
