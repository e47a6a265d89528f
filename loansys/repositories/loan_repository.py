"""
Loan repository: the single authoritative loan collection.
"""

from typing import List, Type

from ..models.loan import Loan, LoanStatus
from .base import BaseRepository


class LoanRepository(BaseRepository[Loan]):
    """Repository for Loan entities."""

    def _get_collection_name(self) -> str:
        return "loans"

    def _get_model_class(self) -> Type[Loan]:
        return Loan

    def find_by_borrower(self, borrower_id: int) -> List[Loan]:
        return self.find_where(lambda loan: loan.borrower_id == borrower_id)

    def find_by_lender(self, lender_id: int) -> List[Loan]:
        return self.find_where(lambda loan: loan.lender_id == lender_id)

    def find_by_status(self, *statuses: LoanStatus) -> List[Loan]:
        wanted = {LoanStatus(s) for s in statuses}
        return self.find_where(lambda loan: loan.status in wanted)
