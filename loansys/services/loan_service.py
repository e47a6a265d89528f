# loansys/services/loan_service.py

from decimal import Decimal
from typing import List, Optional, Union

from ..exceptions import InvalidTransitionError, PermissionDeniedError, ValidationError
from ..models.analytics import PortfolioMetrics
from ..models.loan import Loan, LoanStatus
from ..models.user import UserRole
from ..repositories.loan_repository import LoanRepository
from ..repositories.user_repository import UserRepository
from ..security.pii_protection import get_structured_logger
from .analytics_service import compute_portfolio_metrics
from .emi_calculator import generate_emi_schedule
from .loan_lifecycle import LoanAction, transition
from .validators import parse_amount, parse_duration, require_text

logger = get_structured_logger().get_logger(__name__)

STATUS_FILTERS = {
    "pending": (LoanStatus.PENDING,),
    "approved": (LoanStatus.APPROVED,),
    "completed": (LoanStatus.COMPLETED,),
    "rejected": (LoanStatus.REJECTED,),
    "active": (LoanStatus.APPROVED, LoanStatus.DISBURSED, LoanStatus.ASSIGNED),
}


class LoanService:
    """
    Loan use cases for every role over the single loan collection.

    Borrower and lender views are queries on the same repository rather than
    copies, and every state change is a locked read-modify-write of one loan.
    """

    def __init__(
        self,
        loan_repository: LoanRepository,
        user_repository: UserRepository,
        require_kyc: bool = True,
    ):
        self.loan_repository = loan_repository
        self.user_repository = user_repository
        self.require_kyc = require_kyc

    # ----- borrower -----

    def request_loan(
        self,
        borrower_id: int,
        amount: Union[int, float, str, Decimal],
        duration: Union[int, str],
        purpose: str = "",
        aadhar: Optional[str] = None,
        pan: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Loan:
        """Create a pending loan request for a borrower."""
        borrower = self.user_repository.get(borrower_id)
        if borrower.role != UserRole.BORROWER:
            raise PermissionDeniedError(f"User {borrower_id} is not a borrower")

        principal = parse_amount(amount)
        months = parse_duration(duration)
        if self.require_kyc:
            aadhar = require_text(aadhar, "aadhar", "Please enter your Aadhar number.")
            pan = require_text(pan, "pan", "Please enter your PAN number.")
            address = require_text(address, "address", "Please enter your address.")

        loan = self.loan_repository.save(
            Loan(
                borrower_id=borrower.id,
                borrower_name=borrower.name,
                amount=principal,
                duration=months,
                purpose=(purpose or "").strip(),
                aadhar=aadhar,
                pan=pan,
                address=address,
            )
        )
        logger.info(
            "Loan requested",
            operation="request_loan",
            loan_id=loan.id,
            borrower_id=borrower.id,
            amount=str(principal),
            duration=months,
        )
        return loan

    def record_payment(self, loan_id: int, repayment_index: int, borrower_id: Optional[int] = None) -> Loan:
        """Mark one installment as paid; completes the loan on the last one."""

        def pay(loan: Loan) -> Loan:
            if borrower_id is not None and loan.borrower_id != borrower_id:
                raise PermissionDeniedError(f"Loan {loan_id} does not belong to borrower {borrower_id}")
            return transition(loan, LoanAction.RECORD_PAYMENT, repayment_index=repayment_index)

        loan = self._update(loan_id, LoanAction.RECORD_PAYMENT, pay)
        if loan.status == LoanStatus.COMPLETED:
            logger.info("Loan completed", operation="record_payment", loan_id=loan_id)
        return loan

    def loans_for_borrower(self, borrower_id: int) -> List[Loan]:
        return self.loan_repository.find_by_borrower(borrower_id)

    # ----- admin -----

    def approve(self, loan_id: int) -> Loan:
        return self._update(loan_id, LoanAction.APPROVE, lambda loan: transition(loan, LoanAction.APPROVE))

    def reject(self, loan_id: int) -> Loan:
        return self._update(loan_id, LoanAction.REJECT, lambda loan: transition(loan, LoanAction.REJECT))

    def assign_lender(self, loan_id: int, lender_id: int) -> Loan:
        """Bind a lender to the loan."""
        lender = self.user_repository.find_by_id(lender_id)
        if lender is None or lender.role != UserRole.LENDER:
            raise ValidationError("Invalid lender!", "lender_id", lender_id)
        return self._update(
            loan_id,
            LoanAction.ASSIGN_LENDER,
            lambda loan: transition(loan, LoanAction.ASSIGN_LENDER, lender=lender),
        )

    def update_loan(
        self,
        loan_id: int,
        amount: Union[int, float, str, Decimal, None] = None,
        duration: Union[int, str, None] = None,
        purpose: Optional[str] = None,
    ) -> Loan:
        """Edit the terms of a loan that has not been decided yet."""
        update = {}
        if amount is not None:
            update["amount"] = parse_amount(amount)
        if duration is not None:
            update["duration"] = parse_duration(duration)
        if purpose is not None:
            update["purpose"] = purpose.strip()

        def edit(loan: Loan) -> Loan:
            if loan.status != LoanStatus.PENDING:
                raise InvalidTransitionError("edit", loan.status.value, "only pending loans can be edited")
            edited = loan.model_copy(deep=True)
            for field, value in update.items():
                setattr(edited, field, value)
            return edited

        loan = self.loan_repository.update(loan_id, edit)
        logger.info("Loan updated", operation="update_loan", loan_id=loan_id, fields=sorted(update))
        return loan

    def delete_loan(self, loan_id: int) -> bool:
        deleted = self.loan_repository.delete(loan_id)
        logger.info("Loan deleted", operation="delete_loan", loan_id=loan_id, deleted=deleted)
        return deleted

    def list_loans(self, status_filter: str = "all") -> List[Loan]:
        """List loans using the admin dashboard filters; unknown filters list everything."""
        statuses = STATUS_FILTERS.get((status_filter or "all").lower())
        if statuses is None:
            return self.loan_repository.find_all()
        return self.loan_repository.find_by_status(*statuses)

    def ensure_schedules(self) -> int:
        """Generate missing EMI schedules on approved or disbursed loans.

        Returns the number of loans repaired.
        """
        repaired = 0
        with self.loan_repository.lock:
            for loan in self.loan_repository.find_all():
                if loan.status in (LoanStatus.APPROVED, LoanStatus.ASSIGNED, LoanStatus.DISBURSED) and not loan.has_schedule:
                    self.loan_repository.update(
                        loan.id,
                        lambda l: l.model_copy(update={"repayments": generate_emi_schedule(l.amount, l.duration)}),
                    )
                    repaired += 1
        if repaired:
            logger.info("Generated missing EMI schedules", operation="ensure_schedules", count=repaired)
        return repaired

    # ----- lender -----

    def disburse(self, loan_id: int, lender_id: Optional[int] = None) -> Loan:
        """Release funds; only the bound lender may disburse when ``lender_id`` is given."""

        def release(loan: Loan) -> Loan:
            if lender_id is not None and loan.has_lender and loan.lender_id != lender_id:
                raise PermissionDeniedError(f"Loan {loan_id} is not assigned to lender {lender_id}")
            return transition(loan, LoanAction.DISBURSE)

        return self._update(loan_id, LoanAction.DISBURSE, release)

    def loans_for_lender(self, lender_id: int) -> List[Loan]:
        return self.loan_repository.find_by_lender(lender_id)

    # ----- shared -----

    def get_loan(self, loan_id: int) -> Loan:
        return self.loan_repository.get(loan_id)

    def get_loan_summary(self, role: Optional[UserRole] = None, user_id: Optional[int] = None) -> PortfolioMetrics:
        """Portfolio metrics scoped to what ``role`` can see."""
        role = UserRole(role) if role is not None else None
        if role == UserRole.BORROWER:
            loans = self.loans_for_borrower(user_id)
        elif role == UserRole.LENDER:
            loans = self.loans_for_lender(user_id)
        else:
            loans = self.loan_repository.find_all()
        return compute_portfolio_metrics(loans)

    def _update(self, loan_id: int, action: LoanAction, fn) -> Loan:
        try:
            loan = self.loan_repository.update(loan_id, fn)
        except (InvalidTransitionError, PermissionDeniedError) as e:
            logger.warning(
                "Loan action refused",
                operation=action.value,
                loan_id=loan_id,
                error_type=type(e).__name__,
                reason=e.message,
            )
            raise
        logger.info(
            "Loan status changed",
            operation=action.value,
            loan_id=loan_id,
            status=loan.status.value,
        )
        return loan
