"""
Loan lifecycle state machine.

Pending -> Approved | Rejected
Approved -> Assigned (lender bound) -> Funds Disbursed -> Completed (all EMIs paid)

Rejected and Completed are terminal. Transitions never mutate the loan passed
in; ``transition`` returns an updated copy or raises ``InvalidTransitionError``.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from ..exceptions import InvalidTransitionError, ValidationError
from ..models.base import utcnow
from ..models.loan import Loan, LoanStatus
from ..models.user import User
from .emi_calculator import generate_emi_schedule


class LoanAction(str, Enum):
    """Actions that move a loan through its lifecycle."""

    APPROVE = "approve"
    REJECT = "reject"
    ASSIGN_LENDER = "assign_lender"
    DISBURSE = "disburse"
    RECORD_PAYMENT = "record_payment"


ASSIGNABLE_STATUSES = (LoanStatus.PENDING, LoanStatus.APPROVED, LoanStatus.ASSIGNED)
NON_DISBURSABLE_STATUSES = (LoanStatus.DISBURSED, LoanStatus.COMPLETED, LoanStatus.REJECTED)


def next_status(
    status: LoanStatus,
    action: LoanAction,
    *,
    has_lender: bool = False,
    all_paid: bool = False,
) -> LoanStatus:
    """
    Resolve the status that follows ``action``.

    Args:
        status: Current loan status
        action: Lifecycle action being applied
        has_lender: Whether a lender is already bound to the loan
        all_paid: For payments, whether every installment is paid afterwards

    Raises:
        InvalidTransitionError: If the action is not allowed from ``status``
    """
    status = LoanStatus(status)
    action = LoanAction(action)

    if status.is_terminal:
        raise InvalidTransitionError(action.value, status.value, "loan is closed")

    if action in (LoanAction.APPROVE, LoanAction.REJECT):
        if status != LoanStatus.PENDING:
            raise InvalidTransitionError(action.value, status.value, "only pending loans can be decided")
        return LoanStatus.APPROVED if action == LoanAction.APPROVE else LoanStatus.REJECTED

    if action == LoanAction.ASSIGN_LENDER:
        if has_lender:
            raise InvalidTransitionError(action.value, status.value, "a lender is already bound")
        if status not in ASSIGNABLE_STATUSES:
            raise InvalidTransitionError(action.value, status.value)
        return LoanStatus.ASSIGNED

    if action == LoanAction.DISBURSE:
        if not has_lender:
            raise InvalidTransitionError(action.value, status.value, "no lender is bound")
        if status in NON_DISBURSABLE_STATUSES:
            raise InvalidTransitionError(action.value, status.value)
        return LoanStatus.DISBURSED

    if action == LoanAction.RECORD_PAYMENT:
        if status != LoanStatus.DISBURSED:
            raise InvalidTransitionError(action.value, status.value, "funds have not been disbursed")
        return LoanStatus.COMPLETED if all_paid else status

    raise InvalidTransitionError(str(action), status.value, "unknown action")


def _with_schedule(loan: Loan) -> dict:
    if loan.has_schedule:
        return {}
    return {"repayments": generate_emi_schedule(loan.amount, loan.duration)}


def transition(
    loan: Loan,
    action: LoanAction,
    *,
    lender: Optional[User] = None,
    repayment_index: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Loan:
    """
    Apply a lifecycle action and return the updated loan.

    The EMI schedule is generated when a loan is approved (directly or by
    binding a lender to a pending loan) and, if still missing, on disbursement.

    Raises:
        InvalidTransitionError: If the action is not allowed
        ValidationError: If a required argument for the action is missing
    """
    action = LoanAction(action)
    now = now or utcnow()

    if action == LoanAction.RECORD_PAYMENT:
        return _record_payment(loan, repayment_index, now)

    status = next_status(loan.status, action, has_lender=loan.has_lender)
    update = {"status": status}

    if action == LoanAction.APPROVE:
        update.update(_with_schedule(loan))
    elif action == LoanAction.ASSIGN_LENDER:
        if lender is None or lender.id is None:
            raise ValidationError("A lender is required", "lender", lender)
        update.update(lender_id=lender.id, lender_name=lender.name)
        update.update(_with_schedule(loan))
    elif action == LoanAction.DISBURSE:
        update["disbursed_at"] = now
        update.update(_with_schedule(loan))

    return loan.model_copy(update=update, deep=True)


def _record_payment(loan: Loan, index: Optional[int], now: datetime) -> Loan:
    action = LoanAction.RECORD_PAYMENT.value
    # status check first so closed loans report as closed
    next_status(loan.status, LoanAction.RECORD_PAYMENT, has_lender=loan.has_lender)

    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(loan.repayments):
        raise InvalidTransitionError(action, loan.status.value, f"no repayment at index {index}")
    if loan.repayments[index].paid:
        raise InvalidTransitionError(action, loan.status.value, f"{loan.repayments[index].month} is already paid")

    repayments = list(loan.repayments)
    repayments[index] = repayments[index].mark_paid(paid_at=now)
    all_paid = all(r.paid for r in repayments)

    status = next_status(loan.status, LoanAction.RECORD_PAYMENT, has_lender=loan.has_lender, all_paid=all_paid)
    return loan.model_copy(update={"repayments": repayments, "status": status}, deep=True)
