"""
Integration tests for loan workflows across roles over one store
"""

from decimal import Decimal

import pytest

from loansys.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from loansys.models.loan import Loan, LoanStatus
from loansys.models.user import UserRole
from loansys.services.analytics_service import AnalyticsService
from loansys.services.loan_service import LoanService

KYC = {"aadhar": "1234 5678 9012", "pan": "ABCDE1234F", "address": "12 MG Road, Pune"}


class TestLoanRequest:
    """Test borrower loan requests"""

    def test_request_creates_pending_loan(self, pending_loan, borrower):
        assert pending_loan.id == 1
        assert pending_loan.status == LoanStatus.PENDING
        assert pending_loan.borrower_id == borrower.id
        assert pending_loan.borrower_name == "Ravi Kumar"
        assert pending_loan.amount == Decimal("12000")
        assert pending_loan.duration == 12
        assert pending_loan.pan == "ABCDE1234F"
        assert pending_loan.repayments == []

    def test_request_accepts_form_strings(self, loan_service, borrower):
        loan = loan_service.request_loan(borrower.id, "25,000", "10", "Tractor", **KYC)
        assert loan.amount == Decimal("25000")
        assert loan.duration == 10

    @pytest.mark.parametrize("amount,duration", [(0, 12), (1000, 0), ("-10", 3)])
    def test_request_rejects_non_positive_terms(self, loan_service, borrower, amount, duration):
        with pytest.raises(ValidationError, match="Amount and duration must be positive."):
            loan_service.request_loan(borrower.id, amount, duration, **KYC)
        assert loan_service.list_loans() == []

    def test_request_rejects_overlong_duration(self, loan_service, borrower):
        with pytest.raises(ValidationError, match="cannot exceed"):
            loan_service.request_loan(borrower.id, 1000, 10**8, **KYC)
        assert loan_service.list_loans() == []

    @pytest.mark.parametrize("field,message", [
        ("aadhar", "Please enter your Aadhar number."),
        ("pan", "Please enter your PAN number."),
        ("address", "Please enter your address."),
    ])
    def test_request_requires_kyc(self, loan_service, borrower, field, message):
        kyc = dict(KYC, **{field: "  "})
        with pytest.raises(ValidationError) as exc_info:
            loan_service.request_loan(borrower.id, 1000, 2, **kyc)
        assert exc_info.value.message == message
        assert exc_info.value.field == field

    def test_request_without_kyc_check(self, loan_repository, user_repository, borrower):
        service = LoanService(loan_repository, user_repository, require_kyc=False)
        loan = service.request_loan(borrower.id, 500, 1)
        assert loan.aadhar is None

    def test_only_borrowers_request(self, loan_service, lender):
        with pytest.raises(PermissionDeniedError):
            loan_service.request_loan(lender.id, 1000, 2, **KYC)

    def test_unknown_borrower(self, loan_service):
        with pytest.raises(NotFoundError):
            loan_service.request_loan(404, 1000, 2, **KYC)


class TestAdminDecisions:
    """Test approve, reject and lender binding"""

    def test_approve_generates_schedule(self, loan_service, pending_loan):
        loan = loan_service.approve(pending_loan.id)

        assert loan.status == LoanStatus.APPROVED
        assert len(loan.repayments) == 12
        assert all(r.amount == Decimal("1000.00") and not r.paid for r in loan.repayments)
        assert loan_service.get_loan(pending_loan.id) == loan

    def test_reject_is_final(self, loan_service, pending_loan, lender):
        loan_service.reject(pending_loan.id)

        with pytest.raises(InvalidTransitionError):
            loan_service.approve(pending_loan.id)
        with pytest.raises(InvalidTransitionError):
            loan_service.assign_lender(pending_loan.id, lender.id)
        assert loan_service.get_loan(pending_loan.id).status == LoanStatus.REJECTED

    def test_assign_lender(self, loan_service, pending_loan, lender):
        loan_service.approve(pending_loan.id)
        loan = loan_service.assign_lender(pending_loan.id, lender.id)

        assert loan.status == LoanStatus.ASSIGNED
        assert loan.lender_id == lender.id
        assert loan.lender_name == "Meera Capital"

    def test_assign_non_lender(self, loan_service, pending_loan, borrower):
        with pytest.raises(ValidationError, match="Invalid lender!"):
            loan_service.assign_lender(pending_loan.id, borrower.id)
        with pytest.raises(ValidationError, match="Invalid lender!"):
            loan_service.assign_lender(pending_loan.id, 999)

    def test_assign_missing_loan(self, loan_service, lender):
        with pytest.raises(NotFoundError):
            loan_service.assign_lender(77, lender.id)

    def test_update_pending_loan(self, loan_service, pending_loan):
        loan = loan_service.update_loan(pending_loan.id, amount="15000", duration=15, purpose=" Stock ")

        assert loan.amount == Decimal("15000")
        assert loan.duration == 15
        assert loan.purpose == "Stock"
        assert loan.status == LoanStatus.PENDING

    def test_update_decided_loan_refused(self, loan_service, pending_loan):
        loan_service.approve(pending_loan.id)
        with pytest.raises(InvalidTransitionError):
            loan_service.update_loan(pending_loan.id, amount=1)

    def test_update_rejects_bad_terms(self, loan_service, pending_loan):
        with pytest.raises(ValidationError):
            loan_service.update_loan(pending_loan.id, duration=0)

    def test_update_rejects_overlong_duration(self, loan_service, pending_loan):
        with pytest.raises(ValidationError, match="cannot exceed"):
            loan_service.update_loan(pending_loan.id, duration=601)
        assert loan_service.get_loan(pending_loan.id).duration == 12

    def test_delete_loan(self, loan_service, pending_loan):
        assert loan_service.delete_loan(pending_loan.id) is True
        assert loan_service.delete_loan(pending_loan.id) is False
        with pytest.raises(NotFoundError):
            loan_service.get_loan(pending_loan.id)


class TestDisbursementAndRepayment:
    """Test lender disbursement and borrower repayments"""

    def test_disbursed_loan(self, disbursed_loan, lender):
        assert disbursed_loan.status == LoanStatus.DISBURSED
        assert disbursed_loan.disbursed_at is not None
        assert disbursed_loan.lender_id == lender.id

    def test_disburse_without_lender(self, loan_service, pending_loan):
        loan_service.approve(pending_loan.id)
        with pytest.raises(InvalidTransitionError):
            loan_service.disburse(pending_loan.id)
        assert loan_service.get_loan(pending_loan.id).status == LoanStatus.APPROVED

    def test_only_bound_lender_disburses(self, loan_service, user_service, pending_loan, lender):
        other = user_service.register_user("Other Bank", "other@loansys.test", "lender")
        loan_service.assign_lender(pending_loan.id, lender.id)

        with pytest.raises(PermissionDeniedError):
            loan_service.disburse(pending_loan.id, other.id)
        assert loan_service.get_loan(pending_loan.id).status == LoanStatus.ASSIGNED

    def test_payment_before_disbursement(self, loan_service, pending_loan):
        loan_service.approve(pending_loan.id)
        with pytest.raises(InvalidTransitionError):
            loan_service.record_payment(pending_loan.id, 0)

    def test_pay_all_installments_completes(self, loan_service, disbursed_loan, borrower):
        for index in range(12):
            loan = loan_service.record_payment(disbursed_loan.id, index, borrower_id=borrower.id)
            expected = LoanStatus.COMPLETED if index == 11 else LoanStatus.DISBURSED
            assert loan.status == expected

        stored = loan_service.get_loan(disbursed_loan.id)
        assert stored.all_paid
        assert stored.status == LoanStatus.COMPLETED

    def test_completed_loan_is_terminal(self, loan_service, disbursed_loan):
        for index in range(12):
            loan_service.record_payment(disbursed_loan.id, index)

        with pytest.raises(InvalidTransitionError):
            loan_service.record_payment(disbursed_loan.id, 0)
        with pytest.raises(InvalidTransitionError):
            loan_service.disburse(disbursed_loan.id)

    def test_payment_by_other_borrower(self, loan_service, user_service, disbursed_loan):
        other = user_service.register_user("Sita", "sita@loansys.test")
        with pytest.raises(PermissionDeniedError):
            loan_service.record_payment(disbursed_loan.id, 0, borrower_id=other.id)
        assert loan_service.get_loan(disbursed_loan.id).paid_count == 0

    def test_double_payment(self, loan_service, disbursed_loan):
        loan_service.record_payment(disbursed_loan.id, 3)
        with pytest.raises(InvalidTransitionError, match="already paid"):
            loan_service.record_payment(disbursed_loan.id, 3)

    def test_role_views_share_one_record(self, loan_service, disbursed_loan, borrower, lender):
        loan_service.record_payment(disbursed_loan.id, 0, borrower_id=borrower.id)

        borrower_view = loan_service.loans_for_borrower(borrower.id)[0]
        lender_view = loan_service.loans_for_lender(lender.id)[0]
        admin_view = loan_service.get_loan(disbursed_loan.id)
        assert borrower_view == lender_view == admin_view
        assert lender_view.paid_count == 1


class TestListingAndMaintenance:
    """Test admin filters, schedule repair and summaries"""

    @pytest.fixture
    def portfolio(self, loan_service, borrower, lender):
        ids = [loan_service.request_loan(borrower.id, 1000 * n, n, **KYC).id for n in range(1, 6)]
        loan_service.approve(ids[1])
        loan_service.reject(ids[2])
        loan_service.assign_lender(ids[3], lender.id)
        loan_service.assign_lender(ids[4], lender.id)
        loan_service.disburse(ids[4], lender.id)
        return ids

    @pytest.mark.parametrize("status_filter,expected", [
        ("all", [1, 2, 3, 4, 5]),
        ("pending", [1]),
        ("approved", [2]),
        ("rejected", [3]),
        ("completed", []),
        ("active", [2, 4, 5]),
        ("ACTIVE", [2, 4, 5]),
        ("bogus", [1, 2, 3, 4, 5]),
        (None, [1, 2, 3, 4, 5]),
    ])
    def test_list_filters(self, loan_service, portfolio, status_filter, expected):
        assert [l.id for l in loan_service.list_loans(status_filter)] == expected

    def test_ensure_schedules(self, loan_service, loan_repository, borrower):
        legacy = loan_repository.save(Loan(
            borrower_id=borrower.id, amount=Decimal("900"), duration=3, status=LoanStatus.APPROVED,
        ))
        untouched = loan_repository.save(Loan(borrower_id=borrower.id, amount=Decimal("100"), duration=1))

        assert loan_service.ensure_schedules() == 1
        assert [r.amount for r in loan_service.get_loan(legacy.id).repayments] == [Decimal("300.00")] * 3
        assert loan_service.get_loan(untouched.id).repayments == []
        assert loan_service.ensure_schedules() == 0

    def test_summary_by_role(self, loan_service, portfolio, borrower, lender):
        admin_summary = loan_service.get_loan_summary(UserRole.ADMIN)
        lender_summary = loan_service.get_loan_summary("lender", lender.id)
        borrower_summary = loan_service.get_loan_summary(UserRole.BORROWER, borrower.id)

        assert admin_summary.loan_count == 5
        assert admin_summary.total_principal == Decimal("15000")
        assert lender_summary.loan_count == 2
        assert lender_summary.total_disbursed == Decimal("5000")
        assert lender_summary.total_expected == Decimal("9000.00")
        assert borrower_summary.loan_count == 5

    def test_analytics_over_service_store(self, loan_service, loan_repository, portfolio, lender):
        analytics = AnalyticsService(loan_repository)

        breakdown = analytics.status_breakdown()
        assert breakdown.get("Assigned") == 1
        assert breakdown.active == 3
        assert len(analytics.repayment_overview(lender.id)) == 9
        assert analytics.borrower_totals() == {"Ravi Kumar": Decimal("15000")}
        assert analytics.export_loans().shape[0] == 5

        months = analytics.monthly_requests()
        assert len(months) == 1
        assert months[0]["count"] == 5
        assert months[0]["amount"] == pytest.approx(15000.0)

    def test_monthly_requests_empty(self, loan_repository):
        assert AnalyticsService(loan_repository).monthly_requests() == []
