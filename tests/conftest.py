"""
Pytest configuration and fixtures for the loansys test suite
"""

import os
import sys
from decimal import Decimal

import pytest

# Add project root to Python path to allow imports from 'loansys'
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from loansys.config.settings import Settings, StorageConfig, AppConfig, StorageBackendType
from loansys.models.user import UserRole
from loansys.repositories.loan_repository import LoanRepository
from loansys.repositories.storage import MemoryStorage
from loansys.repositories.user_repository import UserRepository
from loansys.services.loan_service import LoanService
from loansys.services.user_service import UserService


KYC = {
    "aadhar": "1234 5678 9012",
    "pan": "ABCDE1234F",
    "address": "12 MG Road, Pune",
}


@pytest.fixture
def test_settings():
    """Create test settings configuration"""
    return Settings(
        storage=StorageConfig(backend=StorageBackendType.MEMORY, path=":memory:"),
        app=AppConfig(log_level="DEBUG"),
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def loan_repository(storage):
    return LoanRepository(storage)


@pytest.fixture
def user_repository(storage):
    return UserRepository(storage)


@pytest.fixture
def user_service(user_repository):
    return UserService(user_repository)


@pytest.fixture
def loan_service(loan_repository, user_repository):
    return LoanService(loan_repository, user_repository)


@pytest.fixture
def admin(user_service):
    return user_service.register_user("Asha Admin", "admin@loansys.test", UserRole.ADMIN)


@pytest.fixture
def borrower(user_service):
    return user_service.register_user("Ravi Kumar", "ravi@loansys.test", UserRole.BORROWER)


@pytest.fixture
def lender(user_service):
    return user_service.register_user("Meera Capital", "meera@loansys.test", UserRole.LENDER)


@pytest.fixture
def pending_loan(loan_service, borrower):
    """A 12000 over 12 months request awaiting a decision"""
    return loan_service.request_loan(
        borrower.id, Decimal("12000"), 12, purpose="Shop inventory", **KYC
    )


@pytest.fixture
def disbursed_loan(loan_service, pending_loan, lender):
    """A loan approved, bound to a lender and funded"""
    loan_service.approve(pending_loan.id)
    loan_service.assign_lender(pending_loan.id, lender.id)
    return loan_service.disburse(pending_loan.id, lender.id)
