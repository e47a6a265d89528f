"""
Dependency Injection Container

This module provides a centralized container for managing dependencies
and service instantiation throughout the application.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from .config.settings import Settings, StorageBackendType
from .repositories.loan_repository import LoanRepository
from .repositories.storage import JsonFileStorage, MemoryStorage, SqliteStorage, StorageBackend
from .repositories.user_repository import UserRepository
from .security.pii_protection import configure_logging
from .services.analytics_service import AnalyticsService
from .services.emi_calculator import EMICalculator
from .services.loan_service import LoanService
from .services.user_service import UserService


def create_storage(settings: Settings) -> StorageBackend:
    """Build the storage backend selected in settings."""
    config = settings.storage
    backend = StorageBackendType(config.backend)
    if backend == StorageBackendType.MEMORY:
        return MemoryStorage()
    if backend == StorageBackendType.SQLITE:
        path = config.path
        if path != ":memory:" and not path.endswith(".db"):
            path = str(Path(path) / "loansys.db")
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        return SqliteStorage(path)
    return JsonFileStorage(config.path)


class Container:
    """Dependency injection container for managing application services."""

    def __init__(self):
        self._singletons: Dict[str, Any] = {}
        self._settings: Optional[Settings] = None
        self._storage: Optional[StorageBackend] = None

    def configure(self, settings: Optional[Settings] = None, storage: Optional[StorageBackend] = None) -> None:
        """Configure the container with settings and an optional storage override."""
        self._settings = settings or Settings()
        configure_logging(self._settings.app.service_name, self._settings.app.log_level)
        self._storage = storage or create_storage(self._settings)

        self._register_repositories()
        self._register_services()

    def get_settings(self) -> Settings:
        """Get application settings."""
        if not self._settings:
            self._settings = Settings()
        return self._settings

    def get_storage(self) -> StorageBackend:
        if not self._storage:
            self._storage = create_storage(self.get_settings())
        return self._storage

    def _register_repositories(self) -> None:
        storage = self.get_storage()
        strict = self.get_settings().storage.strict_load

        self._singletons["loan_repository"] = LoanRepository(storage, strict_load=strict)
        self._singletons["user_repository"] = UserRepository(storage, strict_load=strict)

    def _register_services(self) -> None:
        settings = self.get_settings()
        loans = self._singletons["loan_repository"]
        users = self._singletons["user_repository"]

        self._singletons["emi_calculator"] = EMICalculator(settings.lending.default_annual_rate)
        self._singletons["loan_service"] = LoanService(loans, users)
        self._singletons["user_service"] = UserService(users)
        self._singletons["analytics_service"] = AnalyticsService(loans, settings.lending.currency)

    def get_loan_repository(self) -> LoanRepository:
        return self._singletons["loan_repository"]

    def get_user_repository(self) -> UserRepository:
        return self._singletons["user_repository"]

    def get_emi_calculator(self) -> EMICalculator:
        return self._singletons["emi_calculator"]

    def get_loan_service(self) -> LoanService:
        return self._singletons["loan_service"]

    def get_user_service(self) -> UserService:
        return self._singletons["user_service"]

    def get_analytics_service(self) -> AnalyticsService:
        return self._singletons["analytics_service"]

    def cleanup(self) -> None:
        """Cleanup container resources."""
        if self._storage:
            self._storage.close()
        self._singletons.clear()


# Global container instance
_container: Optional[Container] = None


def get_container() -> Container:
    """Get the global container instance."""
    global _container
    if _container is None:
        _container = Container()
        _container.configure()
    return _container


def configure_container(settings: Optional[Settings] = None, storage: Optional[StorageBackend] = None) -> Container:
    """Configure and return the global container."""
    global _container
    if _container is not None:
        _container.cleanup()
    _container = Container()
    _container.configure(settings, storage)
    return _container


def cleanup_container() -> None:
    """Cleanup the global container."""
    global _container
    if _container:
        _container.cleanup()
        _container = None
