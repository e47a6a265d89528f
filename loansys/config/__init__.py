"""
Configuration Management

This module provides centralized configuration management
for the loan management application.
"""

from .settings import Settings, StorageConfig, LendingConfig, AppConfig, Environment, StorageBackendType

__all__ = [
    "Settings",
    "StorageConfig",
    "LendingConfig",
    "AppConfig",
    "Environment",
    "StorageBackendType",
]
