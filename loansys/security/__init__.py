"""
Security Module
Provides structured logging with redaction of borrower KYC data
"""

from .pii_protection import (
    PIIDetector,
    SecureLoggingFilter,
    StructuredLogger,
    configure_logging,
    get_pii_detector,
    get_structured_logger,
    mask_sensitive_data,
)

__all__ = [
    "PIIDetector",
    "SecureLoggingFilter",
    "StructuredLogger",
    "configure_logging",
    "get_pii_detector",
    "get_structured_logger",
    "mask_sensitive_data",
]
