"""
PII Protection and Logging Security
Redacts borrower identity data (Aadhaar, PAN, e-mail, address) from log output.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog


@dataclass
class PIIPattern:
    """PII pattern definition"""

    name: str
    pattern: str
    replacement: str
    description: str


class PIIDetector:
    """Regex based PII detection for identity documents and contact data"""

    SENSITIVE_FIELDS = {"aadhar", "aadhaar", "pan", "address", "email", "password"}

    def __init__(self):
        self.patterns = self._initialize_patterns()
        self._compiled_patterns = {
            p.name: re.compile(p.pattern) for p in self.patterns
        }

    def _initialize_patterns(self) -> List[PIIPattern]:
        return [
            PIIPattern(
                name="AADHAAR",
                pattern=r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}\b",
                replacement="{{AADHAAR}}",
                description="12 digit Aadhaar number, optionally grouped",
            ),
            PIIPattern(
                name="PAN",
                pattern=r"\b[A-Z]{5}[0-9]{4}[A-Z]\b",
                replacement="{{PAN}}",
                description="Indian Permanent Account Number",
            ),
            PIIPattern(
                name="EMAIL",
                pattern=r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
                replacement="{{EMAIL}}",
                description="Email addresses",
            ),
        ]

    def mask_pii(self, text: str) -> str:
        """Replace every detected PII match in text."""
        if not isinstance(text, str) or not text:
            return text
        for pattern in self.patterns:
            text = self._compiled_patterns[pattern.name].sub(pattern.replacement, text)
        return text

    def is_sensitive_field(self, field_name: str) -> bool:
        return isinstance(field_name, str) and field_name.lower() in self.SENSITIVE_FIELDS

    def clean_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Clean sensitive data from dictionary"""
        if not isinstance(data, dict):
            return data

        cleaned = {}
        for key, value in data.items():
            if self.is_sensitive_field(key):
                cleaned[key] = "{{REDACTED}}"
            elif isinstance(value, str):
                cleaned[key] = self.mask_pii(value)
            elif isinstance(value, dict):
                cleaned[key] = self.clean_dict(value)
            elif isinstance(value, list):
                cleaned[key] = [
                    self.mask_pii(item) if isinstance(item, str)
                    else self.clean_dict(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                cleaned[key] = value
        return cleaned


class SecureLoggingFilter(logging.Filter):
    """Logging filter that masks PII in stdlib log records"""

    def __init__(self, pii_detector: Optional[PIIDetector] = None):
        super().__init__()
        self.pii_detector = pii_detector or get_pii_detector()

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.pii_detector.mask_pii(record.msg)
        elif isinstance(record.msg, dict):
            record.msg = self.pii_detector.clean_dict(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self.pii_detector.mask_pii(arg) if isinstance(arg, str)
                else self.pii_detector.clean_dict(arg) if isinstance(arg, dict) else arg
                for arg in record.args
            )
        return True


def redact_event_dict(logger, method_name, event_dict):
    """structlog processor that redacts sensitive keys and masks PII values."""
    return get_pii_detector().clean_dict(event_dict)


class StructuredLogger:
    """Structured logging setup with PII protection"""

    def __init__(self, service_name: str = "loansys", level: Optional[str] = None):
        self.service_name = service_name
        self.pii_detector = get_pii_detector()
        self.environment = os.getenv("APP_ENVIRONMENT", "development")
        self.level = level
        self._setup_logging()

    def _resolve_level(self) -> int:
        if self.level:
            return getattr(logging, self.level.upper(), logging.INFO)
        return logging.INFO if self.environment == "production" else logging.DEBUG

    def _setup_logging(self):
        """Setup structured logging with PII protection"""
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                redact_event_dict,
                structlog.processors.UnicodeDecoder(),
                structlog.processors.JSONRenderer(),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(level=self._resolve_level(), format="%(message)s")
        logging.getLogger().setLevel(self._resolve_level())

        pii_filter = SecureLoggingFilter(self.pii_detector)
        for handler in logging.root.handlers:
            if not any(isinstance(f, SecureLoggingFilter) for f in handler.filters):
                handler.addFilter(pii_filter)

    def get_logger(self, name: str = None) -> structlog.stdlib.BoundLogger:
        """Get a structured logger instance"""
        return structlog.get_logger(name or self.service_name)


# Global instances
_pii_detector = None
_structured_logger = None


def get_pii_detector() -> PIIDetector:
    """Get global PII detector instance"""
    global _pii_detector
    if _pii_detector is None:
        _pii_detector = PIIDetector()
    return _pii_detector


def get_structured_logger() -> StructuredLogger:
    """Get global structured logger instance"""
    global _structured_logger
    if _structured_logger is None:
        _structured_logger = StructuredLogger()
    return _structured_logger


def configure_logging(service_name: str = "loansys", level: Optional[str] = None) -> StructuredLogger:
    """Reconfigure the global structured logger from application settings."""
    global _structured_logger
    _structured_logger = StructuredLogger(service_name=service_name, level=level)
    return _structured_logger


def mask_sensitive_data(text: str) -> str:
    """Convenience function to mask PII in text"""
    return get_pii_detector().mask_pii(text)
