"""
Validation engine for loaded projects.
"""

from ..spec.errors import ErrorCode, ErrorEntry, Severity, ValidationReport
from .engine import validate
from .rules.version_check import SUPPORTED_VERSION

__all__ = [
    "ErrorCode",
    "ErrorEntry",
    "SUPPORTED_VERSION",
    "Severity",
    "ValidationReport",
    "validate",
]
