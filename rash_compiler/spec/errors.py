"""
Diagnostics shared by the index, the resolver and the validation rules.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class ErrorCode:
    """Stable machine-readable diagnostic codes."""

    E_REF_NOT_FOUND = "E_REF_NOT_FOUND"
    E_REF_CYCLE = "E_REF_CYCLE"
    E_REF_EXTERNAL_UNSUPPORTED = "E_REF_EXTERNAL_UNSUPPORTED"
    E_DUPLICATE_SYMBOL = "E_DUPLICATE_SYMBOL"
    E_MISSING_FIELD = "E_MISSING_FIELD"
    E_INVALID_PATH = "E_INVALID_PATH"
    E_PARSE_ERROR = "E_PARSE_ERROR"
    E_VERSION_MISMATCH = "E_VERSION_MISMATCH"
    E_INCOMPATIBLE_TARGET = "E_INCOMPATIBLE_TARGET"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ErrorEntry:
    """A single diagnostic: what went wrong, in which file, at which JSON path."""

    code: str
    severity: Severity
    message: str
    file: str
    path: str
    suggestion: Optional[str] = None

    @classmethod
    def error(cls, code: str, message: str, file: str, path: str) -> "ErrorEntry":
        return cls(code, Severity.ERROR, message, file, path)

    @classmethod
    def warning(cls, code: str, message: str, file: str, path: str) -> "ErrorEntry":
        return cls(code, Severity.WARNING, message, file, path)

    @classmethod
    def info(cls, code: str, message: str, file: str, path: str) -> "ErrorEntry":
        return cls(code, Severity.INFO, message, file, path)

    def with_suggestion(self, suggestion: str) -> "ErrorEntry":
        return replace(self, suggestion=suggestion)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "code": self.code,
            "severity": self.severity.value,
            "message": self.message,
            "file": self.file,
            "path": self.path,
        }
        if self.suggestion is not None:
            result["suggestion"] = self.suggestion
        return result


@dataclass
class ValidationReport:
    """
    Ordered collection of diagnostics.

    The report only ever grows; ``ok`` turns false as soon as an
    error-severity entry is pushed and never turns back.
    """

    ok: bool = True
    errors: List[ErrorEntry] = field(default_factory=list)

    @classmethod
    def from_errors(cls, entries: Iterable[ErrorEntry]) -> "ValidationReport":
        report = cls()
        report.extend(entries)
        return report

    def push(self, entry: ErrorEntry):
        if entry.is_error:
            self.ok = False
        self.errors.append(entry)

    def extend(self, entries: Iterable[ErrorEntry]):
        for entry in entries:
            self.push(entry)

    def merge(self, other: "ValidationReport"):
        self.extend(other.errors)

    def count(self, severity: Severity) -> int:
        return sum(1 for entry in self.errors if entry.severity is severity)

    @property
    def error_count(self) -> int:
        return self.count(Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return self.count(Severity.WARNING)

    def has_errors(self) -> bool:
        return not self.ok

    def by_code(self, code: str) -> List[ErrorEntry]:
        return [entry for entry in self.errors if entry.code == code]

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "errors": [entry.to_dict() for entry in self.errors]}
