"""
Diagnostic log for installer integrity reports.

Diagnostics are immutable and append-only. The log is rendered to text (or
JSON) once the whole pass is complete; nothing is ever removed or rewritten.

Error codes:
    1: File modified since the last release but its version is unchanged
    2: File date/time is more than 24 hours earlier than the released one
    3: Library file has no FeatureList
    4: File added to features since the last release
    5: File removed from features since the last release
    6: File version lowered since the last release
    7: Invalid version number
    8: Version changed only in the ignored 4th segment
    9: Version information removed

Warning codes:
    1: No file library (no longer emitted; normal before the first release)
    2: Files present in DistFiles but not under source control
    3: File has version 0.0.0.0
    4: Source control query failed
"""

import json
import threading
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable, Iterator, Optional


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ErrorCode(IntEnum):
    MODIFIED_WITHOUT_VERSION_BUMP = 1
    DATE_REGRESSION = 2
    MISSING_FEATURE_LIST = 3
    FEATURE_ADDED = 4
    FEATURE_REMOVED = 5
    VERSION_LOWERED = 6
    INVALID_VERSION = 7
    IGNORED_SEGMENT_ONLY = 8
    VERSION_REMOVED = 9


class WarningCode(IntEnum):
    NO_FILE_LIBRARY = 1  # deprecated
    UNTRACKED_FILES = 2
    ZERO_VERSION = 3
    SOURCE_CONTROL_FAILED = 4


@dataclass(frozen=True)
class Diagnostic:
    """
    A single report entry.

    Attributes:
        severity: ERROR, WARNING or INFO
        code: Numeric code from ErrorCode/WarningCode (None for INFO)
        message: Human-readable text; INFO messages may span several lines
        subject: Path or identity the diagnostic is about (used for sorting)
    """
    severity: Severity
    code: Optional[int]
    message: str
    subject: str = ""

    @classmethod
    def error(cls, code: ErrorCode, message: str, subject: str = "") -> "Diagnostic":
        return cls(Severity.ERROR, int(code), message, subject)

    @classmethod
    def warning(cls, code: WarningCode, message: str, subject: str = "") -> "Diagnostic":
        return cls(Severity.WARNING, int(code), message, subject)

    @classmethod
    def info(cls, message: str, subject: str = "") -> "Diagnostic":
        return cls(Severity.INFO, None, message, subject)

    def render(self) -> str:
        if self.severity == Severity.ERROR:
            return f"ERROR #{self.code}: {self.message}"
        if self.severity == Severity.WARNING:
            return f"WARNING #{self.code}: {self.message}"
        return self.message

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "subject": self.subject,
        }


class DiagnosticLog:
    """
    Append-only, thread-safe collection of diagnostics.

    Appends from worker threads are serialized by a lock; emission order is
    preserved. Multi-line entries (corrective fragments) are followed by a
    blank line when rendered so each block stands on its own.
    """

    def __init__(self, diagnostics: Iterable[Diagnostic] = ()):
        self._lock = threading.Lock()
        self._entries: list[Diagnostic] = list(diagnostics)

    def append(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._entries.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        """Append a group of diagnostics contiguously."""
        batch = list(diagnostics)
        with self._lock:
            self._entries.extend(batch)

    def __iter__(self) -> Iterator[Diagnostic]:
        with self._lock:
            snapshot = list(self._entries)
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def with_severity(self, severity: Severity) -> list[Diagnostic]:
        return [d for d in self if d.severity == severity]

    def with_code(self, severity: Severity, code: int) -> list[Diagnostic]:
        return [d for d in self if d.severity == severity and d.code == code]

    @property
    def errors(self) -> list[Diagnostic]:
        return self.with_severity(Severity.ERROR)

    @property
    def warnings(self) -> list[Diagnostic]:
        return self.with_severity(Severity.WARNING)

    def render(self, header: str = "", sort_by_subject: bool = False) -> str:
        """
        Render the log as report text.

        Args:
            header: Optional build-identification text placed first
            sort_by_subject: Order entries by subject instead of emission
                             order (stable, so ties keep emission order)

        Returns:
            Report text, empty string if the log is empty
        """
        entries = list(self)
        if not entries:
            return ""
        if sort_by_subject:
            entries.sort(key=lambda d: d.subject)

        lines = []
        if header:
            lines.append(header.rstrip("\n"))
        for diagnostic in entries:
            rendered = diagnostic.render()
            lines.append(rendered)
            if "\n" in rendered:
                lines.append("")
        return "\n".join(lines) + "\n"

    def to_json(self, header: str = "") -> str:
        return json.dumps(
            {
                "header": header.strip(),
                "error_count": len(self.errors),
                "warning_count": len(self.warnings),
                "diagnostics": [d.to_dict() for d in self],
            },
            indent=2,
        )
