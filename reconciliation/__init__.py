"""Reconciliation package: version ordering, drift detection and corrective fragments."""
from reconciliation.version import InvalidVersion, Ordering, VersionOrdinal, compare, encode, truncate3
from reconciliation.diagnostics import Diagnostic, DiagnosticLog, ErrorCode, Severity, WarningCode
from reconciliation.detector import IntegrityDetector, feature_diff
from reconciliation.snippets import CorrectiveFragment, OrphanResolution, SnippetSynthesizer
from reconciliation.engine import IntegrityEngine, IntegrityResult

__all__ = [
    'InvalidVersion',
    'Ordering',
    'VersionOrdinal',
    'compare',
    'encode',
    'truncate3',
    'Diagnostic',
    'DiagnosticLog',
    'ErrorCode',
    'Severity',
    'WarningCode',
    'IntegrityDetector',
    'feature_diff',
    'CorrectiveFragment',
    'OrphanResolution',
    'SnippetSynthesizer',
    'IntegrityEngine',
    'IntegrityResult',
]
