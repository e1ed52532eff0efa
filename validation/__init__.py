"""
Validation module for InstallerIntegrity.

Provides configuration validation, error classification and WiX identifier
generation.
"""

from validation.identifiers import sanitize_identifier, make_id
from validation.errors import (
    IntegrityError,
    FatalEnvironmentError,
    ProjectRootError,
    ManifestLoadError,
    LibraryLoadError,
    ConfigurationError,
    EntryCheckError,
    classify_exception,
)
from validation.config import IntegrityConfig, validate_config, load_installer_config

__all__ = [
    'sanitize_identifier',
    'make_id',
    'IntegrityError',
    'FatalEnvironmentError',
    'ProjectRootError',
    'ManifestLoadError',
    'LibraryLoadError',
    'ConfigurationError',
    'EntryCheckError',
    'classify_exception',
    'IntegrityConfig',
    'validate_config',
    'load_installer_config',
]
