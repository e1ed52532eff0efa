"""
Centralized error classification for integrity runs.

Two kinds of failure exist:
- Fatal environment errors (cannot resolve the project root, cannot load a
  mandatory manifest source, corrupt configuration or library document).
  These abort the run before any diagnostics are emitted.
- Per-entry failures (a file that cannot be read while probing it). These
  are caught at the entry boundary and turned into a diagnostic.
"""

import logging
from typing import Type


logger = logging.getLogger(__name__)


class IntegrityError(Exception):
    """Base class for all integrity-check errors."""
    pass


class FatalEnvironmentError(IntegrityError):
    """The run cannot proceed; abort before reconciliation starts."""
    pass


class ProjectRootError(FatalEnvironmentError):
    """The project root (or installer directory) cannot be resolved."""
    pass


class ManifestLoadError(FatalEnvironmentError):
    """A mandatory manifest source is missing or not well-formed XML."""
    pass


class LibraryLoadError(FatalEnvironmentError):
    """A library snapshot exists but cannot be parsed."""
    pass


class ConfigurationError(FatalEnvironmentError):
    """InstallerConfig.xml is missing, unparseable or fails validation."""
    pass


class EntryCheckError(IntegrityError):
    """A single library entry could not be checked."""
    pass


def classify_exception(exc: Exception) -> Type[IntegrityError]:
    """
    Classify an exception raised while checking a library entry.

    - Already classified: Return same type family
    - OS / I/O errors: EntryCheckError (one unreadable file must not stop the pass)
    - Data errors (ValueError, KeyError, ...): EntryCheckError
    - Anything else: FatalEnvironmentError (unexpected, safer to stop)

    Args:
        exc: The exception to classify

    Returns:
        EntryCheckError or FatalEnvironmentError class
    """
    if isinstance(exc, FatalEnvironmentError):
        logger.debug(f"Exception already fatal: {exc}")
        return FatalEnvironmentError

    if isinstance(exc, EntryCheckError):
        logger.debug(f"Exception already an entry error: {exc}")
        return EntryCheckError

    if isinstance(exc, OSError):
        logger.debug(f"I/O error classified as entry error: {type(exc).__name__}")
        return EntryCheckError

    if isinstance(exc, (ValueError, TypeError, KeyError, AttributeError)):
        logger.debug(f"Data error classified as entry error: {type(exc).__name__}")
        return EntryCheckError

    logger.debug(f"Unknown exception classified as fatal: {type(exc).__name__}")
    return FatalEnvironmentError
