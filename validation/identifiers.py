"""
Identifier generation for WiX manifest fragments.

WiX identifiers may contain ASCII letters, digits, underscores and periods,
must begin with a letter or underscore, and are limited to 72 characters.
make_id() turns an arbitrary name into such an identifier and appends an MD5
hash of some unique data, so the same (name, unique data) pair always yields
the same identifier:

    make_id("DelMy File.dll", "MyFileComponent")
    -> "DelMy_File.dll.3F2A...C1"  (name part + "." + 32 hex digits)
"""

import hashlib
import logging
import string
from typing import Optional


MAX_ID_LENGTH = 72

VALID_CHARS = frozenset(string.ascii_letters + string.digits + '_.')
VALID_START_CHARS = frozenset(string.ascii_letters + '_')


def md5_hex(data: str) -> str:
    """Upper-case MD5 hex digest of a UTF-8 string (32 characters)."""
    return hashlib.md5(data.encode('utf-8')).hexdigest().upper()


def sanitize_identifier(
    name: str,
    max_length: int = 0,
    logger: Optional[logging.Logger] = None
) -> str:
    """
    Make a name safe for use as a WiX identifier.

    1. Replaces every character outside [A-Za-z0-9_.] with '_'
    2. Prefixes '_' if the first character is not a letter or underscore
    3. Truncates to max_length (0 = no limit)

    Args:
        name: The name to sanitize
        max_length: Maximum length (0 = no limit)
        logger: Optional logger for debug output

    Returns:
        Sanitized identifier ('_' for an empty name)
    """
    candidate = ''.join(c if c in VALID_CHARS else '_' for c in name)

    if not candidate or candidate[0] not in VALID_START_CHARS:
        candidate = '_' + candidate

    if max_length > 0 and len(candidate) > max_length:
        candidate = candidate[:max_length]

    if logger and candidate != name:
        logger.debug(f"Sanitized identifier: {name!r} -> {candidate!r}")

    return candidate


def make_id(name: str, unique_data: str) -> str:
    """
    Build a deterministic WiX identifier from a name and some unique data.

    The sanitized name is truncated so that name + "." + hash never exceeds
    MAX_ID_LENGTH characters.

    Args:
        name: Human-meaningful part of the identifier
        unique_data: Seed whose hash makes the identifier unique

    Returns:
        Identifier of the form "<sanitized name>.<MD5 hex>"
    """
    digest = md5_hex(unique_data)
    max_name_length = MAX_ID_LENGTH - len(digest) - 1
    return f"{sanitize_identifier(name, max_length=max_name_length)}.{digest}"
