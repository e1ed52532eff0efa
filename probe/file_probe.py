"""
Facts about a built file: content hash, embedded version and timestamp.

The embedded version is the numeric file version from the PE version
resource (VS_FIXEDFILEINFO), formatted "major.minor.build.private". Files
that are not PE images, or carry no version resource, report an empty
version.
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

import pefile

if TYPE_CHECKING:
    from probe.cache import ProbeCache

logger = logging.getLogger('InstallerIntegrity.probe')

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class FileFacts:
    """Current state of a built file.

    Attributes:
        md5: Upper-case MD5 hex digest of the content
        version: Embedded file version ('' if none)
        modified: Last-write time (local, naive)
    """
    md5: str
    version: str
    modified: datetime


def compute_md5(path: Path) -> str:
    """Upper-case MD5 of a file, read in chunks."""
    digest = hashlib.md5()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b''):
            digest.update(chunk)
    return digest.hexdigest().upper()


def _format_fixed_version(ms: int, ls: int) -> str:
    return f"{ms >> 16}.{ms & 0xFFFF}.{ls >> 16}.{ls & 0xFFFF}"


def read_file_version(path: Path) -> str:
    """
    Embedded file version of a PE image.

    Returns:
        "major.minor.build.private", or '' for non-PE files and images
        without a version resource
    """
    try:
        pe = pefile.PE(str(path), fast_load=True)
    except pefile.PEFormatError:
        return ''
    try:
        pe.parse_data_directories(
            directories=[pefile.DIRECTORY_ENTRY['IMAGE_DIRECTORY_ENTRY_RESOURCE']]
        )
        fixed_infos = getattr(pe, 'VS_FIXEDFILEINFO', None)
        if not fixed_infos:
            return ''
        info = fixed_infos[0]
        return _format_fixed_version(info.FileVersionMS, info.FileVersionLS)
    finally:
        pe.close()


class FileProbe:
    """
    Computes FileFacts, optionally through a ProbeCache.

    Args:
        cache: Cross-run cache of facts (None = always compute)
        version_reader: Replacement for read_file_version (tests use this)
    """

    def __init__(
        self,
        cache: Optional['ProbeCache'] = None,
        version_reader: Optional[Callable[[Path], str]] = None,
    ):
        self._cache = cache
        self._read_version = version_reader or read_file_version

    def probe(self, path: Path) -> Optional[FileFacts]:
        """
        Facts for the file at path.

        Returns:
            FileFacts, or None if no regular file exists there

        Raises:
            OSError: If the file exists but cannot be read
        """
        path = Path(path)
        try:
            stat = os.stat(path)
        except FileNotFoundError:
            return None
        if not path.is_file():
            return None

        if self._cache is not None:
            cached = self._cache.get(path, stat)
            if cached is not None:
                return cached

        facts = FileFacts(
            md5=compute_md5(path),
            version=self._read_version(path),
            modified=datetime.fromtimestamp(stat.st_mtime),
        )
        logger.debug(f"Probed {path}: md5={facts.md5} version={facts.version or '-'}")

        if self._cache is not None:
            self._cache.put(path, stat, facts)
        return facts
