"""
Loading of the historical file and registry libraries.

Both libraries are optional: before the first release there is nothing to
compare against, so a missing document simply yields no entries. A document
that exists but is not well-formed XML is fatal, because silently skipping
it would let a broken patch through.

Records that fail typed validation (no Path, bad FeatureList, ...) are kept
out of the checks and listed in ``malformed`` so the report can mention them
once. A record whose only problem is an unreadable Date is still checked,
without a release date, and listed as well.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from library.models import FileLibraryEntry, RegistryLibraryEntry
from manifest.wix_source import local_name
from validation.errors import LibraryLoadError

from shared.log import create_logger
_, log_debug, log_info, log_warn, _ = create_logger("Library")


@dataclass(frozen=True)
class MalformedEntry:
    """A library record excluded from the checks.

    Attributes:
        document: Library file name
        position: 1-based index of the record in the document
        identity: Path or ComponentGuid if the record had one
        reason: Validation failure summary
        date_only: Only the Date was unreadable; the record is still checked
    """
    document: str
    position: int
    identity: str
    reason: str
    date_only: bool = False

    def describe(self) -> str:
        label = self.identity or f"record {self.position}"
        if self.date_only:
            return f"{self.document}: {label}: {self.reason} (checked without a release date)"
        return f"{self.document}: {label}: {self.reason}"


@dataclass
class LibrarySnapshot:
    """Read-only view over both libraries for one run."""
    files: list[FileLibraryEntry] = field(default_factory=list)
    registry: list[RegistryLibraryEntry] = field(default_factory=list)
    malformed: list[MalformedEntry] = field(default_factory=list)
    has_file_library: bool = False
    has_reg_library: bool = False


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = '.'.join(str(p) for p in item.get('loc', ()))
        parts.append(f"{loc}: {item.get('msg')}" if loc else str(item.get('msg')))
    return '; '.join(parts)


def _only_date_failed(error: ValidationError) -> bool:
    return all(tuple(item.get('loc', ())) == ('Date',) for item in error.errors())


def _read_records(path: Path, record_tag: str, model, identity_attr: str):
    """Parse a library document, returning (entries, malformed)."""
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise LibraryLoadError(f"Library {path} is not well-formed XML: {e}") from e
    except OSError as e:
        raise LibraryLoadError(f"Cannot read library {path}: {e}") from e

    entries = []
    malformed = []
    position = 0
    for element in root:
        if local_name(element.tag) != record_tag:
            continue
        position += 1
        attributes = dict(element.attrib)
        try:
            entries.append(model.model_validate(attributes))
            continue
        except ValidationError as e:
            error = e

        date_only = _only_date_failed(error)
        if date_only:
            # The date only feeds the regression check; presence and features still apply
            attributes.pop('Date', None)
            entries.append(model.model_validate(attributes))
        malformed.append(MalformedEntry(
            document=path.name,
            position=position,
            identity=element.get(identity_attr, ''),
            reason=_summarize(error),
            date_only=date_only,
        ))
    return entries, malformed


def load_library_snapshot(
    file_library: Optional[Path],
    reg_library: Optional[Path],
) -> LibrarySnapshot:
    """
    Load whichever of the two libraries exist.

    Args:
        file_library: Path to FileLibrary.xml (None to skip)
        reg_library: Path to RegLibrary.xml (None to skip)

    Raises:
        LibraryLoadError: If a present library is not well-formed XML
    """
    snapshot = LibrarySnapshot()

    if file_library is not None and Path(file_library).is_file():
        snapshot.files, malformed = _read_records(Path(file_library), 'File', FileLibraryEntry, 'Path')
        snapshot.malformed.extend(malformed)
        snapshot.has_file_library = True
        log_info(f"File library: {len(snapshot.files)} entries")
    else:
        # Normal before the first release
        log_debug(f"No file library at {file_library}")

    if reg_library is not None and Path(reg_library).is_file():
        snapshot.registry, malformed = _read_records(
            Path(reg_library), 'Component', RegistryLibraryEntry, 'ComponentGuid'
        )
        snapshot.malformed.extend(malformed)
        snapshot.has_reg_library = True
        log_info(f"Registry library: {len(snapshot.registry)} entries")
    else:
        log_debug(f"No registry library at {reg_library}")

    if snapshot.malformed:
        log_warn(f"{len(snapshot.malformed)} malformed library record(s) found")
    return snapshot
