"""Drift detection between the released library and the current build.

The detector is pure: it works on already-loaded library entries, manifest
feature sets and probed file facts, and returns diagnostics. It never
touches the file system or the manifest sources itself.
"""
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from library.models import FileLibraryEntry
from probe.file_probe import FileFacts
from reconciliation.diagnostics import Diagnostic, ErrorCode, WarningCode
from reconciliation.version import InvalidVersion, Ordering, compare, encode, truncate3


DATE_TOLERANCE = timedelta(hours=24)
ZERO_VERSION = "0.0.0.0"
REPORT_DATE_FORMAT = "%m/%d/%Y %H:%M"


def feature_diff(library: Iterable[str], manifest: Iterable[str]) -> tuple[set[str], set[str]]:
    """Symmetric difference of two feature sets.

    Returns:
        (added, removed): features only the manifest has, and features only
        the library has
    """
    library_set = set(library)
    manifest_set = set(manifest)
    return manifest_set - library_set, library_set - manifest_set


def _first_three(version: str) -> str:
    return ".".join(version.split(".")[:3])


def _as_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class IntegrityDetector:
    """Decides which patch-breaking conditions a library entry triggers.

    Each method covers one family of checks and returns the diagnostics it
    found, in the order they belong in the report:
    1. Feature membership (errors 3, 4, 5)
    2. File details: hash, version, date (errors 1, 2, 6, 7, 8, 9; warning 3)
    3. Untracked distribution files (warning 2)
    """

    def detect_feature_drift(
        self,
        entry: FileLibraryEntry,
        manifest_features: Optional[set[str]],
    ) -> list[Diagnostic]:
        """Compare the library's feature list with the manifest's.

        Args:
            entry: Library file entry
            manifest_features: Features currently referencing the entry's
                component, or None when the component is not in the manifest
                (nothing to compare against)

        Returns:
            Error 3 for an empty feature list; otherwise errors 4 and/or 5
        """
        if not entry.feature_list:
            return [Diagnostic.error(
                ErrorCode.MISSING_FEATURE_LIST,
                f"Library contains file {entry.path} with no FeatureList attribute.",
                entry.path,
            )]
        if manifest_features is None:
            return []

        added, removed = feature_diff(entry.feature_set, manifest_features)
        found = []
        if added:
            found.append(Diagnostic.error(
                ErrorCode.FEATURE_ADDED,
                f"File {entry.path} has been added to the following features since the last release: "
                f"{', '.join(sorted(added))}. Patching will fail.",
                entry.path,
            ))
        if removed:
            found.append(Diagnostic.error(
                ErrorCode.FEATURE_REMOVED,
                f"File {entry.path} has been removed from the following features since the last release: "
                f"{', '.join(sorted(removed))}. Patching will fail.",
                entry.path,
            ))
        return found

    def detect_detail_drift(
        self,
        entry: FileLibraryEntry,
        facts: FileFacts,
        version_zero_exempt: bool = False,
    ) -> list[Diagnostic]:
        """Compare a built file with its released counterpart.

        Args:
            entry: Library file entry
            facts: Probed facts of the file at its build-relative path
            version_zero_exempt: The path matches an IgnoreVersionZeroFiles pattern

        Returns:
            Diagnostics in report order
        """
        found = []
        path = entry.path
        lib_version = entry.released_version
        cur_version = facts.version

        # Different content must come with a different version (when both have one)
        if facts.md5.upper() != entry.released_md5.upper() and lib_version and cur_version:
            same, same_first_three = self._version_equality(cur_version, lib_version)
            if same:
                found.append(Diagnostic.error(
                    ErrorCode.MODIFIED_WITHOUT_VERSION_BUMP,
                    f"File {path} has been modified since the last release, but its version "
                    f"remains at {cur_version}. Patching will fail.",
                    path,
                ))
            elif same_first_three:
                found.append(Diagnostic.error(
                    ErrorCode.IGNORED_SEGMENT_ONLY,
                    f"File {path} has a version number ({cur_version}) that has only changed in the "
                    f"4th segment since the last release ({lib_version}). The 4th version segment "
                    f"is ignored by the installer. Patching will fail.",
                    path,
                ))

        if entry.released_date is not None:
            released = _as_local_naive(entry.released_date)
            modified = _as_local_naive(facts.modified)
            if released - modified > DATE_TOLERANCE:
                found.append(Diagnostic.error(
                    ErrorCode.DATE_REGRESSION,
                    f"File {path} has a date/time stamp ({modified.strftime(REPORT_DATE_FORMAT)}) that "
                    f"is earlier than a previously released version "
                    f"({released.strftime(REPORT_DATE_FORMAT)}). Patching may fail.",
                    path,
                ))

        if cur_version == ZERO_VERSION and not version_zero_exempt:
            found.append(Diagnostic.warning(
                WarningCode.ZERO_VERSION,
                f"File {path} has a version number of 0.0.0.0. That is very silly, and I don't "
                f"like it. You'll only regret it later.",
                path,
            ))

        if lib_version and not cur_version:
            found.append(Diagnostic.error(
                ErrorCode.VERSION_REMOVED,
                f"File {path} had a version of {lib_version} in the last release. The version "
                f"information has since been removed. Patching will fail.",
                path,
            ))
        else:
            try:
                lowered = compare(encode(cur_version), encode(lib_version)) == Ordering.LESS
            except InvalidVersion as e:
                found.append(Diagnostic.error(
                    ErrorCode.INVALID_VERSION,
                    f"File {path} has invalid version number (possibly in FileLibrary.xml): {e}",
                    path,
                ))
            else:
                if lowered:
                    found.append(Diagnostic.error(
                        ErrorCode.VERSION_LOWERED,
                        f"File {path} had a version of {lib_version} in the last release. The "
                        f"version has since been lowered to {cur_version}. Patching will fail.",
                        path,
                    ))
        return found

    def _version_equality(self, current: str, released: str) -> tuple[bool, bool]:
        """(fully equal, equal in the first three segments).

        Ordinals are compared when both versions encode, so "1.2" equals
        "1.2.0.0"; otherwise the strings are compared as written.
        """
        try:
            cur, lib = encode(current), encode(released)
        except InvalidVersion:
            return current == released, _first_three(current) == _first_three(released)
        return cur == lib, truncate3(cur) == truncate3(lib)

    def detect_untracked(
        self,
        untracked: Iterable[str],
        is_ignored: Callable[[str], bool],
    ) -> list[Diagnostic]:
        """Warning 2 listing untracked distribution files that no pattern exempts."""
        remaining = [path for path in untracked if not is_ignored(path)]
        if not remaining:
            return []
        listing = "\n    ".join(remaining)
        return [Diagnostic.warning(
            WarningCode.UNTRACKED_FILES,
            f"The following files are present in DistFiles but not checked into source control: "
            f"\n    {listing}",
            "DistFiles",
        )]
