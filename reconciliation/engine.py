"""
Integrity engine orchestrator for installer patch reconciliation.

Integrates IntegrityDetector with infrastructure (manifest index, library
snapshot, file probe, source control) to run a full integrity pass: check
every released file and registry component against the current build,
synthesize corrective fragments for vanished components, and look for
untracked distribution files.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from reconciliation.detector import IntegrityDetector
from reconciliation.diagnostics import Diagnostic, DiagnosticLog, WarningCode
from reconciliation.snippets import CorrectiveFragment, SnippetSynthesizer
from validation.errors import FatalEnvironmentError, classify_exception

if TYPE_CHECKING:
    from library.models import FileLibraryEntry, RegistryLibraryEntry
    from library.snapshot import LibrarySnapshot
    from manifest.index import ManifestIndex
    from probe.file_probe import FileProbe
    from shared_lib.git_client import GitClient
    from shared_lib.path_mapper import BuildPathMapper
    from validation.config import IntegrityConfig

from shared.log import create_logger
log_trace, log_debug, log_info, log_warn, log_error = create_logger("Engine")

DEFAULT_MAX_WORKERS = 8


@dataclass
class IntegrityResult:
    """Outcome of an integrity pass.

    Attributes:
        log: Every diagnostic emitted, in report order
        files_checked: Number of file library entries checked
        registry_checked: Number of registry library entries checked
        orphaned_components: Entries whose component is no longer declared
        malformed_entries: Library records excluded or only partly checked
        fragments: Corrective fragments suggested for orphaned components
    """
    log: DiagnosticLog = field(default_factory=DiagnosticLog)
    files_checked: int = 0
    registry_checked: int = 0
    orphaned_components: int = 0
    malformed_entries: int = 0
    fragments: list[CorrectiveFragment] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.log.errors)

    @property
    def warning_count(self) -> int:
        return len(self.log.warnings)


@dataclass
class _EntryOutcome:
    diagnostics: list[Diagnostic] = field(default_factory=list)
    fragment: Optional[CorrectiveFragment] = None
    orphaned: bool = False


class IntegrityEngine:
    """Orchestrates the integrity checks for one build.

    Connects the pure IntegrityDetector to real infrastructure:
    - ManifestIndex for component and feature lookups
    - LibrarySnapshot for the released state
    - FileProbe for hashes, versions and timestamps of built files
    - GitClient for untracked distribution files

    Args:
        manifest: Index over the current manifest sources
        library: Released file and registry entries
        config: Exemption patterns from InstallerConfig.xml
        path_mapper: Resolves library paths for the active build flavor
        probe: File probe (default: uncached FileProbe)
        source_control: Git client; None skips the untracked-files check
        synthesizer: Corrective fragment builder (default: random GUIDs)
        max_workers: Worker threads for file entries
        dist_files_dir: Folder checked for untracked files
            (default: <project root>/DistFiles)
    """

    def __init__(
        self,
        manifest: "ManifestIndex",
        library: "LibrarySnapshot",
        config: "IntegrityConfig",
        path_mapper: "BuildPathMapper",
        probe: Optional["FileProbe"] = None,
        source_control: Optional["GitClient"] = None,
        synthesizer: Optional[SnippetSynthesizer] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        dist_files_dir: Optional[Path] = None,
    ):
        if probe is None:
            from probe.file_probe import FileProbe
            probe = FileProbe()
        self.manifest = manifest
        self.library = library
        self.config = config
        self.path_mapper = path_mapper
        self.probe = probe
        self.source_control = source_control
        self.synthesizer = synthesizer or SnippetSynthesizer()
        self.max_workers = max(1, max_workers)
        self.dist_files_dir = dist_files_dir or (path_mapper.project_root / "DistFiles")
        self.detector = IntegrityDetector()

    def run(self) -> IntegrityResult:
        """Run every check and collect the diagnostics.

        Execution steps:
            1. Report malformed library records (once, at the top)
            2. Check file library entries (presence, features, details)
            3. Check registry library entries (presence)
            4. Check DistFiles for untracked files

        Raises:
            FatalEnvironmentError: An unexpected failure that makes the
                remaining checks meaningless
        """
        result = IntegrityResult()

        # Step 1: Malformed records
        result.malformed_entries = len(self.library.malformed)
        if self.library.malformed:
            listing = "\n    ".join(m.describe() for m in self.library.malformed)
            result.log.append(Diagnostic.info(
                f"The following library records are malformed and were not fully checked:\n    {listing}"
            ))

        # Step 2: File entries
        files = self.library.files
        if files:
            log_info(f"Checking {len(files)} library files with {self.max_workers} worker(s)")
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                # map() yields in submission order, keeping the report deterministic
                for outcome in pool.map(self._check_file_entry, files):
                    self._record(result, outcome)
            result.files_checked = len(files)

        # Step 3: Registry entries
        for entry in self.library.registry:
            self._record(result, self._check_registry_entry(entry))
        result.registry_checked = len(self.library.registry)

        # Step 4: Untracked distribution files
        result.log.extend(self._check_untracked())

        log_info(
            f"Integrity pass complete: {result.files_checked} files, "
            f"{result.registry_checked} registry components, "
            f"{result.orphaned_components} orphaned, "
            f"{result.error_count} error(s), {result.warning_count} warning(s)"
        )
        return result

    def _record(self, result: IntegrityResult, outcome: _EntryOutcome) -> None:
        result.log.extend(outcome.diagnostics)
        if outcome.orphaned:
            result.orphaned_components += 1
        if outcome.fragment is not None:
            result.fragments.append(outcome.fragment)

    def _check_file_entry(self, entry: "FileLibraryEntry") -> _EntryOutcome:
        """Run presence, feature and detail checks for one file entry.

        Per-entry failures become an informational diagnostic; everything
        found before the failure is kept.
        """
        outcome = _EntryOutcome()
        try:
            self._check_file_presence(entry, outcome)

            component = self.manifest.component(entry.component_guid)
            manifest_features = (
                self.manifest.features_referencing(component.id) if component is not None else None
            )
            outcome.diagnostics.extend(self.detector.detect_feature_drift(entry, manifest_features))

            self._check_file_details(entry, outcome)
        except Exception as e:
            if issubclass(classify_exception(e), FatalEnvironmentError):
                log_error(f"Fatal error while checking {entry.path}: {e}")
                if isinstance(e, FatalEnvironmentError):
                    raise
                raise FatalEnvironmentError(f"Unexpected failure while checking {entry.path}: {e}") from e
            log_warn(f"Could not check {entry.path}: {e}")
            outcome.diagnostics.append(Diagnostic.info(
                f"Could not check file {entry.path}: {e}", entry.path
            ))
        return outcome

    def _check_file_presence(self, entry: "FileLibraryEntry", outcome: _EntryOutcome) -> None:
        if self.manifest.find_component(entry.component_guid):
            return
        outcome.orphaned = True
        new_source = self.manifest.find_file_elsewhere(
            entry.long_name or entry.short_name, entry.directory_id
        )
        if new_source is not None:
            new_source = self.path_mapper.relative(new_source)
        log_debug(f"Component {entry.component_guid} for {entry.path} is no longer declared")
        resolution = self.synthesizer.for_file(entry, new_source)
        outcome.diagnostics.extend(resolution.diagnostics)
        outcome.fragment = resolution.fragment

    def _check_file_details(self, entry: "FileLibraryEntry", outcome: _EntryOutcome) -> None:
        full_path = self.path_mapper.resolve(entry.path)
        facts = self.probe.probe(full_path)
        if facts is None:
            # Not built; a missing component has already been reported above
            log_trace(f"{full_path} does not exist, skipping detail checks")
            return
        exempt = self.path_mapper.matches_any(str(full_path), self.config.version_zero_files)
        outcome.diagnostics.extend(self.detector.detect_detail_drift(entry, facts, exempt))

    def _check_registry_entry(self, entry: "RegistryLibraryEntry") -> _EntryOutcome:
        outcome = _EntryOutcome()
        if self.manifest.find_component(entry.component_guid):
            return outcome
        outcome.orphaned = True
        log_debug(f"Registry component {entry.component_guid} [{entry.key_path}] is no longer declared")
        resolution = self.synthesizer.for_registry(entry)
        outcome.diagnostics.extend(resolution.diagnostics)
        outcome.fragment = resolution.fragment
        return outcome

    def _check_untracked(self) -> list[Diagnostic]:
        if self.source_control is None:
            log_debug("No source control client, skipping untracked-files check")
            return []

        from shared_lib.git_client import GitQueryError
        try:
            untracked = self.source_control.list_untracked(self.dist_files_dir)
        except GitQueryError as e:
            log_warn(f"Source control query failed: {e}")
            return [Diagnostic.warning(
                WarningCode.SOURCE_CONTROL_FAILED,
                f"Could not determine if DistFiles folder is consistent with source control:\n{e}",
                "DistFiles",
            )]

        def is_ignored(path: str) -> bool:
            return (
                self.path_mapper.matches_any(path, self.config.non_versioned_dist_files)
                or self.path_mapper.matches_any(path, self.config.file_omissions)
            )

        return self.detector.detect_untracked(untracked, is_ignored)
