"""
Merged, queryable view over the installer's manifest sources.

Sources are consulted in list order: the primary sources first, then the
optional corrections overlay. The first source that declares a GUID (or a
file name in a directory) wins; feature references are unioned across all
sources because a corrections overlay may wire an existing component into
further features.
"""

from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional, Sequence

from manifest.models import ComponentRecord, FileDeclaration, normalize_guid
from manifest.wix_source import WixSource

from shared.log import create_logger
_, log_debug, log_info, _, _ = create_logger("Manifest")


class ManifestIndex:
    """Read-only index built once per run from an ordered list of sources."""

    def __init__(self, sources: Sequence[WixSource]):
        self._sources = list(sources)
        self._features: dict[str, frozenset[str]] = {}
        self._components: dict[str, ComponentRecord] = {}
        self._files: dict[tuple[str, str], FileDeclaration] = {}

        merged_features: dict[str, set[str]] = {}
        for source in self._sources:
            for component_id, feature_ids in source.features.items():
                merged_features.setdefault(component_id, set()).update(feature_ids)
        self._features = {k: frozenset(v) for k, v in merged_features.items()}

        for source in self._sources:
            for key, record in source.components.items():
                if key not in self._components:
                    self._components[key] = replace(
                        record, feature_ids=self._features.get(record.id, frozenset())
                    )
            for key, declaration in source.files.items():
                self._files.setdefault(key, declaration)

    @classmethod
    def load(
        cls,
        installer_dir: Path,
        primary: Iterable[str],
        overlays: Iterable[str] = (),
    ) -> 'ManifestIndex':
        """
        Load the manifest sources from the installer directory.

        Args:
            installer_dir: Folder holding the .wxs documents
            primary: Mandatory source names, in lookup order
            overlays: Optional source names consulted after the primaries

        Raises:
            ManifestLoadError: If a mandatory source is missing or malformed
        """
        installer_dir = Path(installer_dir)
        sources = [WixSource.load(installer_dir / name) for name in primary]
        for name in overlays:
            path = installer_dir / name
            if path.is_file():
                sources.append(WixSource.load(path))
            else:
                log_debug(f"Optional manifest source {name} not present")
        index = cls(sources)
        log_info(
            f"Manifest index: {len(index._components)} components from "
            f"{', '.join(s.name for s in sources)}"
        )
        return index

    @property
    def source_names(self) -> list[str]:
        return [s.name for s in self._sources]

    def find_component(self, guid: str) -> bool:
        """True if any source declares a component with this GUID."""
        key = normalize_guid(guid)
        return bool(key) and key in self._components

    def component(self, guid: str) -> Optional[ComponentRecord]:
        return self._components.get(normalize_guid(guid))

    def features_referencing(self, component_id: str) -> set[str]:
        """Ids of every feature that references the component, across all sources."""
        return set(self._features.get(component_id, ()))

    def find_file_elsewhere(self, long_name: str, directory_id: str) -> Optional[str]:
        """
        Source path of the first File declaration with this name in this directory.

        Used to spot a file whose component vanished because it is now
        sourced from a different location but still installs to the same
        place.
        """
        if not long_name or not directory_id:
            return None
        declaration = self._files.get((long_name, directory_id))
        return declaration.source_path if declaration else None
