"""
Corrective manifest fragments for components that vanished from the manifest.

When a released component is no longer declared anywhere, a patch cannot
simply drop it. The suggested fragment, for PatchCorrections.wxs:

1. Re-declares the original component (same Id and GUID) with
   Transitive="yes" and a FALSE condition, so the patch engine re-evaluates
   it and removes it.
2. Adds a removal component (fresh GUID, deterministic Id) that deletes the
   installed file or registry key on install. For files that are merely
   sourced from somewhere else now, this is skipped: the file still ships.
3. Wires both components into every feature the library lists.

Both components carry an empty CreateFolder element; ICE18 rejects
components with no key path otherwise.
"""

import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Callable, Optional

from library.models import FileLibraryEntry, RegistryLibraryEntry
from reconciliation.diagnostics import Diagnostic
from validation.identifiers import make_id

UNKNOWN_COMPONENT_ID = "[unknown]"
SNIPPET_INTRO = "<!-- Suggested PatchCorrections.wxs snippet: -->"
NO_DIRECTORY_WARNING = "<!-- WARNING: Could not locate DirectoryId -->"
NO_FEATURES_WARNING = "<!-- WARNING: No features specified for above component(s) -->"


@dataclass(frozen=True)
class CorrectiveFragment:
    """A suggested PatchCorrections.wxs fragment and the identifiers it mints.

    Attributes:
        directory_id: DirectoryRef scope of the fragment
        disable_component_id: Id of the re-declared original component
        component_guid: GUID of the original component
        removal_component_id: Id of the removal component (None if not needed)
        removal_component_guid: Fresh GUID of the removal component
        feature_ids: Features both components are wired into
        xml: Fragment text
    """
    directory_id: str
    disable_component_id: str
    component_guid: str
    removal_component_id: Optional[str]
    removal_component_guid: Optional[str]
    feature_ids: tuple[str, ...]
    xml: str


@dataclass
class OrphanResolution:
    """Report lines and (optionally) the fragment for one orphaned entry."""
    diagnostics: list[Diagnostic] = field(default_factory=list)
    fragment: Optional[CorrectiveFragment] = None


def _new_guid() -> str:
    return str(uuid.uuid4()).upper()


def _serialize(element: ET.Element) -> str:
    ET.indent(element, space="\t")
    return ET.tostring(element, encoding="unicode")


class SnippetSynthesizer:
    """
    Builds corrective fragments for orphaned library entries.

    Args:
        guid_factory: Source of fresh upper-case GUIDs (tests pass a fixed one)
    """

    def __init__(self, guid_factory: Optional[Callable[[], str]] = None):
        self._new_guid = guid_factory or _new_guid

    def for_file(self, entry: FileLibraryEntry, new_source: Optional[str] = None) -> OrphanResolution:
        """
        Resolution for a file whose component is gone.

        Args:
            entry: The orphaned library entry
            new_source: Project-relative source of a file with the same name
                        in the same directory, if one is still declared
        """
        resolution = OrphanResolution()
        resolution.diagnostics.append(Diagnostic.info(
            f"<!-- File component {entry.component_guid} [{entry.path}] is missing from the manifest sources -->",
            entry.path,
        ))
        if new_source is not None:
            resolution.diagnostics.append(Diagnostic.info(
                f"<!-- However, same file is now sourced from {new_source}. -->",
                entry.path,
            ))

        if not entry.directory_id:
            resolution.diagnostics.append(Diagnostic.info(NO_DIRECTORY_WARNING, entry.path))
            return resolution

        removal = None
        if new_source is None:
            component_id = entry.component_id or UNKNOWN_COMPONENT_ID
            removal_id = make_id("Del" + entry.install_name, component_id)
            attributes = {"Id": removal_id, "Name": entry.short_name}
            if entry.long_name != entry.short_name:
                attributes["LongName"] = entry.long_name
            attributes["On"] = "install"
            removal = (removal_id, ET.Element("RemoveFile", attributes))

        resolution.fragment = self._build(entry, entry.component_id, removal)
        resolution.diagnostics.append(Diagnostic.info(
            f"{SNIPPET_INTRO}\n{resolution.fragment.xml}", entry.path
        ))
        return resolution

    def for_registry(self, entry: RegistryLibraryEntry) -> OrphanResolution:
        """Resolution for a registry component that is gone."""
        subject = entry.key_path
        resolution = OrphanResolution()
        resolution.diagnostics.append(Diagnostic.info(
            f"<!-- Registry component {entry.component_guid} [{entry.key_path}] is missing from the manifest sources -->",
            subject,
        ))
        if not entry.directory_id:
            resolution.diagnostics.append(Diagnostic.info(NO_DIRECTORY_WARNING, subject))
            return resolution

        component_id = entry.id or UNKNOWN_COMPONENT_ID
        removal_id = make_id("Del" + component_id, component_id)
        action = ET.Element("Registry", {
            "Root": entry.root,
            "Key": entry.key_header,
            "Action": "removeKeyOnInstall",
            "Id": removal_id,
        })
        resolution.fragment = self._build(entry, entry.id, (removal_id, action))
        resolution.diagnostics.append(Diagnostic.info(
            f"{SNIPPET_INTRO}\n{resolution.fragment.xml}", subject
        ))
        return resolution

    def _build(self, entry, component_id: str, removal: Optional[tuple[str, ET.Element]]) -> CorrectiveFragment:
        component_id = component_id or UNKNOWN_COMPONENT_ID

        scope = ET.Element("DirectoryRef", {"Id": entry.directory_id})
        disabled = ET.SubElement(scope, "Component", {
            "Id": component_id,
            "Transitive": "yes",
            "Guid": entry.component_guid,
        })
        ET.SubElement(disabled, "Condition").text = "FALSE"
        ET.SubElement(disabled, "CreateFolder")

        removal_id = removal_guid = None
        if removal is not None:
            removal_id, action = removal
            removal_guid = self._new_guid()
            remover = ET.SubElement(scope, "Component", {"Id": removal_id, "Guid": removal_guid})
            remover.append(action)
            ET.SubElement(remover, "CreateFolder")

        blocks = [_serialize(scope)]
        for feature_id in entry.feature_list:
            feature_ref = ET.Element("FeatureRef", {"Id": feature_id})
            ET.SubElement(feature_ref, "ComponentRef", {"Id": component_id})
            if removal_id is not None:
                ET.SubElement(feature_ref, "ComponentRef", {"Id": removal_id})
            blocks.append(_serialize(feature_ref))
        if not entry.feature_list:
            blocks.append(NO_FEATURES_WARNING)

        return CorrectiveFragment(
            directory_id=entry.directory_id,
            disable_component_id=component_id,
            component_guid=entry.component_guid,
            removal_component_id=removal_id,
            removal_component_guid=removal_guid,
            feature_ids=tuple(entry.feature_list),
            xml="\n".join(blocks),
        )
