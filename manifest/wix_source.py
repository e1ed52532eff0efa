"""
Per-document index of a WiX manifest source.

Each source document is parsed once into three lookup tables:
- components keyed by normalized GUID
- feature ids keyed by referenced component id
- File source paths keyed by (file name, directory id)

Element names are matched by local name, so WiX v3
(http://schemas.microsoft.com/wix/2006/wi) and v4
(http://wixtoolset.org/schemas/v4/wxs) documents index the same way.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from manifest.models import ComponentRecord, FileDeclaration, normalize_guid
from validation.errors import ManifestLoadError

log = logging.getLogger('InstallerIntegrity.manifest')

# Elements whose Id names the directory their child components install into
_DIRECTORY_SCOPES = frozenset({'Directory', 'DirectoryRef', 'StandardDirectory'})
_FEATURE_SCOPES = frozenset({'Feature', 'FeatureRef'})


def local_name(tag: str) -> str:
    """Strip the '{namespace}' prefix from an ElementTree tag."""
    if tag.startswith('{'):
        return tag.rsplit('}', 1)[1]
    return tag


class WixSource:
    """Lookup tables for one manifest source document."""

    def __init__(self, name: str, root: ET.Element):
        self.name = name
        self.components: dict[str, ComponentRecord] = {}
        self.features: dict[str, set[str]] = {}
        self.files: dict[tuple[str, str], FileDeclaration] = {}
        self._parents = {child: parent for parent in root.iter() for child in parent}
        self._index(root)
        del self._parents
        log.debug(
            f"Indexed {name}: {len(self.components)} components, "
            f"{len(self.features)} referenced component ids, {len(self.files)} file names"
        )

    @classmethod
    def load(cls, path: Path) -> 'WixSource':
        """
        Parse a manifest source from disk.

        Raises:
            ManifestLoadError: If the file is missing or not well-formed XML
        """
        path = Path(path)
        try:
            tree = ET.parse(path)
        except FileNotFoundError as e:
            raise ManifestLoadError(f"Manifest source not found: {path}") from e
        except ET.ParseError as e:
            raise ManifestLoadError(f"Manifest source {path} is not well-formed XML: {e}") from e
        except OSError as e:
            raise ManifestLoadError(f"Cannot read manifest source {path}: {e}") from e
        return cls(path.name, tree.getroot())

    @classmethod
    def from_string(cls, xml_text: str, name: str = '<string>') -> 'WixSource':
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise ManifestLoadError(f"Manifest source {name} is not well-formed XML: {e}") from e
        return cls(name, root)

    def _directory_of(self, component: ET.Element) -> str:
        own = component.get('Directory')
        if own:
            return own
        node: Optional[ET.Element] = self._parents.get(component)
        while node is not None:
            tag = local_name(node.tag)
            if tag == 'ComponentGroup' and node.get('Directory'):
                return node.get('Directory')
            if tag in _DIRECTORY_SCOPES:
                return node.get('Id', '')
            node = self._parents.get(node)
        return ''

    def _index(self, root: ET.Element) -> None:
        for element in root.iter():
            tag = local_name(element.tag)
            if tag == 'Component':
                self._index_component(element)
            elif tag in _FEATURE_SCOPES:
                feature_id = element.get('Id', '')
                for child in element:
                    if local_name(child.tag) == 'ComponentRef' and child.get('Id'):
                        self.features.setdefault(child.get('Id'), set()).add(feature_id)

    def _index_component(self, element: ET.Element) -> None:
        component_id = element.get('Id', '')
        directory_id = self._directory_of(element)

        guid = element.get('Guid', '')
        key = normalize_guid(guid)
        # '*' asks the toolset to generate the GUID; it can never match a library entry
        if key and key != '*' and key not in self.components:
            self.components[key] = ComponentRecord(
                guid=guid,
                id=component_id,
                directory_id=directory_id,
                source=self.name,
            )

        for child in element:
            if local_name(child.tag) != 'File':
                continue
            source_path = child.get('Source') or child.get('src') or ''
            for attribute in ('LongName', 'Name'):
                file_name = child.get(attribute)
                if not file_name:
                    continue
                self.files.setdefault(
                    (file_name, directory_id),
                    FileDeclaration(file_name, directory_id, source_path, component_id),
                )
