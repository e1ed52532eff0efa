"""Records extracted from WiX manifest sources."""

from dataclasses import dataclass, field


def normalize_guid(guid: str) -> str:
    """Comparison key for a component GUID: upper case, no braces or spaces."""
    return guid.strip().strip('{}').strip().upper()


@dataclass(frozen=True)
class ComponentRecord:
    """A Component declared in a manifest source.

    Attributes:
        guid: GUID as written in the source
        id: Manifest-local component identifier
        directory_id: Id of the directory the component installs into ('' if unknown)
        feature_ids: Features whose FeatureRef/Feature element references this component
        source: Name of the source document that declared it
    """
    guid: str
    id: str
    directory_id: str
    feature_ids: frozenset[str] = field(default_factory=frozenset)
    source: str = ""


@dataclass(frozen=True)
class FileDeclaration:
    """A File element inside a component.

    Attributes:
        name: Value of the LongName or Name attribute
        directory_id: Directory the owning component installs into
        source_path: The File element's Source attribute
        component_id: Id of the owning component
    """
    name: str
    directory_id: str
    source_path: str
    component_id: str = ""
