"""Manifest package: component, feature and file lookups over WiX sources."""
from manifest.models import ComponentRecord, FileDeclaration, normalize_guid
from manifest.wix_source import WixSource, local_name
from manifest.index import ManifestIndex

__all__ = [
    'ComponentRecord',
    'FileDeclaration',
    'normalize_guid',
    'WixSource',
    'local_name',
    'ManifestIndex',
]
