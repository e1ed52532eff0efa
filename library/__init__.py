"""Library package: typed view over FileLibrary.xml and RegLibrary.xml."""
from library.models import FileLibraryEntry, RegistryLibraryEntry, parse_library_date, split_feature_list
from library.snapshot import LibrarySnapshot, MalformedEntry, load_library_snapshot

__all__ = [
    'FileLibraryEntry',
    'RegistryLibraryEntry',
    'parse_library_date',
    'split_feature_list',
    'LibrarySnapshot',
    'MalformedEntry',
    'load_library_snapshot',
]
