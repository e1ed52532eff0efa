"""Probe package: content hash, embedded version and timestamp of built files."""
from probe.file_probe import FileFacts, FileProbe, compute_md5, read_file_version
from probe.cache import ProbeCache

__all__ = [
    'FileFacts',
    'FileProbe',
    'compute_md5',
    'read_file_version',
    'ProbeCache',
]
