"""
shared_lib: Collaborators shared by the integrity run and its report delivery.

Public API:
    BuildPathMapper               -- ${config} expansion and exemption matching
    resolve_project_root          -- installer directory -> project root
    GitClient                     -- untracked-file and branch queries
    GitQueryError                 -- git could not answer
"""

from shared_lib.path_mapper import BuildPathMapper, resolve_project_root, CONFIG_PLACEHOLDER
from shared_lib.git_client import GitClient, GitQueryError

__all__ = [
    "BuildPathMapper",
    "resolve_project_root",
    "CONFIG_PLACEHOLDER",
    "GitClient",
    "GitQueryError",
]
