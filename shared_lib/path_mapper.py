"""
shared_lib.path_mapper: Build-relative path resolution.

Library entries and configuration patterns record paths relative to the
development project root, written with Windows separators and an optional
build-flavor placeholder:

    Output\\${config}\\Tools.dll

Resolution substitutes the active build flavor for ``${config}`` and joins
the result to the project root:

    /src/project/Output/Release/Tools.dll

Usage
-----
::

    from shared_lib.path_mapper import BuildPathMapper, resolve_project_root

    root = resolve_project_root(Path("/src/project/Installer"))  # -> /src/project
    mapper = BuildPathMapper(root, build_type="Release")
    mapper.resolve(r"Output\\${config}\\Tools.dll")
    # -> Path("/src/project/Output/Release/Tools.dll")

    mapper.matches_any("/src/project/Output/Release/Stub.dll", [r"\\${config}\\Stub"])
    # -> True (case-insensitive substring, separators normalised)
"""
from __future__ import annotations

import logging
from pathlib import Path, PureWindowsPath
from typing import Iterable

from validation.errors import ProjectRootError

log = logging.getLogger("shared_lib.path_mapper")

CONFIG_PLACEHOLDER = "${config}"


def resolve_project_root(installer_dir: Path) -> Path:
    """
    Resolve the development project root from the installer directory.

    When the installer tools run from a folder whose name ends in
    "installer", the project root is its parent; otherwise it is the folder
    itself.

    Raises:
        ProjectRootError: If the installer directory does not exist
    """
    try:
        folder = Path(installer_dir).resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise ProjectRootError(f"Cannot resolve installer directory {installer_dir}: {e}") from e

    if not folder.is_dir():
        raise ProjectRootError(f"Installer directory {folder} is not a directory")

    if folder.name.lower().endswith("installer"):
        return folder.parent
    return folder


class BuildPathMapper:
    """
    Translates library paths and exemption patterns for one build flavor.

    Matching is a case-insensitive substring test after back-slashes are
    normalised to forward slashes on both sides.
    """

    def __init__(self, project_root: Path, build_type: str) -> None:
        self._root = Path(project_root)
        self._build_type = build_type

    @property
    def project_root(self) -> Path:
        return self._root

    @property
    def build_type(self) -> str:
        return self._build_type

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _normalize(self, path: str) -> str:
        """Replace backslashes with forward slashes."""
        return path.replace("\\", "/")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def expand(self, template: str) -> str:
        """Substitute the build flavor for every ${config} placeholder."""
        return template.replace(CONFIG_PLACEHOLDER, self._build_type)

    def resolve(self, library_path: str) -> Path:
        """Absolute path of a project-relative library path for this build."""
        parts = PureWindowsPath(self.expand(library_path)).parts
        # Absolute Windows paths keep their anchor as the first part; drop it
        # so the path always lands under the project root.
        parts = [p for p in parts if p not in ("\\", "/") and not p.endswith(("\\", "/"))]
        return self._root.joinpath(*parts)

    def relative(self, path: str) -> str:
        """
        Strip the project root from the front of a path.

        Paths outside the project root are returned unchanged.
        """
        normalized = self._normalize(path)
        root = self._normalize(str(self._root)).rstrip("/")
        if root and normalized.lower().startswith(root.lower() + "/"):
            return path[len(root) + 1:]
        return path

    def matches(self, path: str, pattern: str) -> bool:
        """Case-insensitive substring match of an expanded pattern against a path."""
        needle = self._normalize(self.expand(pattern)).lower()
        if not needle:
            return False
        return needle in self._normalize(str(path)).lower()

    def matches_any(self, path: str, patterns: Iterable[str]) -> bool:
        for pattern in patterns:
            if self.matches(path, pattern):
                log.debug("path_mapper: %r matched pattern %r", path, pattern)
                return True
        return False
