"""
shared_lib.git_client: Source-control queries for the integrity run.

Design notes:
- Synchronous: each query is a single short-lived ``git`` subprocess with a
  timeout. The integrity run needs only two answers from source control.
- Any output on stderr is treated as a failed query, even when git exits 0;
  the caller reports it rather than trusting a partial listing.

Exports:
    GitClient      -- thin wrapper around the git command line
    GitQueryError  -- git could not be run, timed out or reported an error
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

log = logging.getLogger("shared_lib.git_client")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class GitQueryError(Exception):
    """
    A git query failed.

    Covers a missing git executable, a timeout, a non-zero exit status and
    any error output. The message carries git's own error text when there
    is one.
    """


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GitClient:
    """
    Runs git queries in a working directory.

    Usage::

        from shared_lib.git_client import GitClient

        client = GitClient()
        untracked = client.list_untracked(Path("/src/project/DistFiles"))
        branch = client.current_branch(Path("/src/project"))
    """

    def __init__(self, git_executable: str = "git", timeout: float = 60.0) -> None:
        """
        Args:
            git_executable: Name or path of the git binary.
            timeout:        Seconds to wait for each git invocation.
        """
        self._git = git_executable
        self._timeout = timeout

    def _run(self, args: list[str], cwd: Path) -> str:
        """
        Run one git command and return its standard output.

        Raises:
            GitQueryError: git is missing, timed out, failed or wrote to stderr.
        """
        command = [self._git, *args]
        if not Path(cwd).is_dir():
            raise GitQueryError(f"Folder {cwd} does not exist")
        log.debug("git_client: running %s in %s", " ".join(command), cwd)
        try:
            proc = subprocess.run(
                command,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            raise GitQueryError(f"Cannot run {self._git}: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise GitQueryError(f"{' '.join(command)} timed out after {self._timeout}s") from exc
        except OSError as exc:
            raise GitQueryError(f"Cannot run {self._git} in {cwd}: {exc}") from exc

        stderr = (proc.stderr or "").strip()
        if stderr:
            raise GitQueryError(stderr)
        if proc.returncode != 0:
            raise GitQueryError(f"{' '.join(command)} exited with status {proc.returncode}")
        return proc.stdout or ""

    def list_untracked(self, directory: Path) -> list[str]:
        """
        List files under *directory* that are neither tracked nor ignored.

        Returns:
            Paths relative to *directory*, as git prints them.

        Raises:
            GitQueryError: The query failed.
        """
        output = self._run(["ls-files", "--other", "--exclude-standard"], cwd=directory)
        files = [line.strip() for line in output.splitlines() if line.strip()]
        log.debug("git_client: %d untracked file(s) in %s", len(files), directory)
        return files

    def current_branch(self, directory: Path) -> Optional[str]:
        """
        Name of the checked-out branch, or None when git marks none as current.

        Raises:
            GitQueryError: The query failed.
        """
        output = self._run(["branch"], cwd=directory)
        for line in output.splitlines():
            if line.startswith("*"):
                return line[1:].strip()
        return None
