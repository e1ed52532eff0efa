"""Run settings using pydantic-settings with env var and .env file support.

Env vars (INTEGRITY_ prefix) take precedence over .env values; command-line
options are passed in as explicit overrides and win over both.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IntegritySettings(BaseSettings):
    """InstallerIntegrity run settings.

    Precedence (highest to lowest):
    1. Explicit overrides (command line)
    2. INTEGRITY_-prefixed environment variables
    3. .env file in the working directory
    4. Defaults defined below
    """

    model_config = SettingsConfigDict(
        env_prefix="INTEGRITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Where the installer sources live; the project root is derived from it
    installer_dir: Path = Path(".")
    build_type: str = "Release"
    silent: bool = False

    log_level: str = "info"
    json_logs: bool = False
    max_workers: int = Field(default=8, ge=1, le=64)

    # Input documents, relative to installer_dir
    config_file: str = "InstallerConfig.xml"
    file_library: str = "FileLibrary.xml"
    reg_library: str = "RegLibrary.xml"
    manifest_sources: list[str] = ["Files.wxs", "AutoFiles.wxs"]
    corrections_source: str = "PatchCorrections.wxs"
    # Relative to the project root
    dist_files_dir: str = "DistFiles"

    # Output, relative to installer_dir
    report_file: str = "TestInstallerIntegrity.log"
    report_json: bool = False

    # Empty = no cross-run probe cache
    probe_cache_dir: Optional[Path] = None

    smtp_host: str = ""
    smtp_port: int = Field(default=25, ge=1, le=65535)
    smtp_sender: str = ""
    smtp_timeout: int = Field(default=30, ge=1, le=600)

    git_executable: str = "git"
    git_timeout: float = Field(default=60.0, gt=0)

    @field_validator("build_type", mode="after")
    @classmethod
    def validate_build_type(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("build_type must not be empty")
        return v.strip()

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        valid = ("trace", "debug", "info", "warning", "error")
        if isinstance(v, str) and v.lower() in valid:
            return v.lower()
        raise ValueError(f"log_level must be one of {valid}, got: {v}")

    @property
    def report_path(self) -> Path:
        return self.installer_dir / self.report_file

    @property
    def report_json_path(self) -> Path:
        return self.report_path.with_suffix(".json")


def get_settings(**overrides: Any) -> IntegritySettings:
    """Build settings, applying command-line overrides.

    Exits with a helpful error message if settings are invalid.
    """
    overrides = {k: v for k, v in overrides.items() if v is not None}
    try:
        return IntegritySettings(**overrides)
    except pydantic.ValidationError as exc:
        problems = []
        for error in exc.errors():
            loc = error.get("loc", ())
            field = str(loc[0]) if loc else "?"
            problems.append(f"INTEGRITY_{field.upper()}: {error.get('msg')}")
        print(
            "\nConfiguration error:\n  " + "\n  ".join(problems) + "\n",
            file=sys.stderr,
        )
        sys.exit(1)
