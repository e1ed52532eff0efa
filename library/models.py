"""Typed records for the historical file and registry libraries.

Each record is built straight from the attributes of one XML element, so the
field aliases are the attribute names used in FileLibrary.xml and
RegLibrary.xml.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Formats written by earlier library generators, tried after ISO 8601
_DATE_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)


def parse_library_date(value: str) -> Optional[datetime]:
    """
    Parse a library Date attribute.

    Returns:
        The timestamp, or None for an empty value

    Raises:
        ValueError: If the value matches no known format
    """
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognised date '{value}'")


def split_feature_list(value: str) -> tuple[str, ...]:
    """Split a comma-separated FeatureList, dropping blanks but keeping order."""
    return tuple(item.strip() for item in value.split(",") if item.strip())


class _LibraryRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    component_guid: str = Field(default="", alias="ComponentGuid")
    directory_id: str = Field(default="", alias="DirectoryId")
    feature_list: tuple[str, ...] = Field(default=(), alias="FeatureList")

    @field_validator("feature_list", mode="before")
    @classmethod
    def parse_feature_list(cls, v):
        if isinstance(v, str):
            return split_feature_list(v)
        return v

    @property
    def feature_set(self) -> frozenset[str]:
        return frozenset(self.feature_list)


class FileLibraryEntry(_LibraryRecord):
    """A file as it was shipped in the last release.

    Fields:
        path: Project-relative path, may contain ${config}
        released_date: Last-write time of the released file (None if not recorded)
        released_version: Embedded file version ('' if the file had none)
        released_md5: Upper-case MD5 of the released content
        component_id: Id of the component that installed it
        long_name / short_name: Installed file names
    """

    path: str = Field(alias="Path", min_length=1)
    released_date: Optional[datetime] = Field(default=None, alias="Date")
    released_version: str = Field(default="", alias="Version")
    released_md5: str = Field(default="", alias="MD5")
    component_id: str = Field(default="", alias="ComponentId")
    long_name: str = Field(default="", alias="LongName")
    short_name: str = Field(default="", alias="ShortName")

    @field_validator("released_date", mode="before")
    @classmethod
    def parse_date(cls, v):
        if isinstance(v, str):
            return parse_library_date(v)
        return v

    @field_validator("released_version", "released_md5", mode="after")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return v.strip()

    @property
    def install_name(self) -> str:
        """Name used for the removal identifier: the long name unless it equals the short one."""
        if self.long_name and self.long_name != self.short_name:
            return self.long_name
        return self.short_name or self.long_name


class RegistryLibraryEntry(_LibraryRecord):
    """A registry component as it was shipped in the last release."""

    root: str = Field(default="", alias="Root")
    key_header: str = Field(default="", alias="KeyHeader")
    id: str = Field(default="", alias="Id")

    @property
    def key_path(self) -> str:
        return f"{self.root}\\{self.key_header}"
