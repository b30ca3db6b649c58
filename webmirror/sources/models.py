"""
Source Models — Pydantic schemas for scrape configuration.

Source files define:
- sources: how to scrape one kind of VCS web front-end
- mirrors: named sync invocations (profiles)
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _require_groups(value: str, groups: List[str]) -> str:
    try:
        compiled = re.compile(value)
    except re.error as e:
        raise ValueError(f"invalid regular expression: {e}") from e
    missing = [g for g in groups if g not in compiled.groupindex]
    if missing:
        raise ValueError(f"pattern lacks named group(s): {', '.join(missing)}")
    return value


# --- Remote sources ---


class RemoteSource(BaseModel):
    """How to scrape the listing pages of one kind of front-end."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    file_pattern: str  # groups: url, optional mtime
    dir_pattern: str  # groups: url
    name_pattern: str  # groups: name (applied to absolute file URL)
    revision_pattern: Optional[str] = None  # groups: revision
    time_format: Optional[str] = None  # strptime format; ISO-8601 if unset

    @field_validator("file_pattern", "dir_pattern")
    @classmethod
    def _check_url_group(cls, v: str) -> str:
        return _require_groups(v, ["url"])

    @field_validator("name_pattern")
    @classmethod
    def _check_name_group(cls, v: str) -> str:
        return _require_groups(v, ["name"])

    @field_validator("revision_pattern")
    @classmethod
    def _check_revision_group(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _require_groups(v, ["revision"])

    @property
    def file_re(self) -> re.Pattern:
        return re.compile(self.file_pattern)

    @property
    def dir_re(self) -> re.Pattern:
        return re.compile(self.dir_pattern)

    @property
    def name_re(self) -> re.Pattern:
        return re.compile(self.name_pattern)

    @property
    def revision_re(self) -> Optional[re.Pattern]:
        if self.revision_pattern is None:
            return None
        return re.compile(self.revision_pattern)


# --- Mirror profiles ---


class MirrorProfile(BaseModel):
    """A named, reusable sync invocation."""

    name: str
    url: str
    local_root: str
    source: str
    file_mask: Optional[str] = None
    recursive: bool = True


class SourcesFile(BaseModel):
    """The sources YAML schema."""

    version: int = 1
    sources: List[RemoteSource] = Field(default_factory=list)

    def by_name(self) -> Dict[str, RemoteSource]:
        return {s.name: s for s in self.sources}


class ProfilesFile(BaseModel):
    """The mirror profiles YAML schema."""

    version: int = 1
    mirrors: List[MirrorProfile] = Field(default_factory=list)

    def get(self, name: str) -> Optional[MirrorProfile]:
        for profile in self.mirrors:
            if profile.name == name:
                return profile
        return None
