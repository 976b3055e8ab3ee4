"""Data models for repository changes, path data, and raw svn records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple

MIME_TYPE_PROPERTY = "svn:mime-type"
MAX_TEXT_SIZE = 128 * 1024 * 1024


class Change(str, Enum):
    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"
    REPLACE = "replace"


class NodeKind(str, Enum):
    FILE = "file"
    DIR = "dir"
    NONE = "none"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "NodeKind":
        try:
            return cls(value or "unknown")
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class PathChange:
    """A single path touched by a revision."""

    revision: int
    path: str
    change: Change
    is_copy: bool = False


@dataclass
class PathData:
    """Metadata and optional text of a path at one revision."""

    path: str
    size: int = 0
    author: str = ""
    timestamp: Optional[datetime] = None
    revision_first: int = 0  # last revision that changed the path
    revision_last: int = 0  # the queried revision
    is_directory: bool = False
    properties: Dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None

    @property
    def mime_type(self) -> Optional[str]:
        return self.properties.get(MIME_TYPE_PROPERTY)


# --- Raw records parsed from `svn --xml` output ---


@dataclass(frozen=True)
class InfoEntry:
    url: str
    kind: NodeKind
    revision: int
    last_changed_rev: int = 0
    last_changed_author: str = ""
    last_changed_date: Optional[datetime] = None
    size: Optional[int] = None  # only present on newer clients


@dataclass(frozen=True)
class ChangedPath:
    path: str
    action: str  # 'A', 'M', 'D', 'R'
    kind: NodeKind = NodeKind.UNKNOWN
    copyfrom_path: Optional[str] = None
    copyfrom_rev: Optional[int] = None


@dataclass(frozen=True)
class LogEntry:
    revision: int
    author: str = ""
    date: Optional[datetime] = None
    message: str = ""
    changed_paths: Tuple[ChangedPath, ...] = ()


@dataclass(frozen=True)
class ListEntry:
    name: str  # relative to the listed target, '' for the target itself
    kind: NodeKind
    size: Optional[int] = None
    last_changed_rev: int = 0


@dataclass(frozen=True)
class PropertyList:
    target: str
    properties: Dict[str, str] = field(default_factory=dict)
