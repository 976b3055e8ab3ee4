"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class RepositoryConfig:
    url: str = ""
    user: str = ""
    password: str = ""


@dataclass
class ScanConfig:
    max_revision: int = 99999999  # upper bound for incremental scans
    max_threads: int = 16
    filter: str = ""  # paths matching this regex are not reported


@dataclass
class SvnConfig:
    binary: str = "svn"
    timeout: float = 0  # seconds per backend call, 0 = wait forever

    @property
    def timeout_or_none(self) -> Optional[float]:
        return self.timeout if self.timeout and self.timeout > 0 else None


@dataclass
class SvnIndexConfig:
    version: str = "1.0"
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    svn: SvnConfig = field(default_factory=SvnConfig)
