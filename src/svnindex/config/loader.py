"""Load and merge configuration from .svnindex.toml and SVNINDEX_* env vars."""

from __future__ import annotations

import dataclasses
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from svnindex.config.schema import RepositoryConfig, ScanConfig, SvnConfig, SvnIndexConfig

CONFIG_FILENAME = ".svnindex.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(directory: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = directory / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.get(section, {}).items() if k in valid_fields}
    return cls(**filtered)


def _merge_env_overrides(cfg: SvnIndexConfig) -> None:
    """Apply SVNINDEX_* environment variable overrides."""
    if val := os.environ.get("SVNINDEX_URL"):
        cfg.repository.url = val
    if val := os.environ.get("SVNINDEX_USER"):
        cfg.repository.user = val
    if val := os.environ.get("SVNINDEX_PASSWORD"):
        cfg.repository.password = val
    if val := os.environ.get("SVNINDEX_FILTER"):
        cfg.scan.filter = val
    if val := os.environ.get("SVNINDEX_MAX_THREADS"):
        try:
            threads = int(val)
        except ValueError:
            threads = 0
        if threads > 0:
            cfg.scan.max_threads = threads
    if val := os.environ.get("SVNINDEX_TIMEOUT"):
        try:
            cfg.svn.timeout = float(val)
        except ValueError:
            pass


def compile_filter(pattern: str) -> Optional[re.Pattern[str]]:
    """Compile the path filter regex, or return None when unset."""
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"Invalid filter regex {pattern!r}: {exc}") from exc


def _validate(cfg: SvnIndexConfig) -> None:
    if cfg.scan.max_threads < 1:
        raise ConfigError(f"scan.max_threads must be at least 1, got {cfg.scan.max_threads}")
    if cfg.scan.max_revision < 0:
        raise ConfigError(f"scan.max_revision must not be negative, got {cfg.scan.max_revision}")
    compile_filter(cfg.scan.filter)


def load_config(
    directory: Path,
    config_override: Optional[str] = None,
) -> SvnIndexConfig:
    """Load, validate, and return an SvnIndexConfig."""
    config_path = find_config_file(directory, config_override)

    if config_path is None:
        cfg = SvnIndexConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = SvnIndexConfig(
                version=raw.get("version", "1.0"),
                repository=_build_section(raw, RepositoryConfig, "repository"),
                scan=_build_section(raw, ScanConfig, "scan"),
                svn=_build_section(raw, SvnConfig, "svn"),
            )
        except (TypeError, AttributeError) as exc:
            raise ConfigError(f"Invalid section in {config_path}: {exc}") from exc

    _merge_env_overrides(cfg)
    _validate(cfg)
    return cfg
