"""Configuration loading, schema, and defaults."""

from svnindex.config.loader import ConfigError, compile_filter, load_config
from svnindex.config.schema import SvnIndexConfig

__all__ = [
    "ConfigError",
    "SvnIndexConfig",
    "compile_filter",
    "load_config",
]
