"""Configuration utilities for the relayer."""

from .loader import (
    Backends,
    ChainEntry,
    ConfigError,
    GlobalConfig,
    RelayerConfig,
    build_backend,
    validate_entry,
    config_path,
    default_config,
    load_config,
    parse_chain_entry,
    parse_duration,
    resolve_backends,
    resolve_home,
    save_config,
)

__all__ = [
    "Backends",
    "ChainEntry",
    "ConfigError",
    "GlobalConfig",
    "RelayerConfig",
    "build_backend",
    "validate_entry",
    "config_path",
    "default_config",
    "load_config",
    "parse_chain_entry",
    "parse_duration",
    "resolve_backends",
    "resolve_home",
    "save_config",
]
