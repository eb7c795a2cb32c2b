"""Module registry and command framework."""

from .commands import CommandFragment, CommandTree, build_tree
from .errors import (
    CollisionError,
    ConfigurationError,
    NotFoundError,
    RelayerError,
    RoleNotSupportedError,
    SealedError,
    UsageError,
)
from .module import Capability, Module, Role
from .registry import Registry
from .schema import ConfigField, ConfigSchema

__all__ = [
    "Capability",
    "CollisionError",
    "CommandFragment",
    "CommandTree",
    "ConfigField",
    "ConfigSchema",
    "ConfigurationError",
    "Module",
    "NotFoundError",
    "Registry",
    "RelayerError",
    "Role",
    "RoleNotSupportedError",
    "SealedError",
    "UsageError",
    "build_tree",
]
