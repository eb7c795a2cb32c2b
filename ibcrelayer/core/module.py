"""Capability interface implemented by every pluggable relayer module."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Mapping, Sequence

from ibcrelayer.core.commands import CommandFragment
from ibcrelayer.core.errors import ConfigurationError, RoleNotSupportedError
from ibcrelayer.core.schema import ConfigSchema


class Role(str, enum.Enum):
    """Capability categories a module can fill."""

    CHAIN = "chain"
    SIGNER = "signer"
    PROVER = "prover"

    def __str__(self) -> str:
        return self.value


Factory = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class Capability:
    """How to configure and construct a backend for one role."""

    schema: ConfigSchema
    build: Callable[[Dict[str, Any]], Any]


class Module:
    """Base class for a unit that provides one or more backend roles.

    Subclasses set ``name`` and override :meth:`capabilities` (and optionally
    :meth:`commands`). Neither may perform I/O; all work happens later inside
    the factories and command handlers they hand out.

    Config sections also carry framework keys (``type``, ``chain_id`` on chain
    sections, and ``timeout`` from ``global.timeout``). A schema may declare
    any of them to receive the value; undeclared ones are dropped.
    """

    name: str = ""

    def capabilities(self) -> Mapping[Role, Capability]:
        return {}

    def commands(self) -> Sequence[CommandFragment]:
        return ()

    def roles(self) -> FrozenSet[Role]:
        return frozenset(self.capabilities())

    def _capability(self, role: Role) -> Capability:
        capability = self.capabilities().get(role)
        if capability is None:
            raise RoleNotSupportedError(self.name, role)
        return capability

    def schema(self, role: Role) -> ConfigSchema:
        return self._capability(role).schema

    def factory(self, role: Role) -> Factory:
        """Return a constructor that validates then builds a fresh backend."""
        capability = self._capability(role)
        context = f"{role.value} '{self.name}'"

        def construct(config: Mapping[str, Any]) -> Any:
            values = capability.schema.validate(config, context=context)
            try:
                return capability.build(values)
            except ConfigurationError:
                raise
            except ValueError as exc:
                raise ConfigurationError(f"{context}: {exc}") from exc

        return construct

    def __repr__(self) -> str:
        roles = ",".join(sorted(role.value for role in self.roles()))
        return f"<{type(self).__name__} {self.name!r} roles={roles}>"


__all__ = ["Capability", "Factory", "Module", "Role"]
