"""Authoritative (role, identifier) -> module mapping built once at start-up."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from ibcrelayer.core.errors import CollisionError, NotFoundError, SealedError
from ibcrelayer.core.module import Module, Role
from ibcrelayer.core.utils import get_logger

LOGGER = get_logger("relayer.registry")


class Registry:
    """Index of registered modules keyed by ``(role, identifier)``."""

    def __init__(self) -> None:
        self._entries: Dict[Tuple[Role, str], Module] = {}
        self._order: List[Module] = []
        self._sealed = False

    @classmethod
    def build(cls, modules: Iterable[Module]) -> "Registry":
        """Register every module or none of them, then seal the result."""
        registry = cls()
        for module in modules:
            registry.register(module)
        registry.seal()
        return registry

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        self._sealed = True

    def register(self, module: Module) -> None:
        if self._sealed:
            raise SealedError(f"registry is sealed; cannot register module '{module.name}'")
        if not module.name:
            raise ValueError(f"module {type(module).__name__} has no name")

        roles = sorted(module.roles(), key=lambda role: role.value)
        for role in roles:
            existing = self._entries.get((role, module.name))
            if existing is not None:
                raise CollisionError(
                    role=role,
                    identifier=module.name,
                    owners=(type(existing).__name__, type(module).__name__),
                )

        for role in roles:
            self._entries[(role, module.name)] = module
        self._order.append(module)
        LOGGER.debug("Registered module %s for roles %s", module.name, ",".join(r.value for r in roles))

    def resolve(self, role: Role, identifier: str) -> Module:
        module = self._entries.get((role, identifier))
        if module is None:
            raise NotFoundError(role, identifier, self.identifiers(role))
        return module

    def identifiers(self, role: Role) -> List[str]:
        """Identifiers registered for ``role`` in registration order."""
        return [module.name for module in self._order if self._entries.get((role, module.name)) is module]

    def modules(self) -> List[Module]:
        return list(self._order)

    def __contains__(self, key: Tuple[Role, str]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["Registry"]
