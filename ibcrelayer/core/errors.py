"""Error taxonomy shared by the registry, command tree and CLI."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class RelayerError(Exception):
    """Base class for every error raised by the relayer framework."""


class CollisionError(RelayerError):
    """Two modules claimed the same (role, identifier) pair or command path."""

    def __init__(
        self,
        *,
        role: Optional[object] = None,
        identifier: Optional[str] = None,
        path: Optional[Tuple[str, ...]] = None,
        owners: Sequence[str] = (),
    ) -> None:
        self.role = role
        self.identifier = identifier
        self.path = tuple(path) if path is not None else None
        self.owners = tuple(owners)
        super().__init__(self._render())

    def _render(self) -> str:
        claimed = f" (claimed by {' and '.join(self.owners)})" if self.owners else ""
        if self.path is not None:
            return f"command path collision: '{' '.join(self.path)}'{claimed}"
        role = getattr(self.role, "value", self.role)
        return f"{role} module collision: identifier '{self.identifier}'{claimed}"


class NotFoundError(RelayerError):
    """No module is registered for the requested (role, identifier)."""

    def __init__(self, role: object, identifier: str, available: Sequence[str] = ()) -> None:
        self.role = role
        self.identifier = identifier
        self.available = tuple(available)
        role_name = getattr(role, "value", role)
        valid = ", ".join(self.available) if self.available else "none registered"
        super().__init__(f"no {role_name} module named '{identifier}' (valid: {valid})")


class ConfigurationError(RelayerError, ValueError):
    """Raised when a factory or config loader rejects the supplied configuration."""


class RoleNotSupportedError(RelayerError):
    """A module was asked for a role it does not declare."""

    def __init__(self, module: str, role: object) -> None:
        self.module = module
        self.role = role
        super().__init__(f"module '{module}' does not provide the {getattr(role, 'value', role)} role")


class UsageError(RelayerError):
    """The argument vector did not match a runnable command."""

    def __init__(self, message: str, *, hint: Sequence[str] = ()) -> None:
        self.hint = tuple(hint)
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        if not self.hint:
            return self.message
        return self.message + "\n\nAvailable commands:\n" + "\n".join(f"  {line}" for line in self.hint)


class SealedError(RelayerError):
    """Raised when something tries to register after start-up completed."""


__all__ = [
    "CollisionError",
    "ConfigurationError",
    "NotFoundError",
    "RelayerError",
    "RoleNotSupportedError",
    "SealedError",
    "UsageError",
]
