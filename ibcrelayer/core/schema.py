"""Typed parameter descriptions used to validate backend configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type

from ibcrelayer.core.errors import ConfigurationError

TYPE_KEY = "type"
CHAIN_ID_KEY = "chain_id"
TIMEOUT_KEY = "timeout"

# Keys the relayer config layer owns. A schema only sees them if it declares them.
FRAMEWORK_KEYS = frozenset({TYPE_KEY, CHAIN_ID_KEY, TIMEOUT_KEY})

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def require_keys(
    data: Mapping[str, Any],
    keys: Iterable[str],
    context: str,
    *,
    error: Type[ConfigurationError] = ConfigurationError,
) -> None:
    missing = [key for key in keys if key not in data]
    if missing:
        raise error(f"{context} missing required keys: {', '.join(missing)}")


def _coerce(value: Any, kind: type, *, field_name: str, context: str) -> Any:
    if kind is bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ConfigurationError(f"{context}.{field_name} must be a boolean, got {value!r}")
    if kind is int and isinstance(value, bool):
        raise ConfigurationError(f"{context}.{field_name} must be an integer, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"{context}.{field_name} must be of type {kind.__name__}, got {value!r}"
        ) from exc


@dataclass(frozen=True)
class ConfigField:
    """A single named, typed parameter of a backend factory."""

    name: str
    type: type = str
    required: bool = True
    default: Any = None
    help: str = ""
    choices: Optional[Tuple[Any, ...]] = None

    def describe(self) -> str:
        if self.required:
            suffix = "required"
        else:
            suffix = f"default: {self.default!r}"
        line = f"{self.name} ({self.type.__name__}, {suffix})"
        if self.choices:
            line += f" one of {', '.join(map(str, self.choices))}"
        return f"{line}: {self.help}" if self.help else line


@dataclass(frozen=True)
class ConfigSchema:
    """Ordered collection of :class:`ConfigField` with validation."""

    fields: Sequence[ConfigField] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        names = [item.name for item in self.fields]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate schema fields: {', '.join(duplicates)}")

    @property
    def names(self) -> List[str]:
        return [item.name for item in self.fields]

    def validate(self, data: Mapping[str, Any], context: str = "config") -> Dict[str, Any]:
        """Return a new dict with defaults applied and values coerced.

        Every missing required key is reported at once; unknown keys are
        rejected so that typos never silently fall back to defaults.
        Framework keys (``type``, ``chain_id``, ``timeout``) are accepted
        without being declared and are only returned when declared.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"{context} must be a mapping, got {type(data).__name__}")

        require_keys(data, [item.name for item in self.fields if item.required], context)

        known = set(self.names) | FRAMEWORK_KEYS
        unknown = [key for key in data if key not in known]
        if unknown:
            raise ConfigurationError(f"{context} has unknown keys: {', '.join(sorted(unknown))}")

        result: Dict[str, Any] = {}
        for item in self.fields:
            if item.name in data:
                value = _coerce(data[item.name], item.type, field_name=item.name, context=context)
            else:
                value = item.default
            if item.choices is not None and value not in item.choices:
                raise ConfigurationError(
                    f"{context}.{item.name} must be one of {', '.join(map(str, item.choices))}, got {value!r}"
                )
            result[item.name] = value
        return result

    def describe(self) -> List[str]:
        return [item.describe() for item in self.fields]


__all__ = [
    "CHAIN_ID_KEY",
    "ConfigField",
    "ConfigSchema",
    "FRAMEWORK_KEYS",
    "TIMEOUT_KEY",
    "TYPE_KEY",
    "require_keys",
]
