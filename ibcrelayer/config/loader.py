"""Config loader for the relayer home directory."""

from __future__ import annotations

import json
import os
import re
from functools import partial
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Tuple

from ibcrelayer.core.errors import ConfigurationError
from ibcrelayer.core.module import Role
from ibcrelayer.core.registry import Registry
from ibcrelayer.core.schema import CHAIN_ID_KEY, TIMEOUT_KEY, TYPE_KEY, require_keys
from ibcrelayer.core.utils import get_logger, load_json_file

LOGGER = get_logger("relayer.config")

HOME_ENV = "RELAYER_HOME"
DEFAULT_HOME = Path("~/.ibc-relayer")
CONFIG_RELPATH = Path("config") / "config.json"

LOG_LEVELS = ("debug", "info", "warning", "error")
SECTIONS: Tuple[Tuple[str, Role], ...] = (
    ("chain", Role.CHAIN),
    ("signer", Role.SIGNER),
    ("prover", Role.PROVER),
)

_DURATION = re.compile(r"^(\d+(?:\.\d+)?)(ms|s|m|h)$")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigError(ConfigurationError):
    """Raised when configuration data is invalid or missing."""


_require_keys = partial(require_keys, error=ConfigError)


def parse_duration(value: str) -> float:
    """Convert ``"10s"``/``"500ms"``/``"2m"`` into seconds."""
    match = _DURATION.match(str(value).strip())
    if not match:
        raise ConfigError(f"Invalid duration: {value!r} (expected e.g. '10s', '500ms')")
    amount, unit = match.groups()
    return float(amount) * _UNIT_SECONDS[unit]


@dataclass(frozen=True)
class GlobalConfig:
    """Settings that apply to every command."""

    timeout: str = "10s"
    log_level: str = "info"

    @property
    def timeout_seconds(self) -> float:
        return parse_duration(self.timeout)

    def to_dict(self) -> Dict[str, Any]:
        return {"timeout": self.timeout, "log_level": self.log_level}


@dataclass(frozen=True)
class ChainEntry:
    """One configured chain: its chain backend plus optional signer and prover."""

    chain_id: str
    chain: Mapping[str, Any]
    signer: Optional[Mapping[str, Any]] = None
    prover: Optional[Mapping[str, Any]] = None

    def section(self, name: str) -> Optional[Mapping[str, Any]]:
        return getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"chain": dict(self.chain)}
        for name in ("signer", "prover"):
            value = self.section(name)
            if value is not None:
                data[name] = dict(value)
        return data


@dataclass(frozen=True)
class RelayerConfig:
    """Typed wrapper around the relayer configuration."""

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    chains: Tuple[ChainEntry, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    def chain_ids(self) -> List[str]:
        return [entry.chain_id for entry in self.chains]

    def get_chain(self, chain_id: str) -> ChainEntry:
        for entry in self.chains:
            if entry.chain_id == chain_id:
                return entry
        known = ", ".join(self.chain_ids()) or "none configured"
        raise ConfigError(f"Chain '{chain_id}' not found in config (known: {known})")

    def with_chain(self, entry: ChainEntry) -> "RelayerConfig":
        if entry.chain_id in self.chain_ids():
            raise ConfigError(f"Chain '{entry.chain_id}' is already configured")
        return replace(self, chains=self.chains + (entry,))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "global": self.global_config.to_dict(),
            "chains": [entry.to_dict() for entry in self.chains],
        }


@dataclass(frozen=True)
class Backends:
    """Backend instances built for one chain entry."""

    chain: Any = None
    signer: Any = None
    prover: Any = None


def resolve_home(home: Optional[os.PathLike] = None) -> Path:
    """Return the home directory from the flag, ``$RELAYER_HOME`` or the default."""
    if home:
        return Path(home).expanduser()
    env_home = (os.getenv(HOME_ENV) or "").strip()
    if env_home:
        return Path(env_home).expanduser()
    return DEFAULT_HOME.expanduser()


def config_path(home: Path) -> Path:
    return Path(home) / CONFIG_RELPATH


def default_config() -> RelayerConfig:
    config = RelayerConfig()
    return replace(config, raw=config.to_dict())


def _load_json(path: Path) -> MutableMapping[str, Any]:
    try:
        return load_json_file(path)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path} (run 'config init' first)") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file contains invalid JSON: {path}") from exc


def _parse_section(data: Any, context: str) -> Dict[str, Any]:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{context} must be an object")
    _require_keys(data, [TYPE_KEY], context)
    if not isinstance(data[TYPE_KEY], str) or not data[TYPE_KEY]:
        raise ConfigError(f"{context}.{TYPE_KEY} must be a non-empty string")
    return dict(data)


def parse_chain_entry(data: Any, context: str = "chain entry") -> ChainEntry:
    """Validate the structure of one chain entry (not its backend fields)."""
    if not isinstance(data, Mapping):
        raise ConfigError(f"{context} must be an object")
    _require_keys(data, ["chain"], context)
    unknown = [key for key in data if key not in {name for name, _ in SECTIONS}]
    if unknown:
        raise ConfigError(f"{context} has unknown sections: {', '.join(sorted(unknown))}")

    chain = _parse_section(data["chain"], f"{context}.chain")
    _require_keys(chain, [CHAIN_ID_KEY], f"{context}.chain")
    chain_id = str(chain[CHAIN_ID_KEY]).strip()
    if not chain_id:
        raise ConfigError(f"{context}.chain.chain_id cannot be empty")
    chain[CHAIN_ID_KEY] = chain_id

    return ChainEntry(
        chain_id=chain_id,
        chain=chain,
        signer=_parse_section(data["signer"], f"{context}.signer") if "signer" in data else None,
        prover=_parse_section(data["prover"], f"{context}.prover") if "prover" in data else None,
    )


def _parse_global(data: Any) -> GlobalConfig:
    if not isinstance(data, Mapping):
        raise ConfigError("global must be an object")
    config = GlobalConfig(
        timeout=str(data.get("timeout", GlobalConfig.timeout)),
        log_level=str(data.get("log_level", GlobalConfig.log_level)).lower(),
    )
    config.timeout_seconds  # validates the duration
    if config.log_level not in LOG_LEVELS:
        raise ConfigError(f"global.log_level must be one of {', '.join(LOG_LEVELS)}")
    return config


def load_config(path: Path) -> RelayerConfig:
    """Load and validate relayer configuration data."""
    data = _load_json(Path(path))
    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file must contain a JSON object: {path}")

    _require_keys(data, ["global", "chains"], "config")
    if not isinstance(data["chains"], list):
        raise ConfigError("chains must be a list")

    chains: List[ChainEntry] = []
    seen = set()
    for index, item in enumerate(data["chains"]):
        entry = parse_chain_entry(item, context=f"chains[{index}]")
        if entry.chain_id in seen:
            raise ConfigError(f"Duplicate chain id in config: {entry.chain_id}")
        seen.add(entry.chain_id)
        chains.append(entry)

    return RelayerConfig(global_config=_parse_global(data["global"]), chains=tuple(chains), raw=data)


def save_config(config: RelayerConfig, path: Path) -> None:
    """Write ``config`` as pretty-printed JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(config.to_dict(), fh, indent=2)
            fh.write("\n")
        tmp_path.replace(path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise
    LOGGER.debug("Wrote config to %s", path)


def validate_entry(entry: ChainEntry, registry: Registry) -> None:
    """Check every section against the schema of the module it names."""
    for name, role in SECTIONS:
        section = entry.section(name)
        if section is not None:
            module = registry.resolve(role, section[TYPE_KEY])
            module.schema(role).validate(section, context=f"{entry.chain_id}.{name}")


def build_backend(entry: ChainEntry, role: Role, registry: Registry, timeout: Optional[float] = None) -> Any:
    """Resolve the module configured for ``role`` and construct a fresh backend.

    ``timeout`` (seconds, usually ``global.timeout``) is offered to the backend
    under the ``timeout`` key unless the section sets its own.
    """
    name = next(section for section, section_role in SECTIONS if section_role is role)
    section = entry.section(name)
    if section is None:
        raise ConfigError(f"Chain '{entry.chain_id}' has no {name} configured")
    module = registry.resolve(role, section[TYPE_KEY])
    values = dict(section)
    if timeout is not None:
        values.setdefault(TIMEOUT_KEY, timeout)
    return module.factory(role)(values)


def resolve_backends(entry: ChainEntry, registry: Registry, timeout: Optional[float] = None) -> Backends:
    """Build every configured backend of ``entry``."""
    built: Dict[str, Any] = {}
    for name, role in SECTIONS:
        if entry.section(name) is not None:
            built[name] = build_backend(entry, role, registry, timeout=timeout)
    return Backends(**built)


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
