"""Shared context handed to every command handler."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ibcrelayer.config import (
    ChainEntry,
    RelayerConfig,
    build_backend,
    config_path,
    load_config,
    save_config,
)
from ibcrelayer.core.module import Role
from ibcrelayer.core.registry import Registry
from ibcrelayer.core.utils import get_logger, set_log_level

LOGGER = get_logger("relayer.context")


@dataclass
class CommandContext:
    """Registry, home directory and cancellation flag for one invocation.

    Backends are built on request and never cached here; each call to
    :meth:`build` returns an independent instance owned by the caller.
    """

    registry: Registry
    home: Path
    debug: bool = False
    cancelled: threading.Event = field(default_factory=threading.Event)
    _config: Optional[RelayerConfig] = field(default=None, init=False, repr=False)

    @property
    def config_file(self) -> Path:
        return config_path(self.home)

    def load_config(self) -> RelayerConfig:
        if self._config is None:
            self._config = load_config(self.config_file)
            if not self.debug:
                set_log_level(getattr(logging, self._config.global_config.log_level.upper()))
            LOGGER.debug("Loaded config from %s", self.config_file)
        return self._config

    def save_config(self, config: RelayerConfig) -> None:
        save_config(config, self.config_file)
        self._config = config

    def chain_entry(self, chain_id: str) -> ChainEntry:
        return self.load_config().get_chain(chain_id)

    def build(self, chain_id: str, role: Role) -> Any:
        """Construct the ``role`` backend configured for ``chain_id``."""
        config = self.load_config()
        return build_backend(
            config.get_chain(chain_id), role, self.registry, timeout=config.global_config.timeout_seconds
        )


__all__ = ["CommandContext"]
