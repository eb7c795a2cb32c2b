"""Mock prover module for local and test networks."""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ibcrelayer.core.errors import ConfigurationError
from ibcrelayer.core.module import Capability, Module, Role
from ibcrelayer.core.schema import ConfigField, ConfigSchema

SCHEMA = ConfigSchema(
    [
        ConfigField(
            "finality_delay", int, required=False, default=0, help="Blocks a height must age before it is final"
        ),
    ]
)


@dataclass(frozen=True)
class MockClientState:
    latest_height: int


@dataclass(frozen=True)
class MockConsensusState:
    timestamp: int


def make_proof(value: bytes) -> bytes:
    """Commitment the mock light client accepts for ``value``."""
    return hashlib.sha256(value).digest()


class MockProver:
    """Prover that trusts every header and proves state with a plain hash."""

    def __init__(self, finality_delay: int = 0) -> None:
        if finality_delay < 0:
            raise ConfigurationError("finality_delay cannot be negative")
        self.finality_delay = finality_delay

    def create_initial_light_client_state(
        self, height: int, timestamp: Optional[int] = None
    ) -> Tuple[MockClientState, MockConsensusState]:
        if height < 0:
            raise ValueError("height cannot be negative")
        return MockClientState(latest_height=height), MockConsensusState(
            timestamp=int(time.time()) if timestamp is None else timestamp
        )

    def prove_state(self, path: str, value: bytes, height: int) -> Tuple[bytes, int]:
        if not path:
            raise ValueError("commitment path cannot be empty")
        return make_proof(value), height

    def check_finality(self, height: int, latest_height: int) -> bool:
        return latest_height - height >= self.finality_delay

    def __repr__(self) -> str:
        return f"MockProver(finality_delay={self.finality_delay})"


class MockProverModule(Module):
    """Provides the ``mock`` prover backend."""

    name = "mock"

    def capabilities(self) -> Dict[Role, Capability]:
        return {Role.PROVER: Capability(schema=SCHEMA, build=self._build_prover)}

    @staticmethod
    def _build_prover(values: Dict[str, Any]) -> MockProver:
        return MockProver(finality_delay=values["finality_delay"])


__all__ = ["MockClientState", "MockConsensusState", "MockProver", "MockProverModule", "SCHEMA", "make_proof"]
