"""
Shared pytest fixtures for the relayer test suite:
- Fake capability modules that record every backend they construct.
- A temporary relayer home with a config file.
- A fake Web3 object standing in for a JSON-RPC endpoint.
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Sequence
from unittest.mock import MagicMock

import pytest

from ibcrelayer.core.commands import CommandFragment
from ibcrelayer.core.module import Capability, Module, Role
from ibcrelayer.core.schema import ConfigField, ConfigSchema

HARDHAT_MNEMONIC = "test test test test test test test test test test test junk"
HARDHAT_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
IBC_ADDRESS = "0x" + "ab" * 20

FAKE_SCHEMA = ConfigSchema(
    [
        ConfigField("chain_id", str, required=False),
        ConfigField("height", int, required=False, default=7),
        ConfigField("address", str, required=False, default="0xfake"),
    ]
)


class FakeBackend:
    def __init__(self, module: str, role: Role, values: Dict[str, Any]) -> None:
        self.module = module
        self.role = role
        self.values = values
        self.address = values["address"]
        self.closed = False

    def latest_height(self) -> int:
        return self.values["height"]

    def close(self) -> None:
        self.closed = True


class FakeModule(Module):
    """Module whose roles and commands are chosen by the test."""

    def __init__(
        self,
        name: str,
        roles: Sequence[Role] = (Role.CHAIN,),
        commands: Sequence[CommandFragment] = (),
    ) -> None:
        self.name = name
        self._roles = tuple(roles)
        self._commands = tuple(commands)
        self.built: List[FakeBackend] = []

    def capabilities(self) -> Dict[Role, Capability]:
        return {role: Capability(schema=FAKE_SCHEMA, build=self._builder(role)) for role in self._roles}

    def _builder(self, role: Role):
        def build(values: Dict[str, Any]) -> FakeBackend:
            backend = FakeBackend(self.name, role, values)
            self.built.append(backend)
            return backend

        return build

    def commands(self) -> Sequence[CommandFragment]:
        return self._commands


class Recorder:
    """Command handler that records its invocations."""

    def __init__(self, result: Any = None) -> None:
        self.calls: List[Any] = []
        self.result = result

    def __call__(self, args, ctx):
        self.calls.append(args)
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


class SimpleContext:
    def __init__(self) -> None:
        self.cancelled = threading.Event()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def simple_ctx() -> SimpleContext:
    return SimpleContext()


@pytest.fixture
def fake_module_cls():
    return FakeModule


@pytest.fixture
def relayer_home(tmp_path: Path, monkeypatch) -> Path:
    """Relayer home with an empty config; also exported via RELAYER_HOME."""
    home = tmp_path / "home"
    config_file = home / "config" / "config.json"
    config_file.parent.mkdir(parents=True)
    config_file.write_text(json.dumps({"global": {"timeout": "10s", "log_level": "info"}, "chains": []}))
    monkeypatch.setenv("RELAYER_HOME", str(home))
    monkeypatch.chdir(tmp_path)
    return home


def write_chains(home: Path, chains: List[Dict[str, Any]]) -> None:
    config_file = home / "config" / "config.json"
    data = json.loads(config_file.read_text())
    data["chains"] = chains
    config_file.write_text(json.dumps(data))


def ethereum_entry(chain_id: str = "ibc0", eth_chain_id: int = 1337) -> Dict[str, Any]:
    return {
        "chain": {
            "type": "ethereum",
            "chain_id": chain_id,
            "eth_chain_id": eth_chain_id,
            "rpc_addr": "http://localhost:8545",
            "ibc_address": IBC_ADDRESS,
        },
        "signer": {"type": "hd", "mnemonic": HARDHAT_MNEMONIC},
        "prover": {"type": "mock", "finality_delay": 2},
    }


@pytest.fixture
def fake_web3() -> MagicMock:
    web3 = MagicMock()
    web3.is_connected.return_value = True
    web3.eth.chain_id = 1337
    web3.eth.block_number = 42
    web3.eth.get_balance.return_value = 3 * 10**18
    return web3
