"""Ethereum chain backend module."""

from __future__ import annotations

import argparse
from contextlib import closing
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from web3 import Web3
from web3.contract import Contract

from ibcrelayer.contracts import load_contract_abi
from ibcrelayer.core.commands import CommandFragment
from ibcrelayer.core.errors import ConfigurationError
from ibcrelayer.core.module import Capability, Module, Role
from ibcrelayer.core.schema import ConfigField, ConfigSchema
from ibcrelayer.core.utils import ensure_web3_connected, get_logger

LOGGER = get_logger("relayer.modules.ethereum")

SCHEMA = ConfigSchema(
    [
        ConfigField("chain_id", str, help="IBC chain identifier"),
        ConfigField("eth_chain_id", int, help="EIP-155 chain id reported by the RPC"),
        ConfigField("rpc_addr", str, help="HTTP(S) JSON-RPC endpoint"),
        ConfigField("ibc_address", str, help="IBC handler contract address"),
        ConfigField("average_block_time_msec", int, required=False, default=12000, help="Expected block interval"),
        ConfigField("timeout", float, required=False, default=10.0, help="RPC request timeout in seconds"),
    ]
)


def _to_checksum(value: str, *, field_name: str) -> str:
    try:
        return Web3.to_checksum_address(value)
    except Exception as exc:  # web3 raises ValueError for malformed inputs
        raise ConfigurationError(f"Invalid address for {field_name}: {value}") from exc


def http_web3(url: str, timeout: float = 10.0) -> Web3:
    return Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout}))


@dataclass(frozen=True)
class EthereumChainConfig:
    """Validated settings of one Ethereum chain."""

    chain_id: str
    eth_chain_id: int
    rpc_addr: str
    ibc_address: str
    average_block_time_msec: int = 12000
    timeout: float = 10.0

    @classmethod
    def from_values(cls, values: Mapping[str, Any]) -> "EthereumChainConfig":
        rpc_addr = values["rpc_addr"].strip()
        if not rpc_addr.startswith(("http://", "https://")):
            raise ConfigurationError(f"rpc_addr must be an http(s) URL, got {rpc_addr!r}")
        if values["eth_chain_id"] <= 0:
            raise ConfigurationError("eth_chain_id must be positive")
        if values["average_block_time_msec"] <= 0:
            raise ConfigurationError("average_block_time_msec must be positive")
        if values["timeout"] <= 0:
            raise ConfigurationError("timeout must be positive")
        return cls(
            chain_id=values["chain_id"],
            eth_chain_id=values["eth_chain_id"],
            rpc_addr=rpc_addr,
            ibc_address=_to_checksum(values["ibc_address"], field_name="ibc_address"),
            average_block_time_msec=values["average_block_time_msec"],
            timeout=values["timeout"],
        )


class EthereumChain:
    """Chain backend talking to an Ethereum JSON-RPC endpoint."""

    def __init__(
        self,
        config: EthereumChainConfig,
        web3_factory: Optional[Callable[[str], Web3]] = None,
    ) -> None:
        self.config = config
        self._web3_factory = web3_factory
        self._web3: Optional[Web3] = None

    @property
    def chain_id(self) -> str:
        return self.config.chain_id

    @property
    def web3(self) -> Web3:
        """Connect on first use and verify the RPC serves the expected chain."""
        if self._web3 is None:
            if self._web3_factory is None:
                web3 = http_web3(self.config.rpc_addr, self.config.timeout)
            else:
                web3 = self._web3_factory(self.config.rpc_addr)
            ensure_web3_connected(web3, expected_chain_id=self.config.eth_chain_id)
            LOGGER.info("Connected to %s (eth chain %s)", self.config.chain_id, self.config.eth_chain_id)
            self._web3 = web3
        return self._web3

    def latest_height(self) -> int:
        return int(self.web3.eth.block_number)

    def balance_of(self, address: str) -> int:
        return int(self.web3.eth.get_balance(Web3.to_checksum_address(address)))

    def ibc_handler(self) -> Contract:
        return self.web3.eth.contract(address=self.config.ibc_address, abi=load_contract_abi("ibc_handler.json"))

    def client_state(self, client_id: str) -> Tuple[bytes, bool]:
        state, found = self.ibc_handler().functions.getClientState(client_id).call()
        return bytes(state), bool(found)

    def close(self) -> None:
        self._web3 = None

    def __repr__(self) -> str:
        return f"EthereumChain(chain_id={self.config.chain_id!r}, rpc_addr={self.config.rpc_addr!r})"


def _ethereum_chain(ctx: Any, chain_id: str) -> EthereumChain:
    chain = ctx.build(chain_id, Role.CHAIN)
    if not isinstance(chain, EthereumChain):
        raise ConfigurationError(f"Chain '{chain_id}' is not configured with the ethereum module")
    return chain


def _balance_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("chain_id")
    parser.add_argument("address", help="Account to query")


def _balance(args: argparse.Namespace, ctx: Any) -> None:
    with closing(_ethereum_chain(ctx, args.chain_id)) as chain:
        balance = chain.balance_of(args.address)
    print(f"{balance} wei ({balance / 10**18:.6f} ETH)")


def _client_state_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("chain_id")
    parser.add_argument("client_id", help="Light client identifier on the IBC handler")


def _client_state(args: argparse.Namespace, ctx: Any) -> int:
    with closing(_ethereum_chain(ctx, args.chain_id)) as chain:
        state, found = chain.client_state(args.client_id)
    if not found:
        print(f"Client {args.client_id} not found")
        return 1
    print(f"0x{state.hex()}")
    return 0


class EthereumModule(Module):
    """Provides the ``ethereum`` chain backend."""

    name = "ethereum"

    def __init__(self, web3_factory: Optional[Callable[[str], Web3]] = None) -> None:
        self._web3_factory = web3_factory

    def capabilities(self) -> Dict[Role, Capability]:
        return {Role.CHAIN: Capability(schema=SCHEMA, build=self._build_chain)}

    def _build_chain(self, values: Dict[str, Any]) -> EthereumChain:
        return EthereumChain(EthereumChainConfig.from_values(values), web3_factory=self._web3_factory)

    def commands(self) -> Sequence[CommandFragment]:
        return (
            CommandFragment(
                ("ethereum", "balance"), _balance, help="Print an account's native balance", configure=_balance_args
            ),
            CommandFragment(
                ("ethereum", "client-state"),
                _client_state,
                help="Print a light client's state from the IBC handler",
                configure=_client_state_args,
            ),
        )


__all__ = ["EthereumChain", "EthereumChainConfig", "EthereumModule", "SCHEMA", "http_web3"]
