"""HD wallet signer backend module."""

from __future__ import annotations

import argparse
import getpass
import os
import sys
from typing import Any, Dict, Optional, Sequence

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from ibcrelayer.core.commands import CommandFragment
from ibcrelayer.core.errors import ConfigurationError
from ibcrelayer.core.module import Capability, Module, Role
from ibcrelayer.core.schema import ConfigField, ConfigSchema
from ibcrelayer.core.utils import get_logger

LOGGER = get_logger("relayer.modules.hd")

Account.enable_unaudited_hdwallet_features()

MNEMONIC_ENV = "RELAYER_MNEMONIC"
DEFAULT_PATH = "m/44'/60'/0'/0/0"

SCHEMA = ConfigSchema(
    [
        ConfigField("mnemonic", str, required=False, help="BIP-39 mnemonic phrase"),
        ConfigField("mnemonic_env", str, required=False, help="Environment variable holding the mnemonic"),
        ConfigField("path", str, required=False, default=DEFAULT_PATH, help="BIP-44 derivation path"),
    ]
)


def derive_account(mnemonic: str, path: str = DEFAULT_PATH) -> LocalAccount:
    """Derive the account at ``path`` or raise ConfigurationError."""
    try:
        return Account.from_mnemonic(mnemonic.strip(), account_path=path)
    except Exception as exc:  # eth-account raises ValidationError/ValueError for bad input
        raise ConfigurationError(f"Invalid mnemonic or derivation path '{path}': {exc}") from exc


class HDSigner:
    """Signer backend holding one key derived from a mnemonic."""

    def __init__(self, account: LocalAccount, path: str) -> None:
        self._account = account
        self.path = path

    @property
    def address(self) -> str:
        return self._account.address

    def sign(self, message: bytes) -> bytes:
        """Sign ``message`` with the EIP-191 personal-message prefix."""
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return bytes(signed.signature)

    def __repr__(self) -> str:
        return f"HDSigner(address={self.address!r}, path={self.path!r})"


def _mnemonic_from(values: Dict[str, Any]) -> str:
    mnemonic: Optional[str] = values.get("mnemonic")
    env_name: Optional[str] = values.get("mnemonic_env")
    if mnemonic and env_name:
        raise ConfigurationError("set either mnemonic or mnemonic_env, not both")
    if env_name:
        mnemonic = (os.getenv(env_name) or "").strip()
        if not mnemonic:
            raise ConfigurationError(f"environment variable {env_name} is not set")
    if not mnemonic:
        raise ConfigurationError("mnemonic or mnemonic_env is required")
    return mnemonic


def _generate_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--words", type=int, default=24, choices=(12, 15, 18, 21, 24))
    parser.add_argument("--path", default=DEFAULT_PATH)


def _generate(args: argparse.Namespace, ctx: Any) -> None:
    account, mnemonic = Account.create_with_mnemonic(num_words=args.words, account_path=args.path)
    print(f"address:  {account.address}")
    print(f"mnemonic: {mnemonic}")


def _address_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mnemonic",
        default=None,
        help=f"Mnemonic phrase; prefer ${MNEMONIC_ENV} or the prompt, flags end up in shell history",
    )
    parser.add_argument("--path", default=DEFAULT_PATH)


def _read_mnemonic(flag_value: Optional[str]) -> str:
    """Use the flag, then the environment, then prompt when attached to a terminal."""
    mnemonic = (flag_value or os.getenv(MNEMONIC_ENV) or "").strip()
    if not mnemonic and sys.stdin is not None and sys.stdin.isatty():
        mnemonic = getpass.getpass("Mnemonic: ").strip()
    if not mnemonic:
        raise ConfigurationError(f"no mnemonic given: set {MNEMONIC_ENV} or pass --mnemonic")
    return mnemonic


def _address(args: argparse.Namespace, ctx: Any) -> None:
    print(derive_account(_read_mnemonic(args.mnemonic), args.path).address)


class HDModule(Module):
    """Provides the ``hd`` signer backend."""

    name = "hd"

    def capabilities(self) -> Dict[Role, Capability]:
        return {Role.SIGNER: Capability(schema=SCHEMA, build=self._build_signer)}

    @staticmethod
    def _build_signer(values: Dict[str, Any]) -> HDSigner:
        account = derive_account(_mnemonic_from(values), values["path"])
        LOGGER.debug("Derived signer %s at %s", account.address, values["path"])
        return HDSigner(account, values["path"])

    def commands(self) -> Sequence[CommandFragment]:
        return (
            CommandFragment(("hd", "generate"), _generate, help="Create a new mnemonic", configure=_generate_args),
            CommandFragment(("hd", "address"), _address, help="Derive the address for a mnemonic", configure=_address_args),
        )


__all__ = ["DEFAULT_PATH", "HDModule", "MNEMONIC_ENV", "HDSigner", "SCHEMA", "derive_account"]
