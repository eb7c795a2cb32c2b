"""Commands every relayer build ships with, independent of the modules supplied."""

from __future__ import annotations

import argparse
import json
from contextlib import closing
from pathlib import Path
from typing import List

from ibcrelayer.cli.context import CommandContext
from ibcrelayer.config import ConfigError, default_config, parse_chain_entry, validate_entry
from ibcrelayer.core.commands import CommandFragment
from ibcrelayer.core.module import Role
from ibcrelayer.core.utils import get_logger, load_json_file

LOGGER = get_logger("relayer.cli.builtins")


def _chain_id_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("chain_id", help="Chain identifier as configured in the relayer home")


def _config_init(args: argparse.Namespace, ctx: CommandContext) -> None:
    path = ctx.config_file
    if path.exists():
        raise ConfigError(f"Config already exists: {path}")
    ctx.save_config(default_config())
    print(f"Created config at {path}")


def _config_show(args: argparse.Namespace, ctx: CommandContext) -> None:
    print(json.dumps(ctx.load_config().to_dict(), indent=2))


def _chains_add_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", type=Path, help="JSON file describing the chain, signer and prover")


def _chains_add(args: argparse.Namespace, ctx: CommandContext) -> None:
    try:
        data = load_json_file(args.file)
    except FileNotFoundError as exc:
        raise ConfigError(f"Chain file not found: {args.file}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Chain file contains invalid JSON: {args.file}") from exc

    entry = parse_chain_entry(data, context=str(args.file))
    validate_entry(entry, ctx.registry)
    config = ctx.load_config().with_chain(entry)
    ctx.save_config(config)
    LOGGER.debug("Added chain %s from %s", entry.chain_id, args.file)
    print(f"Added chain {entry.chain_id}")


def _chains_list(args: argparse.Namespace, ctx: CommandContext) -> None:
    config = ctx.load_config()
    if not config.chains:
        print("No chains configured")
        return
    for entry in config.chains:
        kinds = []
        for name in ("chain", "signer", "prover"):
            section = entry.section(name)
            kinds.append(f"{name}={section['type'] if section else '-'}")
        print(f"{entry.chain_id}  {' '.join(kinds)}")


def _chains_show(args: argparse.Namespace, ctx: CommandContext) -> None:
    print(json.dumps(ctx.chain_entry(args.chain_id).to_dict(), indent=2))


def _modules_list(args: argparse.Namespace, ctx: CommandContext) -> None:
    for role in Role:
        print(f"{role.value}:")
        names = ctx.registry.identifiers(role)
        for name in names:
            print(f"  {name}")
        if not names:
            print("  (none)")


def _modules_show_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("role", choices=[role.value for role in Role])
    parser.add_argument("name", help="Module identifier, e.g. 'ethereum'")


def _modules_show(args: argparse.Namespace, ctx: CommandContext) -> None:
    role = Role(args.role)
    module = ctx.registry.resolve(role, args.name)
    print(f"{role.value} module '{module.name}'")
    for line in module.schema(role).describe():
        print(f"  {line}")


def _query_height(args: argparse.Namespace, ctx: CommandContext) -> None:
    with closing(ctx.build(args.chain_id, Role.CHAIN)) as chain:
        print(chain.latest_height())


def _keys_show(args: argparse.Namespace, ctx: CommandContext) -> None:
    signer = ctx.build(args.chain_id, Role.SIGNER)
    print(signer.address)


def builtin_commands() -> List[CommandFragment]:
    return [
        CommandFragment(("config", "init"), _config_init, help="Create a default config in the home directory"),
        CommandFragment(("config", "show"), _config_show, help="Print the current config"),
        CommandFragment(("chains", "add"), _chains_add, help="Add a chain from a JSON file", configure=_chains_add_args),
        CommandFragment(("chains", "list"), _chains_list, help="List configured chains"),
        CommandFragment(("chains", "show"), _chains_show, help="Print one chain's config", configure=_chain_id_arg),
        CommandFragment(("modules", "list"), _modules_list, help="List registered modules by role"),
        CommandFragment(
            ("modules", "show"), _modules_show, help="Describe a module's configuration", configure=_modules_show_args
        ),
        CommandFragment(("query", "height"), _query_height, help="Print a chain's latest height", configure=_chain_id_arg),
        CommandFragment(("keys", "show"), _keys_show, help="Print the signer address for a chain", configure=_chain_id_arg),
    ]


__all__ = ["builtin_commands"]
