"""Framework entry point: register modules, build the command tree, dispatch."""

from __future__ import annotations

import argparse
import logging
from typing import Iterable, Optional, Sequence

from ibcrelayer import __version__
from ibcrelayer.cli.builtins import builtin_commands
from ibcrelayer.cli.context import CommandContext
from ibcrelayer.config import resolve_home
from ibcrelayer.core.commands import ArgumentParser, CommandFragment, ParserExit, build_tree
from ibcrelayer.core.module import Module
from ibcrelayer.core.registry import Registry
from ibcrelayer.core.utils import get_logger, set_log_level

LOGGER = get_logger("relayer.cli.app")

PROG = "ibc-relayer"


def _root_parser(epilog: str) -> ArgumentParser:
    parser = ArgumentParser(
        prog=PROG,
        description="IBC relayer assembled from pluggable chain, signer and prover modules",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument("--home", default=None, help="Relayer home directory (default: $RELAYER_HOME or ~/.ibc-relayer)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Command path followed by its arguments")
    return parser


def execute(
    *modules: Module,
    argv: Optional[Sequence[str]] = None,
    builtins: Optional[Iterable[CommandFragment]] = None,
) -> int:
    """Run one command with the given modules and return its exit status.

    Registration and tree building complete before anything is parsed, so a
    collision aborts the process before any command can run. Errors raised by
    the selected handler propagate unchanged.
    """
    registry = Registry.build(modules)
    tree = build_tree(builtin_commands() if builtins is None else builtins, registry.modules(), prog=PROG)

    parser = _root_parser(tree.render_help())
    try:
        options = parser.parse_args(argv)
    except ParserExit as exc:
        return exc.status

    if options.debug:
        set_log_level(logging.DEBUG)

    ctx = CommandContext(registry=registry, home=resolve_home(options.home), debug=options.debug)
    LOGGER.debug("Using home %s with modules %s", ctx.home, ", ".join(m.name for m in registry.modules()))
    status = tree.dispatch(options.command, ctx)
    return int(status or 0)


__all__ = ["PROG", "execute"]
