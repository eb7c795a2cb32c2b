"""Command tree assembled from built-in and module-contributed fragments."""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ibcrelayer.core.errors import CollisionError, SealedError, UsageError
from ibcrelayer.core.utils import get_logger

LOGGER = get_logger("relayer.commands")

BUILTIN_OWNER = "builtin"

Handler = Callable[[argparse.Namespace, Any], Optional[int]]


class ParserExit(Exception):
    """Raised instead of ``sys.exit`` when argparse finishes early (help, version)."""

    def __init__(self, status: int = 0) -> None:
        super().__init__(status)
        self.status = status


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser that reports problems as exceptions instead of exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(f"{message}\n{self.format_usage().rstrip()}")

    def exit(self, status: int = 0, message: Optional[str] = None) -> None:  # type: ignore[override]
        if message:
            self._print_message(message, sys.stderr)
        raise ParserExit(status)


@dataclass(frozen=True)
class CommandFragment:
    """One runnable command contributed to the tree.

    ``configure`` receives the leaf's argument parser to declare flags and
    positionals; ``handler`` receives the parsed namespace and the command
    context and may return an exit status.
    """

    path: Tuple[str, ...]
    handler: Handler
    help: str = ""
    configure: Optional[Callable[[argparse.ArgumentParser], None]] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        path = (self.path,) if isinstance(self.path, str) else tuple(self.path)
        if not path:
            raise ValueError("command path cannot be empty")
        for name in path:
            if not name or name.startswith("-") or any(ch.isspace() for ch in name):
                raise ValueError(f"invalid command name {name!r} in path {path}")
        object.__setattr__(self, "path", path)


@dataclass
class _Node:
    path: Tuple[str, ...]
    children: Dict[str, "_Node"] = field(default_factory=dict)
    fragment: Optional[CommandFragment] = None
    owner: Optional[str] = None

    def leaves(self) -> List["_Node"]:
        if self.fragment is not None:
            return [self]
        found: List[_Node] = []
        for child in self.children.values():
            found.extend(child.leaves())
        return found


class CommandTree:
    """Collision-checked command hierarchy with a Building -> Sealed lifecycle."""

    def __init__(self, prog: str = "ibc-relayer") -> None:
        self.prog = prog
        self._root = _Node(path=())
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        if not self._sealed:
            self._sealed = True
            LOGGER.debug("Command tree sealed with %s commands", len(self._root.leaves()))

    def insert(self, fragment: CommandFragment, owner: str = BUILTIN_OWNER) -> None:
        if self._sealed:
            raise SealedError(f"command tree is sealed; cannot add '{' '.join(fragment.path)}' from {owner}")

        node = self._root
        for name in fragment.path:
            if node.fragment is not None:
                raise CollisionError(path=node.path, owners=(node.owner or BUILTIN_OWNER, owner))
            child = node.children.get(name)
            if child is None:
                break
            node = child
        else:
            claimed = node.leaves()
            first_owner = claimed[0].owner if claimed else BUILTIN_OWNER
            raise CollisionError(path=fragment.path, owners=(first_owner or BUILTIN_OWNER, owner))

        node = self._root
        for depth, name in enumerate(fragment.path, start=1):
            node = node.children.setdefault(name, _Node(path=fragment.path[:depth]))
        node.fragment = fragment
        node.owner = owner

    def paths(self) -> List[Tuple[str, ...]]:
        return [leaf.path for leaf in self._root.leaves()]

    def _find(self, path: Tuple[str, ...]) -> Optional[_Node]:
        node = self._root
        for name in path:
            node = node.children.get(name)
            if node is None:
                return None
        return node

    def listing(self, path: Sequence[str] = ()) -> List[str]:
        node = self._find(tuple(path)) or self._root
        leaves = node.leaves()
        width = max((len(" ".join(leaf.path)) for leaf in leaves), default=0)
        return [f"{' '.join(leaf.path).ljust(width)}  {leaf.fragment.help}".rstrip() for leaf in leaves]

    def _leaf_parser(self, node: _Node) -> ArgumentParser:
        fragment = node.fragment
        parser = ArgumentParser(prog=f"{self.prog} {' '.join(node.path)}", description=fragment.help or None)
        if fragment.configure is not None:
            fragment.configure(parser)
        return parser

    def dispatch(self, argv: Sequence[str], ctx: Any) -> Optional[int]:
        """Route ``argv`` to exactly one leaf handler and run it."""
        self.seal()
        remaining = list(argv)
        node = self._root
        while remaining and node.fragment is None:
            child = node.children.get(remaining[0])
            if child is None:
                break
            node = child
            remaining.pop(0)

        if node.fragment is None:
            if remaining and remaining[0] in ("-h", "--help"):
                print(self.render_help(node.path))
                return 0
            if remaining:
                message = f"unknown command '{' '.join(node.path + (remaining[0],))}'"
            elif node.path:
                message = f"'{' '.join(node.path)}' requires a subcommand"
            else:
                message = "no command given"
            raise UsageError(message, hint=self.listing(node.path))

        parser = self._leaf_parser(node)
        try:
            namespace = parser.parse_args(remaining)
        except ParserExit as exc:
            return exc.status
        LOGGER.debug("Dispatching '%s' (owner=%s)", " ".join(node.path), node.owner)
        return self._run(node.fragment, namespace, ctx)

    def render_help(self, path: Sequence[str] = ()) -> str:
        prefix = " ".join((self.prog,) + tuple(path))
        lines = [f"usage: {prefix} <command> [args...]", "", "Available commands:"]
        lines.extend(f"  {line}" for line in self.listing(path))
        return "\n".join(lines)

    @staticmethod
    def _run(fragment: CommandFragment, namespace: argparse.Namespace, ctx: Any) -> Optional[int]:
        cancelled = getattr(ctx, "cancelled", None)

        def _cancel(signum: int, frame: Any) -> None:
            if cancelled is not None:
                cancelled.set()
            raise KeyboardInterrupt(f"received signal {signum}")

        previous = {}
        if threading.current_thread() is threading.main_thread():
            for signum in (signal.SIGINT, signal.SIGTERM):
                previous[signum] = signal.signal(signum, _cancel)
        try:
            return fragment.handler(namespace, ctx)
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)


def build_tree(
    builtins: Iterable[CommandFragment],
    modules: Iterable[Any],
    *,
    prog: str = "ibc-relayer",
) -> CommandTree:
    """Insert built-ins then each module's fragments in order; any collision aborts."""
    tree = CommandTree(prog=prog)
    for fragment in builtins:
        tree.insert(fragment, BUILTIN_OWNER)
    for module in modules:
        for fragment in module.commands():
            tree.insert(fragment, module.name)
    return tree


__all__ = [
    "ArgumentParser",
    "BUILTIN_OWNER",
    "CommandFragment",
    "CommandTree",
    "Handler",
    "ParserExit",
    "build_tree",
]
