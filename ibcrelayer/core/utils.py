"""Utility helpers shared across relayer core modules."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from web3 import Web3


def get_logger(name: str = "relayer") -> logging.Logger:
    """Return a configured logger that prints to stderr."""
    logger = logging.getLogger(name)
    if not logger.handlers and not logging.getLogger("relayer").handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        handler.setFormatter(formatter)
        root = logging.getLogger("relayer")
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return logger


def set_log_level(level: int) -> None:
    """Adjust the level of every ``relayer.*`` logger at once."""
    get_logger().setLevel(level)


def load_json_file(path: Path) -> Dict[str, Any]:
    """Load JSON data from ``path``."""
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def ensure_web3_connected(web3: Web3, *, expected_chain_id: Optional[int] = None) -> None:
    """Validate that ``web3`` is connected and optionally matches the expected chain id."""
    if not web3.is_connected():
        raise ConnectionError("Failed to connect to the configured RPC endpoint")
    if expected_chain_id is not None and web3.eth.chain_id != expected_chain_id:
        raise ValueError(f"RPC chain ID mismatch: expected {expected_chain_id}, got {web3.eth.chain_id}")


__all__ = [
    "ensure_web3_connected",
    "get_logger",
    "load_json_file",
    "set_log_level",
]
