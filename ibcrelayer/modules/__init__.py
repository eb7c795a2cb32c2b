"""Capability modules bundled with the relayer."""

from .ethereum import EthereumModule
from .hd import HDModule
from .mock import MockProverModule

__all__ = ["EthereumModule", "HDModule", "MockProverModule"]
