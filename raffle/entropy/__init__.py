from .base import EntropySource
from .seeded import SeededEntropySource
from .web3_block import Web3BlockEntropySource

__all__ = [
    "EntropySource",
    "SeededEntropySource",
    "Web3BlockEntropySource",
]
