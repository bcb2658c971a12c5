from __future__ import annotations

import secrets
import threading
from typing import Optional

from web3 import Web3

from .base import EntropySource


class SeededEntropySource(EntropySource):
    """In-process source whose sequencing point is the operation counter.

    Every value is derived from a private seed, so two sources built from the
    same seed and driven by the same operation order produce the same draw.
    """

    def __init__(self, seed: Optional[bytes] = None, start_marker: int = 0) -> None:
        self._seed = bytes(seed) if seed is not None else secrets.token_bytes(32)
        self._marker = int(start_marker)
        self._lock = threading.Lock()

    @classmethod
    def from_hex(cls, seed_hex: str, start_marker: int = 0) -> "SeededEntropySource":
        return cls(bytes.fromhex(seed_hex.removeprefix("0x")), start_marker=start_marker)

    @property
    def seed(self) -> bytes:
        return self._seed

    def current_marker(self) -> int:
        return self._marker

    def advance(self) -> None:
        with self._lock:
            self._marker += 1

    def ordering_value(self, marker: int) -> bytes:
        return bytes(Web3.solidity_keccak(["bytes", "uint256"], [self._seed, int(marker)]))

    def auxiliary(self) -> bytes:
        return bytes(
            Web3.solidity_keccak(["bytes", "uint256", "string"], [self._seed, self._marker, "aux"])
        )
