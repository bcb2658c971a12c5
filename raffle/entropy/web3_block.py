from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from web3 import Web3

from .base import EntropySource, to_word

logger = logging.getLogger("raffle.entropy")


class Web3BlockEntropySource(EntropySource):
    """Entropy read from the block metadata of an EVM node.

    The marker is the latest block number; the ordering value of a marker is
    that block's hash, and the auxiliary value is the latest block's
    ``mixHash`` (prevRandao after the merge) falling back to its difficulty.
    """

    def __init__(self, web3: Web3) -> None:
        self._web3 = web3

    @classmethod
    def from_rpc_url(cls, rpc_url: str) -> "Web3BlockEntropySource":
        web3 = Web3(Web3.HTTPProvider(rpc_url))
        if not web3.is_connected():
            raise ConnectionError(f"Cannot connect to RPC endpoint: {rpc_url}")
        return cls(web3)

    def current_marker(self) -> int:
        return int(self._web3.eth.block_number)

    def ordering_value(self, marker: int) -> bytes:
        block = self._get_block(marker)
        return to_word(block["hash"])

    def auxiliary(self) -> bytes:
        block = self._get_block("latest")
        mix_hash: Optional[Any] = block.get("mixHash")
        if mix_hash:
            return to_word(mix_hash)
        difficulty = int(block.get("difficulty", 0))
        logger.debug("Block %s carries no mixHash; using difficulty %s", block.get("number"), difficulty)
        return difficulty.to_bytes(32, "big")

    def _get_block(self, block_identifier) -> Mapping[str, Any]:
        block = self._web3.eth.get_block(block_identifier)
        if block is None:
            raise RuntimeError(f"Block {block_identifier} not available from node")
        return block
