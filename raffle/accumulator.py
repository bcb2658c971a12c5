"""Rolling keccak hash chain fed once per ticket sold.

Each mix packs ``ordering_value(marker) ‖ auxiliary ‖ digest`` as three
``bytes32`` words, the same layout ``abi.encodePacked`` gives on chain. The
chain makes the final seed depend on every purchase, but it is only as
unpredictable as the entropy source behind it: this is not a randomness
beacon and must not be treated as one.
"""

from __future__ import annotations

from dataclasses import dataclass

from web3 import Web3

from .entropy.base import EntropySource, WORD_SIZE, to_word

EMPTY_DIGEST = b"\x00" * WORD_SIZE


def chain_hash(*words: bytes) -> bytes:
    packed = [to_word(w) for w in words]
    return bytes(Web3.solidity_keccak(["bytes32"] * len(packed), packed))


@dataclass
class RandomnessAccumulator:
    digest: bytes = EMPTY_DIGEST
    marker: int = 0

    def mix(self, source: EntropySource) -> bytes:
        self.digest = chain_hash(source.ordering_value(self.marker), source.auxiliary(), self.digest)
        self.marker = source.current_marker()
        return self.digest

    def finalize(self, source: EntropySource) -> bytes:
        return self.mix(source)

    def to_dict(self) -> dict:
        return {"digest": "0x" + self.digest.hex(), "marker": self.marker}

    @classmethod
    def from_dict(cls, data: dict) -> "RandomnessAccumulator":
        return cls(digest=bytes.fromhex(str(data["digest"]).removeprefix("0x")), marker=int(data["marker"]))
