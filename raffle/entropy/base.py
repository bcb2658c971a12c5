from __future__ import annotations

import abc

WORD_SIZE = 32


def to_word(value: bytes) -> bytes:
    """Left-pad (or reject) a byte string so it packs as a ``bytes32``."""
    value = bytes(value)
    if len(value) > WORD_SIZE:
        raise ValueError(f"entropy value longer than {WORD_SIZE} bytes")
    return value.rjust(WORD_SIZE, b"\x00")


class EntropySource(abc.ABC):
    """Yields an unpredictable value per sequencing step.

    The raffle only ever asks for the current ordering marker, the value tied
    to a marker, and a fresh auxiliary value. None of these are secret to the
    host that supplies them: the guarantee is that a single purchaser cannot
    know the final seed before the whole purchase sequence has happened.
    """

    @abc.abstractmethod
    def current_marker(self) -> int:
        """Return the current sequencing point (block number, op counter...)."""

    @abc.abstractmethod
    def ordering_value(self, marker: int) -> bytes:
        """Return the 32-byte value bound to ``marker``."""

    @abc.abstractmethod
    def auxiliary(self) -> bytes:
        """Return 32 bytes of auxiliary entropy for the current point."""

    def advance(self) -> None:
        """Hook called once per submitted operation; sources tied to an
        external ledger can ignore it because the ledger advances itself."""
        return None
