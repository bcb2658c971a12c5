from .config import RaffleConfig, RaffleLimits, load_limits
from .engine import Raffle
from .entropy import EntropySource, SeededEntropySource, Web3BlockEntropySource
from .errors import RaffleError
from .payout import InMemoryTransferGateway, TransferGateway
from .types import RaffleStatus

__all__ = [
    "EntropySource",
    "InMemoryTransferGateway",
    "Raffle",
    "RaffleConfig",
    "RaffleError",
    "RaffleLimits",
    "RaffleStatus",
    "SeededEntropySource",
    "TransferGateway",
    "Web3BlockEntropySource",
    "load_limits",
]
