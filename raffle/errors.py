from __future__ import annotations


class RaffleError(Exception):
    """Base class for every failure raised by a raffle operation.

    An operation that raises leaves the raffle exactly as it was before the
    call: no state mutation, no transfer and no notification survives.
    """

    @property
    def code(self) -> str:
        return type(self).__name__


class InvalidConfiguration(RaffleError):
    pass


class AlreadyConfigured(RaffleError):
    pass


class TierCountMismatch(RaffleError):
    pass


class OversubscribedTiers(RaffleError):
    pass


class SoldOut(RaffleError):
    pass


class IncorrectPayment(RaffleError):
    pass


class Unauthorized(RaffleError):
    pass


class TransferFailed(RaffleError):
    pass


class RaffleTerminated(RaffleError):
    """Raised for any operation submitted after the raffle was retired."""


class SaleNotOpen(RaffleError):
    """Raised for purchases submitted before the prize tiers are filled."""


class ReentrantCall(RaffleError):
    """Raised when an operation is invoked while another one is still running."""


class ArithmeticOverflow(RaffleError, ArithmeticError):
    pass


class ArithmeticUnderflow(RaffleError, ArithmeticError):
    pass


class DivisionByZero(RaffleError, ZeroDivisionError):
    pass
