class PoolError(Exception):
    """Base class for every failure raised by the pool engine."""


class InvalidAmount(PoolError, ValueError):
    """Zero or malformed liquidity / swap amount."""


class InvalidPriceLimit(PoolError, ValueError):
    """Swap price limit on the wrong side of the current price or outside the global bounds."""


class AlreadyInitialized(PoolError):
    pass


class NotInitialized(PoolError):
    pass


class InsufficientLiquidity(PoolError):
    """Burn exceeds the position's liquidity, or a liquidity value would go below zero."""


class InsufficientPayment(PoolError):
    """The mint callback did not raise the pool's balance by the quoted amount."""


class InsufficientInput(PoolError):
    """The swap callback did not raise the pool's balance by the amount owed."""


class Overflow(PoolError, ArithmeticError):
    """A fixed-point result does not fit its integer width."""


class OutOfBounds(PoolError, ValueError):
    """Tick or sqrt price outside the supported range."""
