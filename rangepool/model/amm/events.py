from dataclasses import dataclass


@dataclass(frozen=True)
class Initialize:
    sqrt_price_x96: int
    tick: int


@dataclass(frozen=True)
class Mint:
    sender: str
    owner: str
    amount: int
    amount0: int
    amount1: int


@dataclass(frozen=True)
class Burn:
    owner: str
    amount: int
    amount0: int
    amount1: int


@dataclass(frozen=True)
class Collect:
    owner: str
    recipient: str
    amount0: int
    amount1: int


@dataclass(frozen=True)
class Swap:
    sender: str
    recipient: str
    amount0: int
    amount1: int
    sqrt_price_x96: int
    liquidity: int
    tick: int
