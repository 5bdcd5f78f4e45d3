import hashlib
import logging
from dataclasses import dataclass

from .concentrated_liquidity_pool import SingleRangePoolState
from .errors import OutOfBounds
from .tick_math import MIN_TICK, MAX_TICK

logger = logging.getLogger(__name__)

# fee in hundredths of a basis point -> tick spacing the range ends must align to
FEE_TIERS = {
    100: 1,
    500: 10,
    3000: 60,
    10000: 200,
}

# stands in for the hash of the pool's deployment code; the address depends only on this and the salt
POOL_INIT_CODE_HASH = hashlib.sha256(SingleRangePoolState.__qualname__.encode()).digest()


@dataclass(frozen=True)
class PoolParameters:
    factory: str
    token0: str
    token1: str
    fee: int
    tick_lower: int
    tick_upper: int
    address: str


def pool_salt(token0: str, token1: str, fee: int, tick_lower: int, tick_upper: int) -> bytes:
    return hashlib.sha256(f'{token0}|{token1}|{fee}|{tick_lower}|{tick_upper}'.encode()).digest()


def compute_pool_address(factory: str, salt: bytes, init_code_hash: bytes = POOL_INIT_CODE_HASH) -> str:
    """
    Create2-style address: the last 20 bytes of hash(0xff ++ factory ++ salt ++ init_code_hash).
    sha256 stands in for keccak256; addresses only need to be deterministic and distinct here.
    """
    digest = hashlib.sha256(b'\xff' + factory.encode() + salt + init_code_hash).digest()
    return '0x' + digest[-20:].hex()


class PoolFactory:
    """
    Deploys single range pools. While a pool is being constructed its parameters are exposed
    as self.parameters, which the pool reads from its deployer.
    """
    def __init__(self, address: str = 'factory'):
        self.address = address
        self.parameters: PoolParameters = None
        self.pools: dict[tuple, SingleRangePoolState] = {}

    def get_pool(self, token_a: str, token_b: str, fee: int, tick_lower: int, tick_upper: int):
        token0, token1 = sorted((token_a, token_b))
        return self.pools.get((token0, token1, fee, tick_lower, tick_upper))

    def create_pool(self, token_a: str, token_b: str, fee: int, tick_lower: int, tick_upper: int) -> SingleRangePoolState:
        if token_a == token_b:
            raise ValueError("Cannot create a pool of a token with itself.")
        token0, token1 = sorted((token_a, token_b))
        if fee not in FEE_TIERS:
            raise ValueError(f"Fee {fee} is not one of the enabled tiers {sorted(FEE_TIERS)}.")
        if not MIN_TICK <= tick_lower < tick_upper <= MAX_TICK:
            raise OutOfBounds(f"Invalid tick range [{tick_lower}, {tick_upper}].")
        tick_spacing = FEE_TIERS[fee]
        if tick_lower % tick_spacing != 0 or tick_upper % tick_spacing != 0:
            raise ValueError(f"Tick values must be multiples of the tick spacing ({tick_spacing}).")
        key = (token0, token1, fee, tick_lower, tick_upper)
        if key in self.pools:
            raise ValueError(f"Pool already exists for {token0}/{token1} fee {fee} [{tick_lower}, {tick_upper}].")

        address = compute_pool_address(self.address, pool_salt(*key))
        self.parameters = PoolParameters(self.address, token0, token1, fee, tick_lower, tick_upper, address)
        try:
            pool = SingleRangePoolState(deployer=self)
        finally:
            self.parameters = None
        self.pools[key] = pool
        logger.info("Pool %s created: %s/%s fee=%d range=[%d, %d]", address, token0, token1, fee, tick_lower, tick_upper)
        return pool
