from mpmath import mp, mpf

from .errors import OutOfBounds
from .full_math import Q96, MAX_UINT256
mp.dps = 50

TICK_INCREMENT = mpf('1.0001')
MIN_TICK = -887272
MAX_TICK = -MIN_TICK
# get_sqrt_ratio_at_tick(MIN_TICK) and get_sqrt_ratio_at_tick(MAX_TICK)
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342


def tick_to_price(tick: int or mpf) -> mpf:
    return TICK_INCREMENT ** tick


def price_to_tick(price: float or mpf, tick_spacing: int = 0) -> int:
    raw_tick = int(mp.floor(mp.log(mpf(price)) / mp.log(TICK_INCREMENT)))
    if tick_spacing == 0:
        return raw_tick
    return raw_tick // tick_spacing * tick_spacing


def encode_price_sqrt(reserve1, reserve0=1) -> int:
    """
    Q64.96 sqrt price for a pool holding reserve1 of token1 against reserve0 of token0,
    i.e. the price of token0 denominated in token1.
    """
    return int(mp.floor(mp.sqrt(mpf(reserve1) / mpf(reserve0)) * Q96))


def sqrt_price_x96_to_price(sqrt_price_x96: int) -> mpf:
    return (mpf(sqrt_price_x96) / Q96) ** 2


def get_sqrt_ratio_at_tick(tick: int) -> int:
    abs_tick = abs(tick)
    if abs_tick > MAX_TICK:
        raise OutOfBounds(f"tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")

    if abs_tick & 1:
        ratio = 0xfffcb933bd6fad37aa2d162d1a594001
    else:
        ratio = 0x100000000000000000000000000000000

    if abs_tick & 2**1:
        ratio = (ratio * 0xfff97272373d413259a46990580e213a) >> 128
    if abs_tick & 2**2:
        ratio = (ratio * 0xfff2e50f5f656932ef12357cf3c7fdcc) >> 128
    if abs_tick & 2**3:
        ratio = (ratio * 0xffe5caca7e10e4e61c3624eaa0941cd0) >> 128
    if abs_tick & 2**4:
        ratio = (ratio * 0xffcb9843d60f6159c9db58835c926644) >> 128
    if abs_tick & 2**5:
        ratio = (ratio * 0xff973b41fa98c081472e6896dfb254c0) >> 128
    if abs_tick & 2**6:
        ratio = (ratio * 0xff2ea16466c96a3843ec78b326b52861) >> 128
    if abs_tick & 2**7:
        ratio = (ratio * 0xfe5dee046a99a2a811c461f1969c3053) >> 128
    if abs_tick & 2**8:
        ratio = (ratio * 0xfcbe86c7900a88aedcffc83b479aa3a4) >> 128
    if abs_tick & 2**9:
        ratio = (ratio * 0xf987a7253ac413176f2b074cf7815e54) >> 128
    if abs_tick & 2**10:
        ratio = (ratio * 0xf3392b0822b70005940c7a398e4b70f3) >> 128
    if abs_tick & 2**11:
        ratio = (ratio * 0xe7159475a2c29b7443b29c7fa6e889d9) >> 128
    if abs_tick & 2**12:
        ratio = (ratio * 0xd097f3bdfd2022b8845ad8f792aa5825) >> 128
    if abs_tick & 2**13:
        ratio = (ratio * 0xa9f746462d870fdf8a65dc1f90e061e5) >> 128
    if abs_tick & 2**14:
        ratio = (ratio * 0x70d869a156d2a1b890bb3df62baf32f7) >> 128
    if abs_tick & 2**15:
        ratio = (ratio * 0x31be135f97d08fd981231505542fcfa6) >> 128
    if abs_tick & 2**16:
        ratio = (ratio * 0x9aa508b5b7a84e1c677de54f3e99bc9) >> 128
    if abs_tick & 2**17:
        ratio = (ratio * 0x5d6af8dedb81196699c329225ee604) >> 128
    if abs_tick & 2**18:
        ratio = (ratio * 0x2216e584f5fa1ea926041bedfe98) >> 128
    if abs_tick & 2**19:
        ratio = (ratio * 0x48a170391f7dc42444e8fa2) >> 128

    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q64.96, rounding up so get_tick_at_sqrt_ratio of the result is always tick
    sqrt_price = (ratio >> 32) + (1 if ratio % (1 << 32) != 0 else 0)
    return sqrt_price


def get_tick_at_sqrt_ratio(sqrt_price_x96: int) -> int:
    """
    Greatest tick whose sqrt price does not exceed sqrt_price_x96.
    """
    if sqrt_price_x96 < MIN_SQRT_RATIO or sqrt_price_x96 > MAX_SQRT_RATIO:
        raise OutOfBounds(f"sqrt price {sqrt_price_x96} outside [{MIN_SQRT_RATIO}, {MAX_SQRT_RATIO}]")
    if sqrt_price_x96 == MAX_SQRT_RATIO:
        return MAX_TICK

    ratio = sqrt_price_x96 << 32
    r = ratio
    msb = 0

    if r > 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF:
        msb += 128
        r >>= 128
    if r > 0xFFFFFFFFFFFFFFFF:
        msb += 64
        r >>= 64
    if r > 0xFFFFFFFF:
        msb += 32
        r >>= 32
    if r > 0xFFFF:
        msb += 16
        r >>= 16
    if r > 0xFF:
        msb += 8
        r >>= 8
    if r > 0xF:
        msb += 4
        r >>= 4
    if r > 0x3:
        msb += 2
        r >>= 2
    if r > 0x1:
        msb += 1

    if msb >= 128:
        r = ratio >> (msb - 127)
    else:
        r = ratio << (127 - msb)

    log_2 = (msb - 128) << 64

    for i in range(63, 49, -1):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << i
        r >>= f

    log_sqrt10001 = log_2 * 255738958999603826347141  # Q128.128

    tick_low = (log_sqrt10001 - 3402992956809132418596140100660247210) >> 128
    tick_high = (log_sqrt10001 + 291339464771989622907027621153398088495) >> 128

    if tick_low == tick_high:
        return tick_low
    return tick_high if get_sqrt_ratio_at_tick(tick_high) <= sqrt_price_x96 else tick_low
