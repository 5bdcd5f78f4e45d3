from .errors import Overflow, InsufficientLiquidity

Q96 = 2 ** 96
Q128 = 2 ** 128
MAX_UINT128 = 2 ** 128 - 1
MAX_UINT160 = 2 ** 160 - 1
MAX_UINT256 = 2 ** 256 - 1
MAX_INT256 = 2 ** 255 - 1
MIN_INT256 = -2 ** 255


def mul_div(a: int, b: int, denominator: int) -> int:
    # floor(a * b / denominator) with a 512 bit intermediate and a 256 bit result
    if denominator == 0:
        raise Overflow("mul_div: division by zero")
    result = a * b // denominator
    if result > MAX_UINT256:
        raise Overflow("mul_div: result exceeds uint256")
    return result


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    result = mul_div(a, b, denominator)
    if a * b % denominator > 0:
        if result == MAX_UINT256:
            raise Overflow("mul_div_rounding_up: result exceeds uint256")
        result += 1
    return result


def div_rounding_up(x: int, y: int) -> int:
    if y == 0:
        raise Overflow("div_rounding_up: division by zero")
    return x // y + (1 if x % y > 0 else 0)


def to_uint160(x: int) -> int:
    if not 0 <= x <= MAX_UINT160:
        raise Overflow(f"{x} does not fit in uint160")
    return x


def to_int256(x: int) -> int:
    if not MIN_INT256 <= x <= MAX_INT256:
        raise Overflow(f"{x} does not fit in int256")
    return x


def add_delta(x: int, y: int) -> int:
    """
    Add a signed liquidity delta to a uint128 liquidity value.
    Going below zero is a liquidity shortfall, not an arithmetic wrap.
    """
    z = x + y
    if z < 0:
        raise InsufficientLiquidity(f"liquidity {x} cannot absorb delta {y}")
    if z > MAX_UINT128:
        raise Overflow(f"liquidity {x} + {y} exceeds uint128")
    return z
