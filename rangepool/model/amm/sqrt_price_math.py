"""
Token amounts for a liquidity change over a sqrt price interval, and the sqrt price
reached after adding or removing an amount of one token at a given liquidity.

Rounding always favours the pool: amounts paid in round up, amounts paid out round down,
and the next price rounds so that a trade never receives more than the curve allows.
"""
from .errors import InvalidAmount, InsufficientLiquidity
from .full_math import (
    Q96, MAX_UINT160, MAX_UINT256,
    mul_div, mul_div_rounding_up, div_rounding_up, to_uint160, to_int256
)


def get_amount0_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int, round_up: bool) -> int:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    if sqrt_ratio_a_x96 <= 0:
        raise InvalidAmount("sqrt price must be positive")

    numerator1 = liquidity << 96
    numerator2 = sqrt_ratio_b_x96 - sqrt_ratio_a_x96

    if round_up:
        return div_rounding_up(
            mul_div_rounding_up(numerator1, numerator2, sqrt_ratio_b_x96),
            sqrt_ratio_a_x96
        )
    return mul_div(numerator1, numerator2, sqrt_ratio_b_x96) // sqrt_ratio_a_x96


def get_amount1_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int, round_up: bool) -> int:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)
    return mul_div(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)


def amount0_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity_delta: int) -> int:
    """
    Signed token0 amount for a liquidity change between two prices.
    Positive: owed to the pool (rounded up). Negative: owed by the pool (rounded down).
    """
    if liquidity_delta < 0:
        return to_int256(-get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, -liquidity_delta, False))
    return to_int256(get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity_delta, True))


def amount1_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity_delta: int) -> int:
    if liquidity_delta < 0:
        return to_int256(-get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, -liquidity_delta, False))
    return to_int256(get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity_delta, True))


# Gets the next sqrt price given a delta of token0
# @param sqrt_p_x96 The starting price, i.e. before accounting for the token0 delta
# @param liquidity The amount of usable liquidity
# @param amount How much of token0 to add or remove from virtual reserves
# @param add Whether to add or remove the amount of token0
# @return The price after adding or removing amount, depending on add
def get_next_sqrt_price_from_amount0_rounding_up(sqrt_p_x96: int, liquidity: int, amount: int, add: bool) -> int:
    if amount == 0:
        # the result is otherwise not guaranteed to equal the input price
        return sqrt_p_x96
    numerator1 = liquidity << 96
    product = amount * sqrt_p_x96

    if add:
        if product <= MAX_UINT256:
            denominator = numerator1 + product
            if denominator <= MAX_UINT256:
                return mul_div_rounding_up(numerator1, sqrt_p_x96, denominator)
        return div_rounding_up(numerator1, numerator1 // sqrt_p_x96 + amount)

    if product > MAX_UINT256 or numerator1 <= product:
        raise InsufficientLiquidity(f"cannot remove {amount} token0 from liquidity {liquidity}")
    denominator = numerator1 - product
    return to_uint160(mul_div_rounding_up(numerator1, sqrt_p_x96, denominator))


# Gets the next sqrt price given a delta of token1
# @param sqrt_p_x96 The starting price, i.e., before accounting for the token1 delta
# @param liquidity The amount of usable liquidity
# @param amount How much of token1 to add, or remove, from virtual reserves
# @param add Whether to add, or remove, the amount of token1
# @return The price after adding or removing `amount`
def get_next_sqrt_price_from_amount1_rounding_down(sqrt_p_x96: int, liquidity: int, amount: int, add: bool) -> int:
    if add:
        if amount <= MAX_UINT160:
            quotient = (amount << 96) // liquidity
        else:
            quotient = mul_div(amount, Q96, liquidity)
        return to_uint160(sqrt_p_x96 + quotient)

    if amount <= MAX_UINT160:
        quotient = div_rounding_up(amount << 96, liquidity)
    else:
        quotient = mul_div_rounding_up(amount, Q96, liquidity)
    if sqrt_p_x96 <= quotient:
        raise InsufficientLiquidity(f"cannot remove {amount} token1 from liquidity {liquidity}")
    return sqrt_p_x96 - quotient


def get_next_sqrt_price_from_input(sqrt_p_x96: int, liquidity: int, amount_in: int, zero_for_one: bool) -> int:
    if sqrt_p_x96 <= 0:
        raise InvalidAmount("sqrt price must be positive")
    if liquidity <= 0:
        raise InvalidAmount("liquidity must be positive")
    # round to make sure that we don't pass the target price
    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_p_x96, liquidity, amount_in, True)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_p_x96, liquidity, amount_in, True)


def get_next_sqrt_price_from_output(sqrt_p_x96: int, liquidity: int, amount_out: int, zero_for_one: bool) -> int:
    if sqrt_p_x96 <= 0:
        raise InvalidAmount("sqrt price must be positive")
    if liquidity <= 0:
        raise InvalidAmount("liquidity must be positive")
    # round to make sure that we pass the target price
    if zero_for_one:
        return get_next_sqrt_price_from_amount1_rounding_down(sqrt_p_x96, liquidity, amount_out, False)
    return get_next_sqrt_price_from_amount0_rounding_up(sqrt_p_x96, liquidity, amount_out, False)
