from .errors import InsufficientLiquidity
from .full_math import Q128, mul_div, add_delta


class Position:
    """
    One owner's share of the pool's single range.
    fee_growth_inside*_last_x128 is the fee growth seen at the last settlement, so fees
    earned before a deposit are never credited to it and fees are never counted twice.
    """
    def __init__(self, owner: str):
        self.owner = owner
        self.liquidity = 0
        self.fee_growth_inside0_last_x128 = 0
        self.fee_growth_inside1_last_x128 = 0
        self.tokens_owed0 = 0
        self.tokens_owed1 = 0

    def __repr__(self):
        return (
            f'Position({self.owner}: liquidity={self.liquidity}, '
            f'owed=({self.tokens_owed0}, {self.tokens_owed1}))'
        )

    def pending_fees(self, fee_growth_inside0_x128: int, fee_growth_inside1_x128: int) -> tuple[int, int]:
        return (
            mul_div(fee_growth_inside0_x128 - self.fee_growth_inside0_last_x128, self.liquidity, Q128),
            mul_div(fee_growth_inside1_x128 - self.fee_growth_inside1_last_x128, self.liquidity, Q128)
        )

    def settle(self, liquidity_delta: int, fee_growth_inside0_x128: int, fee_growth_inside1_x128: int):
        """
        Credit fees accrued since the last settlement, then apply liquidity_delta.
        Nothing is changed if the delta is rejected.
        """
        if liquidity_delta == 0:
            if self.liquidity == 0:
                # disallow pokes for positions that hold nothing
                raise InsufficientLiquidity(f"{self.owner} has no position to update")
            liquidity_next = self.liquidity
        else:
            liquidity_next = add_delta(self.liquidity, liquidity_delta)

        owed0, owed1 = self.pending_fees(fee_growth_inside0_x128, fee_growth_inside1_x128)

        self.liquidity = liquidity_next
        self.fee_growth_inside0_last_x128 = fee_growth_inside0_x128
        self.fee_growth_inside1_last_x128 = fee_growth_inside1_x128
        self.tokens_owed0 += owed0
        self.tokens_owed1 += owed1
        return self

    def credit(self, amount0: int, amount1: int):
        self.tokens_owed0 += amount0
        self.tokens_owed1 += amount1
        return self

    def collect(self, amount0_requested: int = None, amount1_requested: int = None) -> tuple[int, int]:
        """
        Remove up to the requested amounts (everything owed by default) from the owed balances
        and return what was removed. Never more than is owed; nothing owed is not an error.
        """
        amount0 = self.tokens_owed0 if amount0_requested is None else min(amount0_requested, self.tokens_owed0)
        amount1 = self.tokens_owed1 if amount1_requested is None else min(amount1_requested, self.tokens_owed1)
        self.tokens_owed0 -= amount0
        self.tokens_owed1 -= amount1
        return amount0, amount1
