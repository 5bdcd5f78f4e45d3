import copy
import logging

from mpmath import mpf

from . import events
from .agents import Agent
from .errors import (
    InvalidAmount, InvalidPriceLimit, AlreadyInitialized, NotInitialized,
    InsufficientLiquidity, InsufficientPayment, InsufficientInput, Overflow, OutOfBounds
)
from .exchange import Exchange
from .full_math import Q128, MAX_UINT256, mul_div, add_delta
from .position import Position
from .sqrt_price_math import amount0_delta, amount1_delta
from .swap_math import compute_swap_step, FEE_DENOMINATOR
from .tick_math import (
    MIN_TICK, MAX_TICK, MIN_SQRT_RATIO, MAX_SQRT_RATIO,
    get_sqrt_ratio_at_tick, get_tick_at_sqrt_ratio, sqrt_price_x96_to_price
)
from .transaction import atomic, balance_check, transfer

logger = logging.getLogger(__name__)


class SwapResult:
    """Outcome of running the swap loop, before anything is committed to the pool."""
    def __init__(self, sqrt_price_x96: int, tick: int, liquidity: int, fee_growth_global_x128: int,
                 amount_specified_remaining: int):
        self.sqrt_price_x96 = sqrt_price_x96
        self.tick = tick
        self.liquidity = liquidity
        self.fee_growth_global_x128 = fee_growth_global_x128
        self.amount_specified_remaining = amount_specified_remaining
        self.amount_calculated = 0
        self.amount0 = 0
        self.amount1 = 0
        self.steps = 0

    @property
    def partial_fill(self) -> bool:
        return self.amount_specified_remaining != 0


class SingleRangePoolState(Exchange):
    """
    Concentrated liquidity pool whose liquidity providers all share one fixed tick range.

    Deployment parameters are read from the deployer (see factory.PoolFactory), never passed
    in directly. Liquidity is active while tick_lower <= tick < tick_upper and zero otherwise.
    Every mutating call is atomic: a failure leaves the pool and all token balances as they were.
    """
    state_fields = (
        'sqrt_price_x96', 'tick', 'liquidity', 'range_liquidity',
        'fee_growth_global0_x128', 'fee_growth_global1_x128', 'positions', 'events'
    )
    append_only_fields = ('events',)

    def __init__(self, deployer):
        super().__init__()
        parameters = deployer.parameters
        if parameters is None:
            raise ValueError("Pool must be deployed through a factory with parameters set.")
        if not MIN_TICK <= parameters.tick_lower < parameters.tick_upper <= MAX_TICK:
            raise OutOfBounds(
                f"Invalid tick range [{parameters.tick_lower}, {parameters.tick_upper}]."
            )
        self.factory = parameters.factory
        self.token0 = parameters.token0
        self.token1 = parameters.token1
        self.fee = parameters.fee
        self.tick_lower = parameters.tick_lower
        self.tick_upper = parameters.tick_upper
        self.address = parameters.address
        self.unique_id = parameters.address
        self.asset_list = [self.token0, self.token1]
        self.sqrt_price_lower_x96 = get_sqrt_ratio_at_tick(self.tick_lower)
        self.sqrt_price_upper_x96 = get_sqrt_ratio_at_tick(self.tick_upper)

        # the pool's own token balances
        self.account = Agent(holdings={self.token0: 0, self.token1: 0}, unique_id=self.address)

        self.sqrt_price_x96 = 0
        self.tick = 0
        self.liquidity = 0
        self.range_liquidity = 0
        self.fee_growth_global0_x128 = 0
        self.fee_growth_global1_x128 = 0
        self.positions: dict[str, Position] = {}
        self.events: list = []

    def __repr__(self):
        return (
            f'SingleRangePool {self.token0}/{self.token1} fee {self.fee} '
            f'range [{self.tick_lower}, {self.tick_upper}] at tick {self.tick}'
        )

    @property
    def initialized(self) -> bool:
        return self.sqrt_price_x96 != 0

    def in_range(self, tick: int = None) -> bool:
        """
        Whether the range's liquidity is active at tick (the current tick by default).
        After a downward crossing of a boundary the tick is boundary - 1 while the price still
        equals the boundary's sqrt price, so the price sits one tick above its tick there.
        """
        tick = self.tick if tick is None else tick
        return self.tick_lower <= tick < self.tick_upper

    def balance0(self) -> int:
        return self.account.get_holdings(self.token0)

    def balance1(self) -> int:
        return self.account.get_holdings(self.token1)

    def fee_growth_inside(self) -> tuple[int, int]:
        """
        Fee growth per unit of liquidity inside [tick_lower, tick_upper].
        With a single range, fees only accrue while that range is active, so this is global
        fee growth. A multi-range pool would subtract per-tick "outside" growth here.
        """
        return self.fee_growth_global0_x128, self.fee_growth_global1_x128

    def get_position(self, owner: str) -> Position:
        if owner in self.positions:
            return self.positions[owner]
        return Position(owner)

    def initialize(self, sqrt_price_x96: int):
        if self.initialized:
            raise AlreadyInitialized(f"{self} is already initialized.")
        if not MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO:
            raise OutOfBounds(f"Initial sqrt price {sqrt_price_x96} outside [{MIN_SQRT_RATIO}, {MAX_SQRT_RATIO}).")
        with atomic(self):
            self.sqrt_price_x96 = sqrt_price_x96
            self.tick = get_tick_at_sqrt_ratio(sqrt_price_x96)
            self.liquidity = self.range_liquidity if self.in_range() else 0
            self.events.append(events.Initialize(sqrt_price_x96, self.tick))
        logger.info("%s: initialized at sqrt price %d", self, sqrt_price_x96)
        return self

    def _require_initialized(self):
        if not self.initialized:
            raise NotInitialized(f"{self} has no price yet.")

    def _modify_position(self, owner: str, liquidity_delta: int) -> tuple[Position, int, int]:
        # positions are replaced rather than mutated so that snapshots can share them
        position = copy.copy(self.get_position(owner))
        position.settle(liquidity_delta, *self.fee_growth_inside())
        self.positions[owner] = position
        self.range_liquidity = add_delta(self.range_liquidity, liquidity_delta)

        amount0 = amount1 = 0
        if liquidity_delta != 0:
            if self.tick < self.tick_lower:
                # range is above the current price: only token0 is needed to cross into it
                amount0 = amount0_delta(self.sqrt_price_lower_x96, self.sqrt_price_upper_x96, liquidity_delta)
            elif self.tick < self.tick_upper:
                amount0 = amount0_delta(self.sqrt_price_x96, self.sqrt_price_upper_x96, liquidity_delta)
                amount1 = amount1_delta(self.sqrt_price_lower_x96, self.sqrt_price_x96, liquidity_delta)
                self.liquidity = add_delta(self.liquidity, liquidity_delta)
            else:
                # range is below the current price: only token1
                amount1 = amount1_delta(self.sqrt_price_lower_x96, self.sqrt_price_upper_x96, liquidity_delta)
        return position, amount0, amount1

    def mint(self, sender: Agent, recipient: Agent, amount: int, data=None) -> tuple[int, int]:
        """
        Add amount of liquidity to recipient's position. The amounts owed are quoted at the
        current price and collected through sender.mint_callback; payment is verified by the
        change in the pool's balances, not by anything the callback reports.
        """
        if amount <= 0:
            raise InvalidAmount(f"Mint amount must be positive, got {amount}.")
        self._require_initialized()

        with atomic(self):
            position, amount0, amount1 = self._modify_position(recipient.unique_id, amount)
            with balance_check(self.account, {self.token0: amount0, self.token1: amount1}, InsufficientPayment):
                sender.mint_callback(self, amount0, amount1, data)
            self.events.append(events.Mint(sender.unique_id, recipient.unique_id, amount, amount0, amount1))

        logger.debug("%s: %s minted %d liquidity for %s (%d, %d)",
                     self, sender.unique_id, amount, recipient.unique_id, amount0, amount1)
        return amount0, amount1

    def burn(self, sender: Agent, amount: int) -> tuple[int, int]:
        """
        Remove amount of liquidity from sender's position. The principal is credited to the
        position's owed tokens together with any accrued fees; nothing is transferred until collect.
        burn(sender, 0) only settles fees.
        """
        if amount < 0:
            raise InvalidAmount(f"Burn amount must not be negative, got {amount}.")
        self._require_initialized()
        owner = sender.unique_id
        position = self.get_position(owner)
        if amount > position.liquidity:
            raise InsufficientLiquidity(
                f"{owner} cannot burn {amount}, position holds {position.liquidity}."
            )

        with atomic(self):
            position, amount0, amount1 = self._modify_position(owner, -amount)
            amount0, amount1 = -amount0, -amount1
            if amount0 > 0 or amount1 > 0:
                position.credit(amount0, amount1)
            self.events.append(events.Burn(owner, amount, amount0, amount1))

        logger.debug("%s: %s burned %d liquidity (%d, %d)", self, owner, amount, amount0, amount1)
        return amount0, amount1

    def collect(
            self,
            sender: Agent,
            recipient: Agent,
            amount0_requested: int = None,
            amount1_requested: int = None
    ) -> tuple[int, int]:
        """
        Pay out sender's owed tokens to recipient, capped at what is owed (everything by default).
        """
        for requested in (amount0_requested, amount1_requested):
            if requested is not None and requested < 0:
                raise InvalidAmount(f"Requested amount must not be negative, got {requested}.")
        owner = sender.unique_id

        with atomic(self):
            amount0 = amount1 = 0
            if owner in self.positions:
                position = copy.copy(self.positions[owner])
                amount0, amount1 = position.collect(amount0_requested, amount1_requested)
                self.positions[owner] = position
            if amount0 > 0:
                transfer(self.token0, self.account, recipient, amount0)
            if amount1 > 0:
                transfer(self.token1, self.account, recipient, amount1)
            self.events.append(events.Collect(owner, recipient.unique_id, amount0, amount1))

        return amount0, amount1

    def _validate_price_limit(self, zero_for_one: bool, sqrt_price_limit_x96: int):
        if zero_for_one:
            valid = MIN_SQRT_RATIO < sqrt_price_limit_x96 < self.sqrt_price_x96
        else:
            valid = self.sqrt_price_x96 < sqrt_price_limit_x96 < MAX_SQRT_RATIO
        if not valid:
            raise InvalidPriceLimit(
                f"Price limit {sqrt_price_limit_x96} invalid for a {'zero for one' if zero_for_one else 'one for zero'} "
                f"swap at sqrt price {self.sqrt_price_x96}."
            )

    def _next_boundary(self, tick: int, zero_for_one: bool):
        # the only initialized ticks are the two ends of the range
        if zero_for_one:
            if tick >= self.tick_upper:
                return self.tick_upper
            if tick >= self.tick_lower:
                return self.tick_lower
        else:
            if tick < self.tick_lower:
                return self.tick_lower
            if tick < self.tick_upper:
                return self.tick_upper
        return None

    def _compute_swap(self, zero_for_one: bool, amount_specified: int, sqrt_price_limit_x96: int) -> SwapResult:
        exact_input = amount_specified > 0
        state = SwapResult(
            sqrt_price_x96=self.sqrt_price_x96,
            tick=self.tick,
            liquidity=self.liquidity,
            fee_growth_global_x128=self.fee_growth_global0_x128 if zero_for_one else self.fee_growth_global1_x128,
            amount_specified_remaining=amount_specified
        )

        while state.amount_specified_remaining != 0 and state.sqrt_price_x96 != sqrt_price_limit_x96:
            tick_next = self._next_boundary(state.tick, zero_for_one)
            if tick_next is None:
                # out of range with nothing left to trade against: partial fill
                break
            sqrt_price_start_x96 = state.sqrt_price_x96
            sqrt_price_next_x96 = get_sqrt_ratio_at_tick(tick_next)

            # compute values to swap to the boundary, price limit, or point where input/output amount is exhausted
            state.sqrt_price_x96, amount_in, amount_out, fee_amount = compute_swap_step(
                state.sqrt_price_x96,
                (
                    sqrt_price_limit_x96 if
                    (sqrt_price_next_x96 < sqrt_price_limit_x96 if zero_for_one else sqrt_price_next_x96 > sqrt_price_limit_x96)
                    else sqrt_price_next_x96
                ),
                state.liquidity,
                state.amount_specified_remaining,
                self.fee
            )
            state.steps += 1

            if exact_input:
                state.amount_specified_remaining -= amount_in + fee_amount
                state.amount_calculated -= amount_out
            else:
                state.amount_specified_remaining += amount_out
                state.amount_calculated += amount_in + fee_amount

            # without liquidity the step consumed nothing and there is no fee to distribute
            if state.liquidity > 0:
                state.fee_growth_global_x128 += mul_div(fee_amount, Q128, state.liquidity)

            logger.debug(
                "%s: step %d to %d in=%d out=%d fee=%d liquidity=%d",
                self, state.steps, state.sqrt_price_x96, amount_in, amount_out, fee_amount, state.liquidity
            )

            if state.sqrt_price_x96 == sqrt_price_next_x96:
                # crossing a range boundary switches the range's liquidity on or off
                liquidity_net = self.range_liquidity if tick_next == self.tick_lower else -self.range_liquidity
                if zero_for_one:
                    liquidity_net = -liquidity_net
                state.liquidity = add_delta(state.liquidity, liquidity_net)
                state.tick = tick_next - 1 if zero_for_one else tick_next
            elif state.sqrt_price_x96 != sqrt_price_start_x96:
                state.tick = get_tick_at_sqrt_ratio(state.sqrt_price_x96)

        if state.fee_growth_global_x128 > MAX_UINT256:
            raise Overflow("fee growth exceeds uint256")

        if zero_for_one == exact_input:
            state.amount0 = amount_specified - state.amount_specified_remaining
            state.amount1 = state.amount_calculated
        else:
            state.amount0 = state.amount_calculated
            state.amount1 = amount_specified - state.amount_specified_remaining
        return state

    def quote_swap(self, zero_for_one: bool, amount_specified: int, sqrt_price_limit_x96: int) -> SwapResult:
        """
        Run the swap loop against the current state without committing or moving any tokens.
        """
        if amount_specified == 0:
            raise InvalidAmount("Swap amount must not be zero.")
        self._require_initialized()
        self._validate_price_limit(zero_for_one, sqrt_price_limit_x96)
        return self._compute_swap(zero_for_one, amount_specified, sqrt_price_limit_x96)

    def swap(
            self,
            sender: Agent,
            recipient: Agent,
            zero_for_one: bool,
            amount_specified: int,
            sqrt_price_limit_x96: int,
            data=None
    ) -> tuple[int, int]:
        """
        Swap token0 for token1 (zero_for_one) or the reverse.
        amount_specified > 0 is an exact input, < 0 an exact output.
        Returns the pool's deltas: positive amounts were paid in by sender, negative amounts
        were paid out to recipient. Stops early, as a partial fill, if price leaves the range.
        """
        if amount_specified == 0:
            raise InvalidAmount("Swap amount must not be zero.")
        self._require_initialized()
        self._validate_price_limit(zero_for_one, sqrt_price_limit_x96)

        with atomic(self):
            result = self._compute_swap(zero_for_one, amount_specified, sqrt_price_limit_x96)

            self.sqrt_price_x96 = result.sqrt_price_x96
            self.tick = result.tick
            self.liquidity = result.liquidity
            if zero_for_one:
                self.fee_growth_global0_x128 = result.fee_growth_global_x128
            else:
                self.fee_growth_global1_x128 = result.fee_growth_global_x128

            amount0, amount1 = result.amount0, result.amount1
            if zero_for_one:
                if amount1 < 0:
                    transfer(self.token1, self.account, recipient, -amount1)
                with balance_check(self.account, {self.token0: amount0}, InsufficientInput):
                    sender.swap_callback(self, amount0, amount1, data)
            else:
                if amount0 < 0:
                    transfer(self.token0, self.account, recipient, -amount0)
                with balance_check(self.account, {self.token1: amount1}, InsufficientInput):
                    sender.swap_callback(self, amount0, amount1, data)

            self.events.append(events.Swap(
                sender.unique_id, recipient.unique_id, amount0, amount1,
                self.sqrt_price_x96, self.liquidity, self.tick
            ))

        if result.partial_fill:
            logger.info("%s: partial fill, %d of %d unfilled", self, result.amount_specified_remaining, amount_specified)
        return amount0, amount1

    def price(self, tkn: str, denomination: str = '') -> mpf:
        if tkn not in self.asset_list:
            raise ValueError(f"Invalid token symbol. Token symbol must be {' or '.join(self.asset_list)}.")
        if denomination and denomination not in self.asset_list:
            raise ValueError(f"Invalid denomination symbol. Denomination symbol must be {' or '.join(self.asset_list)}.")
        if tkn == denomination:
            return mpf(1)
        self._require_initialized()
        price0 = sqrt_price_x96_to_price(self.sqrt_price_x96)
        return price0 if tkn == self.token0 else 1 / price0

    def buy_spot(self, tkn_buy: str, tkn_sell: str, fee: float = None) -> mpf:
        if fee is None:
            fee = mpf(self.fee) / FEE_DENOMINATOR
        return self.price(tkn_buy, tkn_sell) / (1 - fee)

    def sell_spot(self, tkn_sell: str, tkn_buy: str, fee: float = None) -> mpf:
        if fee is None:
            fee = mpf(self.fee) / FEE_DENOMINATOR
        return self.price(tkn_sell, tkn_buy) * (1 - fee)
