from .transaction import transfer


class Agent:
    """
    An account holding token balances. Acts as the token ledger for the pool and its users,
    and as the payment callee of the pool: mint_callback and swap_callback are called by the
    pool while a mint or swap is in progress and must raise the pool's balances by what is owed.
    """
    unique_id: str = ''

    def __init__(self,
                 holdings: dict[str: int] = None,
                 unique_id: str = 'agent',
                 enforce_holdings: bool = True
                 ):
        """
        holdings should be in the form of:
        {
            asset_name: quantity
        }
        If enforce_holdings is False, validate_holdings will always return True
        and the agent can pay any amount.
        """
        self.holdings = {tkn: val for tkn, val in holdings.items()} if holdings is not None else {}
        self.asset_list = list(self.holdings.keys())
        self.unique_id = unique_id
        self.enforce_holdings = enforce_holdings

    def __repr__(self):
        return (
                f'Agent: {self.unique_id}\n'
                f'********************************\n'
                f'holdings: (\n\n' +
                f'\n'.join([f'    *{tkn}*: {self.holdings[tkn]}\n' for tkn in self.holdings]) + ')\n'
        )

    def copy(self):
        copy_self = Agent(
            holdings={k: v for k, v in self.holdings.items()},
            unique_id=self.unique_id,
            enforce_holdings=self.enforce_holdings
        )
        copy_self.asset_list = [tkn for tkn in self.asset_list]
        return copy_self

    def get_holdings(self, tkn) -> int:
        if tkn not in self.holdings:
            return 0
        return self.holdings[tkn]

    def validate_holdings(self, tkn, amt=None) -> bool:
        if not self.enforce_holdings:
            return True
        if amt is None:
            return self.get_holdings(tkn) > 0
        else:
            return self.get_holdings(tkn) >= amt

    def transfer_to(self, tkn: str, amt: int) -> None:
        if tkn not in self.holdings:
            self.holdings[tkn] = 0
            self.asset_list.append(tkn)
        self.holdings[tkn] += amt

    def transfer_from(self, tkn: str, amt: int) -> None:
        if not self.validate_holdings(tkn, amt):
            raise ValueError(f"Agent {self.unique_id} does not have enough {tkn} to transfer {amt}")
        if tkn not in self.holdings:
            self.holdings[tkn] = 0
            self.asset_list.append(tkn)
        self.holdings[tkn] -= amt

    def mint_callback(self, pool, amount0_owed: int, amount1_owed: int, data=None) -> None:
        if amount0_owed > 0:
            transfer(pool.token0, self, pool.account, amount0_owed)
        if amount1_owed > 0:
            transfer(pool.token1, self, pool.account, amount1_owed)

    def swap_callback(self, pool, amount0_delta: int, amount1_delta: int, data=None) -> None:
        """
        Deltas are from the pool's point of view: the positive one is owed by the swapper.
        """
        if amount0_delta > 0:
            transfer(pool.token0, self, pool.account, amount0_delta)
        elif amount1_delta > 0:
            transfer(pool.token1, self, pool.account, amount1_delta)
