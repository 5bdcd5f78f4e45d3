import copy


class Exchange:
    unique_id: str
    asset_list: list[str]
    # attributes captured by snapshot() and put back by restore(). Containers among them must
    # have their items replaced, not mutated in place: snapshot() copies them shallowly.
    state_fields: tuple[str, ...] = ()
    # lists among state_fields that are only ever appended to, snapshotted by length
    append_only_fields: tuple[str, ...] = ()

    def __init__(self):
        self.unique_id = ''
        self.asset_list = []

    def copy(self):
        return copy.deepcopy(self)

    def snapshot(self) -> dict:
        snapshot = {}
        for field in self.state_fields:
            value = getattr(self, field)
            if field in self.append_only_fields:
                snapshot[field] = len(value)
            else:
                snapshot[field] = copy.copy(value)
        return snapshot

    def restore(self, snapshot: dict) -> None:
        for field, value in snapshot.items():
            if field in self.append_only_fields:
                del getattr(self, field)[value:]
            else:
                setattr(self, field, copy.copy(value))

    def price(self, tkn: str, denomination: str = '') -> float:
        return 0

    def buy_spot(self, tkn_buy: str, tkn_sell: str, fee: float = None) -> float:
        """
        How much tkn_sell will 1 tkn_buy cost?
        """
        return 0

    def sell_spot(self, tkn_sell: str, tkn_buy: str, fee: float = None) -> float:
        """
        How much tkn_buy can be bought for 1 tkn_sell?
        """
        return 0

    def value_assets(self, assets: dict[str: float], denomination: str = '') -> float:
        """
        Calculate the value of the assets in terms of denomination.
        """
        total_value = 0
        for tkn, quantity in assets.items():
            total_value += self.price(tkn, denomination) * quantity
        return total_value
