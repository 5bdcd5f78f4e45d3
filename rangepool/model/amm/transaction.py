"""
All-or-nothing execution of pool calls.

Every token movement goes through transfer(), which records it in the journal of the
innermost atomic() block, and every atomic() block saves a snapshot of its state there.
A failing block reverses its transfers and restores every snapshot it holds; a succeeding
block hands both to the enclosing block, so an outer failure also undoes calls re-entered
from a callback, including calls on other pools.
"""
import logging
from contextlib import contextmanager
from contextvars import ContextVar

logger = logging.getLogger(__name__)

_active_journal: ContextVar = ContextVar('active_journal', default=None)


class Journal:
    def __init__(self, parent: 'Journal' = None):
        self.parent = parent
        self.transfers = []
        self.snapshots = []

    def save(self, state):
        self.snapshots.append((state, state.snapshot()))

    def record(self, tkn: str, sender, recipient, amount: int):
        self.transfers.append((tkn, sender, recipient, amount))

    def rollback(self):
        for tkn, sender, recipient, amount in reversed(self.transfers):
            recipient.holdings[tkn] -= amount
            sender.holdings[tkn] += amount
        # newest first, so the oldest snapshot of a state is the one that sticks
        for state, snapshot in reversed(self.snapshots):
            state.restore(snapshot)
        self.transfers = []
        self.snapshots = []

    def commit(self):
        if self.parent is not None:
            self.parent.transfers.extend(self.transfers)
            self.parent.snapshots.extend(self.snapshots)
        self.transfers = []
        self.snapshots = []


def transfer(tkn: str, sender, recipient, amount: int) -> None:
    """
    Move amount of tkn between two accounts, or fail without moving anything.
    """
    if amount < 0:
        raise ValueError(f"Cannot transfer a negative amount ({amount}) of {tkn}")
    sender.transfer_from(tkn, amount)
    recipient.transfer_to(tkn, amount)
    journal = _active_journal.get()
    if journal is not None:
        journal.record(tkn, sender, recipient, amount)


@contextmanager
def atomic(state):
    """
    state must provide snapshot() and restore(snapshot).
    """
    journal = Journal(parent=_active_journal.get())
    journal.save(state)
    token = _active_journal.set(journal)
    try:
        yield journal
    except Exception as e:
        journal.rollback()
        logger.warning("%s: call rolled back (%s: %s)", state, type(e).__name__, e)
        raise
    else:
        journal.commit()
    finally:
        _active_journal.reset(token)


@contextmanager
def balance_check(account, required: dict[str: int], error: type):
    """
    Record account's balances, run the block (the payment callback), then require each
    balance to have grown by at least the required amount. Only observed balances count.
    """
    before = {tkn: account.get_holdings(tkn) for tkn, amount in required.items() if amount > 0}
    yield
    for tkn, balance_before in before.items():
        balance_after = account.get_holdings(tkn)
        if balance_after < balance_before + required[tkn]:
            raise error(
                f"expected {tkn} balance of {account.unique_id} to grow by {required[tkn]}, "
                f"got {balance_after - balance_before}"
            )
