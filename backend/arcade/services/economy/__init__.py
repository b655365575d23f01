"""Account economy services: credit purchases and balance movement.

Each operation runs as one transaction whose debit is a conditional UPDATE
guarded on the current balance, so routes never read-then-write balances.
"""

from .ledger import (
    LedgerError,
    buy_credits,
    credits_cost,
    give_to_all,
    transfer,
    with_fee,
)

__all__ = [
    'LedgerError',
    'buy_credits',
    'credits_cost',
    'give_to_all',
    'transfer',
    'with_fee',
]
