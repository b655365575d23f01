from decimal import Decimal, InvalidOperation
from flask import current_app
from arcade import db
from arcade.models import Account

# 1000 credits cost 0.01 cash
CREDITS_PER_CENT = 1000
CENT = Decimal('0.01')
FEE_PERCENT = 1


class LedgerError(Exception):
    """A rejected economy operation, carrying the HTTP status to answer with."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.message = message
        self.status = status


def _whole(value, field: str, allow_negative: bool = False) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise LedgerError(f'{field} must be a whole number')
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise LedgerError(f'{field} must be a whole number')
    if value < 0 and not allow_negative:
        raise LedgerError(f'{field} cannot be negative')
    return value


def _money(value, field: str, allow_negative: bool = False) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, bool):
        raise LedgerError(f'{field} must be a number')
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise LedgerError(f'{field} must be a number')
    if not amount.is_finite():
        raise LedgerError(f'{field} must be a number')
    if amount < 0 and not allow_negative:
        raise LedgerError(f'{field} cannot be negative')
    return amount


def credits_cost(amount: int) -> Decimal:
    """Cash price of ``amount`` credits."""
    return Decimal(amount) / CREDITS_PER_CENT * CENT


def with_fee(value):
    """Amount the sender pays for moving ``value``: +1%, rounded up for counts."""
    if isinstance(value, Decimal):
        return value * (100 + FEE_PERCENT) / 100
    return -(-value * (100 + FEE_PERCENT) // 100)


def _find(username: str) -> Account:
    account = Account.query.filter_by(username=username).first()
    if account is None:
        raise LedgerError('Account not found', 404)
    return account


def buy_credits(username: str, amount) -> Account:
    amount = _whole(amount, 'amount')
    if amount <= 0:
        raise LedgerError('amount must be positive')
    cost = credits_cost(amount)
    account = _find(username)

    debited = Account.query.filter(
        Account.id == account.id,
        Account.cash_balance >= cost,
    ).update({
        Account.cash_balance: Account.cash_balance - cost,
        Account.credits: Account.credits + amount,
    }, synchronize_session=False)
    if not debited:
        db.session.rollback()
        raise LedgerError('Insufficient cash balance')
    db.session.commit()
    current_app.logger.info(f"[buy-credits] user={username} credits={amount} cost={cost}")
    return account


def transfer(from_user: str, to_user: str, credits=None, plays=None, cash=None) -> dict:
    """Move balances between two accounts, charging the sender the fee.

    The sender's debit only applies while every balance still covers the
    amount plus fee; the receiver's credit shares the same transaction.
    """
    if from_user == to_user:
        raise LedgerError('Cannot transfer to yourself')
    credits = _whole(credits, 'credits')
    plays = _whole(plays, 'plays')
    cash = _money(cash, 'cash')

    found = {a.username: a for a in Account.query.filter(Account.username.in_([from_user, to_user])).all()}
    sender = found.get(from_user)
    receiver = found.get(to_user)
    if sender is None or receiver is None:
        raise LedgerError('Account not found', 404)

    credits_needed = with_fee(credits)
    plays_needed = with_fee(plays)
    cash_needed = with_fee(cash)

    debited = Account.query.filter(
        Account.id == sender.id,
        Account.credits >= credits_needed,
        Account.plays >= plays_needed,
        Account.cash_balance >= cash_needed,
    ).update({
        Account.credits: Account.credits - credits_needed,
        Account.plays: Account.plays - plays_needed,
        Account.cash_balance: Account.cash_balance - cash_needed,
    }, synchronize_session=False)
    if not debited:
        db.session.rollback()
        raise LedgerError('Insufficient funds (including 1% fee)')

    Account.query.filter(Account.id == receiver.id).update({
        Account.credits: Account.credits + credits,
        Account.plays: Account.plays + plays,
        Account.cash_balance: Account.cash_balance + cash,
    }, synchronize_session=False)
    db.session.commit()
    current_app.logger.info(
        f"[transfer] from={from_user} to={to_user} credits={credits} plays={plays} cash={cash}"
    )
    return {'credits': credits, 'plays': plays, 'cash': float(cash)}


def give_to_all(credits=None, plays=None, cash=None) -> int:
    credits = _whole(credits, 'credits', allow_negative=True)
    plays = _whole(plays, 'plays', allow_negative=True)
    cash = _money(cash, 'cash', allow_negative=True)

    Account.query.update({
        Account.credits: Account.credits + credits,
        Account.plays: Account.plays + plays,
        Account.cash_balance: Account.cash_balance + cash,
    }, synchronize_session=False)
    db.session.commit()
    total = Account.query.count()
    current_app.logger.info(f"[give-all] accounts={total} credits={credits} plays={plays} cash={cash}")
    return total
