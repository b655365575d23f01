from decimal import Decimal
import pytest
from arcade import db
from arcade.models import Account
from arcade.services.economy import LedgerError, buy_credits, credits_cost, give_to_all, transfer, with_fee


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield


def _account(username, **balances):
    account = Account(username=username, ip_address='unknown', **balances)
    db.session.add(account)
    db.session.commit()
    return account


@pytest.mark.parametrize('amount,needed', [(0, 0), (1, 2), (50, 51), (100, 101), (199, 201), (200, 202)])
def test_fee_rounds_up_whole_amounts(amount, needed):
    assert with_fee(amount) == needed


def test_fee_on_cash_is_exact():
    assert with_fee(Decimal('0.5')) == Decimal('0.505')
    assert with_fee(Decimal('10')) == Decimal('10.1')


def test_credits_cost():
    assert credits_cost(1000) == Decimal('0.01')
    assert credits_cost(500) == Decimal('0.005')


def test_new_account_defaults(app_ctx):
    account = _account('FRESH')
    assert account.credits == 100
    assert account.plays == 10
    assert account.cash_balance == 0
    assert account.completed_tasks == {}
    assert account.check_password('whatever')


def test_password_hashes_are_not_plaintext(app_ctx):
    account = _account('HASHED')
    account.set_password('s3cret')
    db.session.commit()
    assert account.password_hash != 's3cret'
    assert account.check_password('s3cret')
    assert not account.check_password('s3cret ')


def test_transfer_moves_exact_amount(app_ctx):
    _account('A', credits=500, plays=20, cash_balance=Decimal('3'))
    _account('B')
    moved = transfer('A', 'B', credits=199, plays=2, cash=1)
    assert moved == {'credits': 199, 'plays': 2, 'cash': 1.0}

    sender = Account.query.filter_by(username='A').first()
    receiver = Account.query.filter_by(username='B').first()
    assert sender.credits == 500 - 201
    assert sender.plays == 20 - 3
    assert float(sender.cash_balance) == pytest.approx(3 - 1.01)
    assert receiver.credits == 100 + 199
    assert receiver.plays == 10 + 2
    assert float(receiver.cash_balance) == pytest.approx(1)


def test_transfer_needs_every_balance_to_cover_fee(app_ctx):
    _account('A', credits=500, plays=1)
    _account('B')
    with pytest.raises(LedgerError) as exc:
        transfer('A', 'B', credits=10, plays=1)
    assert exc.value.status == 400
    # the credit part alone would have fit; nothing moved
    assert Account.query.filter_by(username='A').first().credits == 500
    assert Account.query.filter_by(username='B').first().credits == 100


def test_transfer_rejects_fractional_counts(app_ctx):
    _account('A')
    _account('B')
    with pytest.raises(LedgerError):
        transfer('A', 'B', credits=1.5)


def test_buy_credits_missing_account(app_ctx):
    with pytest.raises(LedgerError) as exc:
        buy_credits('GHOST', 1000)
    assert exc.value.status == 404


def test_give_to_all_allows_deductions(app_ctx):
    _account('A')
    _account('B', credits=7)
    assert give_to_all(credits=-5) == 2
    assert sorted(a.credits for a in Account.query.all()) == [2, 95]
