from numbers import Number
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from arcade import db
from arcade.models import Withdrawal
from .actions import SettingsError


def _withdrawal_or_404(withdrawal_id):
    if isinstance(withdrawal_id, bool) or not isinstance(withdrawal_id, int):
        raise SettingsError('id must be an integer')
    withdrawal = db.session.get(Withdrawal, withdrawal_id)
    if withdrawal is None:
        raise SettingsError('Withdrawal not found', 404)
    return withdrawal


# Log writes below are best-effort: a store failure is rolled back and
# logged, and the enclosing settings request still succeeds.

def submit_withdrawal(data: dict) -> None:
    amount = data.get('amount')
    if isinstance(amount, bool) or not isinstance(amount, Number) or amount <= 0:
        raise SettingsError('amount must be a positive number')
    try:
        withdrawal = Withdrawal(
            username=data.get('user') or 'anonymous',
            amount=amount,
            method=data.get('method'),
            account=data.get('account'),
            status='pending',
        )
        db.session.add(withdrawal)
        db.session.commit()
        current_app.logger.info(
            f"[withdrawal] id={withdrawal.id} user={withdrawal.username} amount={amount} method={withdrawal.method}"
        )
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('[withdrawal] insert failed')


def update_withdrawal_status(data: dict) -> None:
    status = data.get('status')
    if not isinstance(status, str) or not status:
        raise SettingsError('status is required')
    try:
        withdrawal = _withdrawal_or_404(data.get('id'))
        withdrawal.status = status
        db.session.commit()
        current_app.logger.info(f"[withdrawal] id={withdrawal.id} status={status}")
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('[withdrawal] status update failed')


def delete_withdrawal(data: dict) -> None:
    try:
        withdrawal = _withdrawal_or_404(data.get('id'))
        db.session.delete(withdrawal)
        db.session.commit()
        current_app.logger.info(f"[withdrawal] id={data.get('id')} deleted")
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('[withdrawal] delete failed')


def list_withdrawals():
    return Withdrawal.query.order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc()).all()


# Actions that touch the withdrawal log instead of the settings document
WITHDRAWAL_ACTIONS = {
    'submitWithdrawal': submit_withdrawal,
    'updateWithdrawalStatus': update_withdrawal_status,
    'deleteWithdrawal': delete_withdrawal,
}

# Moderating the log needs the same admin session as reading it
MODERATION_ACTIONS = frozenset({'updateWithdrawalStatus', 'deleteWithdrawal'})
