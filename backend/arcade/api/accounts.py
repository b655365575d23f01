import math
from decimal import Decimal
from functools import wraps
from numbers import Number
from flask import Blueprint, jsonify, request, current_app
from flask_login import login_user, logout_user, current_user
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from arcade import db
from arcade.models import Account
from arcade.services.economy import LedgerError, buy_credits, give_to_all, transfer

accounts = Blueprint('accounts', __name__)

USERNAME_MIN = 3
USERNAME_MAX = 20

_actions = {}


def action(name):
    def register(handler):
        _actions[name] = handler
        return handler
    return register


def client_ip() -> str:
    forwarded = request.headers.get('X-Forwarded-For')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.headers.get('X-Real-IP') or 'unknown'


def _store_configured() -> bool:
    return bool(current_app.config.get('DATABASE_CONFIGURED'))


def _upper(name):
    return name.upper() if isinstance(name, str) else None


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value):
    if isinstance(value, bool) or not isinstance(value, Number):
        return False
    # NaN and Infinity pass json.loads but fit no column
    return isinstance(value, int) or math.isfinite(value)


def _is_dict(value):
    return isinstance(value, dict)


def _is_bool(value):
    return isinstance(value, bool)


# stats key -> (column, validator)
STAT_FIELDS = {
    'credits': ('credits', _is_int),
    'plays': ('plays', _is_int),
    'cashBalance': ('cash_balance', _is_number),
    'highScores': ('high_scores', _is_dict),
    'completedLevels': ('completed_levels', _is_dict),
    'ownedSkins': ('owned_skins', _is_dict),
    'selectedSkins': ('selected_skins', _is_dict),
    'lastDailyClaim': ('last_daily_claim', _is_number),
    'sponsorVisited': ('sponsor_visited', _is_bool),
    'completedTasks': ('completed_tasks', _is_dict),
    'usedPromoCodes': ('used_promo_codes', _is_dict),
}

# Balances an admin may override with updateAccount
BALANCE_FIELDS = {key: STAT_FIELDS[key] for key in ('credits', 'plays', 'cashBalance')}


def _apply_fields(account, values: dict, fields: dict):
    """Overwrite each column whose key is present and non-null in ``values``.

    Returns an error message for the first invalid value, otherwise None.
    Nothing is assigned unless every value is valid.
    """
    changes = {}
    for key, (column, valid) in fields.items():
        value = values.get(key)
        if value is None:
            continue
        if not valid(value):
            return f'Invalid value for {key}'
        if column == 'cash_balance':
            value = Decimal(str(value))
        elif column == 'last_daily_claim':
            value = int(value)
        changes[column] = value
    for column, value in changes.items():
        setattr(account, column, value)
    return None


def admin_required(handler):
    """Runs ``handler(data, admin)`` only for a logged-in admin.

    The acting admin comes from the session; a client-supplied ``adminUser``
    can narrow it but never replace it.
    """
    @wraps(handler)
    def wrapper(data):
        if not current_user.is_authenticated:
            return jsonify({'error': 'Admin access required'}), 403
        admin = db.session.get(Account, current_user.id)
        if admin is None or not admin.is_admin:
            return jsonify({'error': 'Admin access required'}), 403
        claimed = data.get('adminUser')
        if claimed is not None and _upper(claimed) != admin.username:
            current_app.logger.warning(
                f"[admin] session={admin.username} claimed={claimed} rejected"
            )
            return jsonify({'error': 'Admin access required'}), 403
        return handler(data, admin)
    return wrapper


@accounts.route('', methods=['GET'])
def lookup_accounts():
    if not _store_configured():
        return jsonify({'accounts': [], 'error': 'Database not configured'})

    ip = client_ip()
    try:
        # IP-based auto-login
        if request.args.get('ip') == 'true':
            # Several accounts may share an address; the oldest one wins
            account = Account.query.filter_by(ip_address=ip).order_by(Account.id).first()
            if account:
                return jsonify({'autoLogin': True, 'account': account.to_dict(), 'ip': ip})
            return jsonify({'autoLogin': False, 'ip': ip})

        username = request.args.get('username')
        if username:
            account = Account.query.filter_by(username=username.upper()).first()
            if account:
                return jsonify({'exists': True, 'account': account.to_dict()})
            return jsonify({'exists': False})

        listing = Account.query.order_by(Account.id).all()
        return jsonify({'accounts': [a.to_dict(full_stats=False) for a in listing]})
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('[accounts] lookup failed')
        return jsonify({'accounts': [], 'error': 'Database error'})


@accounts.route('', methods=['POST'])
def account_action():
    if not _store_configured():
        current_app.logger.error('[accounts] DATABASE_URL not set')
        return jsonify({'error': 'Database not configured'}), 500

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    name = body.get('action')
    data = body.get('data') or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'data must be an object'}), 400

    handler = _actions.get(name)
    if handler is None:
        return jsonify({'error': 'Unknown action'}), 400

    try:
        return handler(data)
    except LedgerError as exc:
        return jsonify({'error': exc.message}), exc.status
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(f"[accounts] action={name} failed")
        return jsonify({'error': 'Failed to process request'}), 500


def username_taken(name) -> bool:
    return Account.query.filter_by(username=name).first() is not None


@action('register')
def register(data):
    name = _upper(data.get('username'))
    password = data.get('password')
    # Measured after uppercasing, which can lengthen some names
    if name is None or not USERNAME_MIN <= len(name) <= USERNAME_MAX:
        return jsonify({'error': f'Username must be {USERNAME_MIN}-{USERNAME_MAX} characters'}), 400
    if password is not None and not isinstance(password, str):
        return jsonify({'error': 'Password must be a string'}), 400

    if username_taken(name):
        return jsonify({'error': 'Username already exists'}), 400

    ip = client_ip()
    account = Account(username=name, ip_address=ip)
    account.set_password(password or '')
    db.session.add(account)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost the race against a concurrent registration of the same name
        db.session.rollback()
        current_app.logger.warning(f"[register] duplicate insert username={name}")
        return jsonify({'error': 'Username already exists'}), 400

    login_user(account, remember=True)
    current_app.logger.info(f"[register] username={name} ip={ip}")
    return jsonify({'success': True, 'account': account.to_dict(), 'ip': ip})


@action('login')
def login(data):
    name = _upper(data.get('username'))
    account = Account.query.filter_by(username=name).first() if name else None
    if account is None or not account.check_password(data.get('password')):
        return jsonify({'error': 'Invalid username or password'}), 401

    ip = client_ip()
    account.ip_address = ip
    db.session.commit()
    login_user(account, remember=True)
    current_app.logger.info(f"[login] username={name} ip={ip}")
    return jsonify({'success': True, 'account': account.to_dict(), 'ip': ip})


@action('logout')
def logout(data):
    logout_user()
    return jsonify({'success': True})


@action('saveStats')
def save_stats(data):
    stats = data.get('stats')
    if stats is None:
        return jsonify({'error': 'No stats provided'}), 400
    if not isinstance(stats, dict):
        return jsonify({'error': 'stats must be an object'}), 400

    account = Account.query.filter_by(username=_upper(data.get('username'))).first()
    if account is None:
        return jsonify({'error': 'Account not found'}), 404

    problem = _apply_fields(account, stats, STAT_FIELDS)
    if problem:
        return jsonify({'error': problem}), 400
    db.session.commit()
    return jsonify({'success': True, 'stats': account.balance_dict()})


@action('getStats')
def get_stats(data):
    account = Account.query.filter_by(username=_upper(data.get('username'))).first()
    if account is None:
        return jsonify({'error': 'Account not found'}), 404
    return jsonify({'success': True, 'stats': account.stats_dict()})


@action('buyCredits')
def buy(data):
    account = buy_credits(_upper(data.get('username')), data.get('amount'))
    return jsonify({
        'success': True,
        'credits': account.credits,
        'cashBalance': float(account.cash_balance or 0),
    })


@action('transfer')
def send(data):
    from_user = _upper(data.get('fromUser'))
    to_user = _upper(data.get('toUser'))
    if not from_user or not to_user:
        return jsonify({'error': 'fromUser and toUser are required'}), 400
    moved = transfer(from_user, to_user, data.get('credits'), data.get('plays'), data.get('cash'))
    return jsonify({'success': True, 'fee': '1%', 'transferred': moved})


@action('getAllAccounts')
@admin_required
def get_all_accounts(data, admin):
    listing = Account.query.order_by(Account.created_at.desc(), Account.id.desc()).all()
    return jsonify({'accounts': [a.to_dict() for a in listing]})


@action('giveToAllAccounts')
@admin_required
def give_all(data, admin):
    total = give_to_all(data.get('credits'), data.get('plays'), data.get('cash'))
    return jsonify({
        'success': True,
        'totalAccounts': total,
        'given': {
            'credits': data.get('credits') or 0,
            'plays': data.get('plays') or 0,
            'cash': data.get('cash') or 0,
        },
    })


@action('updateAccount')
@admin_required
def update_account(data, admin):
    updates = data.get('updates')
    if not isinstance(updates, dict):
        return jsonify({'error': 'No updates provided'}), 400
    account = Account.query.filter_by(username=_upper(data.get('username'))).first()
    if account is None:
        return jsonify({'error': 'Account not found'}), 404

    problem = _apply_fields(account, updates, BALANCE_FIELDS)
    if problem:
        return jsonify({'error': problem}), 400
    db.session.commit()
    current_app.logger.info(f"[admin] {admin.username} updated {account.username}")
    return jsonify({'success': True})


@action('deleteAccount')
@admin_required
def delete_account(data, admin):
    name = _upper(data.get('username'))
    if name == admin.username:
        return jsonify({'error': 'Cannot delete your own account'}), 400
    account = Account.query.filter_by(username=name).first()
    if account is None:
        return jsonify({'error': 'Account not found'}), 404

    db.session.delete(account)
    db.session.commit()
    current_app.logger.info(f"[admin] {admin.username} deleted {name}")
    return jsonify({'success': True})
