from arcade import db, bcrypt
from flask_login import UserMixin
from sqlalchemy.dialects.postgresql import JSONB
from datetime import datetime, timezone
import copy

# JSONB on Postgres, plain JSON everywhere else (sqlite in tests)
JSONDocument = db.JSON().with_variant(JSONB(), 'postgresql')

STARTING_CREDITS = 100
STARTING_PLAYS = 10

DEFAULT_HIGH_SCORES = {
    'flappy': {'easy': 0, 'medium': 0, 'hard': 0, 'impossible': 0},
    'geometry': {'easy': 0, 'medium': 0, 'hard': 0, 'impossible': 0},
}

DEFAULT_COMPLETED_LEVELS = {
    'flappy': {'easy': False, 'medium': False, 'hard': False, 'impossible': False},
    'geometry': {'easy': False, 'medium': False, 'hard': False, 'impossible': False},
}

DEFAULT_OWNED_SKINS = {'flappy': ['default'], 'geometry': ['default', 'heart']}
DEFAULT_SELECTED_SKINS = {'flappy': 'default', 'geometry': 'default'}


def _utcnow():
    return datetime.now(timezone.utc)


def _copy_of(value):
    return lambda: copy.deepcopy(value)


def _or_default(value, default):
    return copy.deepcopy(default) if value is None else value


class Account(UserMixin, db.Model):
    __tablename__ = 'accounts'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(20), unique=True, nullable=False, index=True)
    # Empty string marks a passwordless (guest) account
    password_hash = db.Column(db.String(128), nullable=False, default='')
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    ip_address = db.Column(db.String(64), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    credits = db.Column(db.Integer, nullable=False, default=STARTING_CREDITS)
    plays = db.Column(db.Integer, nullable=False, default=STARTING_PLAYS)
    cash_balance = db.Column(db.Numeric(18, 6), nullable=False, default=0)

    high_scores = db.Column(JSONDocument, default=_copy_of(DEFAULT_HIGH_SCORES))
    completed_levels = db.Column(JSONDocument, default=_copy_of(DEFAULT_COMPLETED_LEVELS))
    owned_skins = db.Column(JSONDocument, default=_copy_of(DEFAULT_OWNED_SKINS))
    selected_skins = db.Column(JSONDocument, default=_copy_of(DEFAULT_SELECTED_SKINS))
    last_daily_claim = db.Column(db.BigInteger, nullable=False, default=0)  # epoch ms
    sponsor_visited = db.Column(db.Boolean, nullable=False, default=False)
    completed_tasks = db.Column(JSONDocument, default=dict)
    used_promo_codes = db.Column(JSONDocument, default=dict)

    def set_password(self, password):
        if not password:
            self.password_hash = ''
            return
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        if not self.password_hash:
            return True
        if not isinstance(password, str) or not password:
            return False
        return bcrypt.check_password_hash(self.password_hash, password)

    def balance_dict(self):
        return {
            'credits': self.credits,
            'plays': self.plays,
            'cashBalance': float(self.cash_balance or 0),
        }

    def stats_dict(self):
        stats = self.balance_dict()
        stats.update({
            'highScores': _or_default(self.high_scores, DEFAULT_HIGH_SCORES),
            'completedLevels': _or_default(self.completed_levels, DEFAULT_COMPLETED_LEVELS),
            'ownedSkins': _or_default(self.owned_skins, DEFAULT_OWNED_SKINS),
            'selectedSkins': _or_default(self.selected_skins, DEFAULT_SELECTED_SKINS),
            'lastDailyClaim': self.last_daily_claim or 0,
            'sponsorVisited': bool(self.sponsor_visited),
            'completedTasks': _or_default(self.completed_tasks, {}),
            'usedPromoCodes': _or_default(self.used_promo_codes, {}),
        })
        return stats

    def to_dict(self, full_stats=True):
        return {
            'username': self.username,
            'isAdmin': bool(self.is_admin),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'ipAddress': self.ip_address,
            'stats': self.stats_dict() if full_stats else self.balance_dict(),
        }


class GlobalSettings(db.Model):
    """The one settings document every client reads and admins rewrite.

    ``revision`` is the SQLAlchemy version counter: every UPDATE is issued
    with ``WHERE revision = <loaded value>`` so a concurrent writer surfaces
    as ``StaleDataError`` instead of silently overwriting.
    """
    __tablename__ = 'global_settings'
    SINGLETON_ID = 1

    id = db.Column(db.Integer, primary_key=True)
    min_withdraw = db.Column(db.Numeric(12, 2), nullable=True)
    sponsor_link = db.Column(db.String(512), nullable=True)
    custom_promo_codes = db.Column(JSONDocument, nullable=True)
    admin_broadcasts = db.Column(JSONDocument, nullable=True)
    custom_tasks = db.Column(JSONDocument, nullable=True)
    custom_levels = db.Column(JSONDocument, nullable=True)
    custom_withdraw_methods = db.Column(JSONDocument, nullable=True)
    error_reports = db.Column(JSONDocument, nullable=True)
    revision = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, default=_utcnow, onupdate=_utcnow)

    __mapper_args__ = {
        'version_id_col': revision,
        'version_id_generator': lambda version: (version or 0) + 1,
    }


class Withdrawal(db.Model):
    __tablename__ = 'withdrawals'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, default='anonymous')
    amount = db.Column(db.Numeric(18, 6), nullable=True)
    method = db.Column(db.String(64), nullable=True)
    account = db.Column(db.String(256), nullable=True)
    status = db.Column(db.String(32), nullable=False, default='pending')
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user': self.username,
            'amount': float(self.amount) if self.amount is not None else None,
            'method': self.method,
            'account': self.account,
            'status': self.status,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
