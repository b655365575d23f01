import os


def _database_url():
    url = os.environ.get('DATABASE_URL')
    # Hosted Postgres providers still hand out the legacy scheme
    if url and url.startswith('postgres://'):
        url = 'postgresql://' + url[len('postgres://'):]
    return url


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Without DATABASE_URL the store counts as not configured; the in-memory
    # URI only keeps Flask-SQLAlchemy happy.
    DATABASE_CONFIGURED = bool(_database_url())
    SQLALCHEMY_DATABASE_URI = _database_url() or 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ALLOWED_ORIGINS = [
        o.strip() for o in os.environ.get(
            'ALLOWED_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000'
        ).split(',') if o.strip()
    ]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Cost factor for password hashes
    BCRYPT_LOG_ROUNDS = int(os.environ.get('BCRYPT_LOG_ROUNDS', '12'))
    # Bounded settings lists keep only the newest entries
    BROADCAST_LIMIT = int(os.environ.get('BROADCAST_LIMIT', '20'))
    ERROR_REPORT_LIMIT = int(os.environ.get('ERROR_REPORT_LIMIT', '100'))
    # Seed password for the admin created by `flask db-reset`
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'password'
