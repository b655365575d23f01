from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from arcade import db
from arcade.services.settings import (
    DOCUMENT_ACTIONS,
    MODERATION_ACTIONS,
    WITHDRAWAL_ACTIONS,
    SettingsError,
    default_document,
    list_withdrawals,
    load,
    save,
)
from arcade.socketio_events import notify

settings = Blueprint('settings', __name__)


def _store_configured() -> bool:
    return bool(current_app.config.get('DATABASE_CONFIGURED'))


def _is_admin() -> bool:
    return current_user.is_authenticated and bool(current_user.is_admin)


@settings.route('', methods=['GET'])
def get_settings():
    if not _store_configured():
        return jsonify(default_document())
    try:
        _, doc = load()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('[settings] load failed, serving defaults')
        doc = default_document()
    return jsonify(doc)


@settings.route('/withdrawals', methods=['GET'])
def get_withdrawals():
    if not _store_configured():
        return jsonify({'withdrawals': [], 'error': 'Database not configured'})
    if not _is_admin():
        return jsonify({'error': 'Admin access required'}), 403
    try:
        listing = list_withdrawals()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('[withdrawal] listing failed')
        return jsonify({'withdrawals': [], 'error': 'Database error'})
    return jsonify({'withdrawals': [w.to_dict() for w in listing]})


@settings.route('', methods=['POST'])
def settings_action():
    if not _store_configured():
        current_app.logger.error('[settings] DATABASE_URL not set')
        return jsonify({'error': 'Database not configured'}), 500

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    name = body.get('action')
    data = body.get('data') or {}
    expected = body.get('revision')
    if name not in DOCUMENT_ACTIONS and name not in WITHDRAWAL_ACTIONS:
        return jsonify({'error': 'Unknown action'}), 400
    if not isinstance(data, dict):
        return jsonify({'error': 'data must be an object'}), 400
    if expected is not None and (isinstance(expected, bool) or not isinstance(expected, int)):
        return jsonify({'error': 'revision must be an integer'}), 400
    if name in MODERATION_ACTIONS and not _is_admin():
        return jsonify({'error': 'Admin access required'}), 403

    try:
        row, doc = load()

        # Withdrawal actions leave the settings document untouched
        if name in WITHDRAWAL_ACTIONS:
            WITHDRAWAL_ACTIONS[name](data)
            return jsonify({'success': True, 'settings': doc})

        if expected is not None and expected != doc['revision']:
            return jsonify({
                'error': f'Settings changed since revision {expected}',
                'settings': doc,
            }), 409

        DOCUMENT_ACTIONS[name](doc, data, current_app.config)
        row = save(row, doc)
        doc['revision'] = row.revision
    except SettingsError as exc:
        db.session.rollback()
        return jsonify({'error': exc.message}), exc.status
    except (StaleDataError, IntegrityError):
        # Another writer committed between our read and write
        db.session.rollback()
        current_app.logger.warning(f"[settings] action={name} lost a concurrent write")
        conflict = {'error': 'Settings were changed by another request'}
        try:
            _, conflict['settings'] = load()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('[settings] reload after conflict failed')
        return jsonify(conflict), 409
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(f"[settings] action={name} failed")
        return jsonify({'error': 'Failed to process request'}), 500

    current_app.logger.info(f"[settings] action={name} revision={doc['revision']}")
    notify('settings_update', {'revision': doc['revision']})
    if name == 'sendBroadcast':
        notify('broadcast', doc['adminBroadcasts'][-1])
    return jsonify({'success': True, 'settings': doc})
