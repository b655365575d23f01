from decimal import Decimal
from arcade import db
from arcade.models import GlobalSettings
import copy

DEFAULT_SETTINGS = {
    'minWithdraw': 1.00,
    'sponsorLink': 'https://omg10.com/4/10607605',
    'customPromoCodes': {
        'TOESJABLOX': {'credits': 100, 'plays': 100, 'cash': 0, 'event_type': 'none', 'max_uses': 0},
        'ANNA': {'credits': 50, 'plays': 0, 'cash': 0, 'event_type': 'emoji', 'emoji': '🌸💖💕🌹🥀', 'max_uses': 0},
        'VALENTINE': {'credits': 0, 'plays': 0, 'cash': 0, 'event_type': 'text',
                      'message': '💕 Heart skin unlocked!', 'max_uses': 1},
    },
    'adminBroadcasts': [],
    'customTasks': [],
    'customLevels': {},
    'customWithdrawMethods': [],
    'errorReports': [],
    'revision': 0,
}

# document key -> column name
COLUMNS = {
    'minWithdraw': 'min_withdraw',
    'sponsorLink': 'sponsor_link',
    'customPromoCodes': 'custom_promo_codes',
    'adminBroadcasts': 'admin_broadcasts',
    'customTasks': 'custom_tasks',
    'customLevels': 'custom_levels',
    'customWithdrawMethods': 'custom_withdraw_methods',
    'errorReports': 'error_reports',
}


def default_document() -> dict:
    return copy.deepcopy(DEFAULT_SETTINGS)


def to_document(row) -> dict:
    """Settings row as the wire document; unset columns take their defaults."""
    if row is None:
        return default_document()
    doc = default_document()
    for key, column in COLUMNS.items():
        value = getattr(row, column)
        if value is not None:
            doc[key] = copy.deepcopy(value)
    if isinstance(doc['minWithdraw'], Decimal):
        doc['minWithdraw'] = float(doc['minWithdraw'])
    doc['revision'] = row.revision or 0
    return doc


def load():
    """Returns ``(row, document)``; row is None until the first write."""
    row = db.session.get(GlobalSettings, GlobalSettings.SINGLETON_ID)
    return row, to_document(row)


def save(row, doc: dict):
    """Write every document field back onto the singleton.

    Raises ``StaleDataError`` (update) or ``IntegrityError`` (first insert)
    when another writer got there first.
    """
    if row is None:
        row = GlobalSettings(id=GlobalSettings.SINGLETON_ID)
        db.session.add(row)
    for key, column in COLUMNS.items():
        setattr(row, column, copy.deepcopy(doc[key]))
    db.session.commit()
    return row
