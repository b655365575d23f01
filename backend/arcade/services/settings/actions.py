import math
import time
from decimal import Decimal, ROUND_HALF_UP
from numbers import Number

# min_withdraw is Numeric(12, 2)
MIN_WITHDRAW_CEILING = 10 ** 10


class SettingsError(Exception):
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.message = message
        self.status = status


def _require(data: dict, field: str):
    value = data.get(field)
    if value is None or value == '':
        raise SettingsError(f'{field} is required')
    return value


def _key(data: dict, field: str) -> str:
    """Mapping key (promo code, level name); must be a non-empty string."""
    value = _require(data, field)
    if not isinstance(value, str):
        raise SettingsError(f'{field} must be a string')
    return value


def _number(data: dict, field: str):
    value = data.get(field)
    if isinstance(value, bool) or not isinstance(value, Number):
        raise SettingsError(f'{field} must be a number')
    if isinstance(value, float) and not math.isfinite(value):
        raise SettingsError(f'{field} must be finite')
    return value


def now_ms() -> int:
    return int(time.time() * 1000)


def next_id(items) -> int:
    """Millisecond timestamp id, bumped past any id already in ``items``."""
    candidate = now_ms()
    for item in items:
        existing = item.get('id') if isinstance(item, dict) else None
        if isinstance(existing, int) and existing >= candidate:
            candidate = existing + 1
    return candidate


def _without_id(items, item_id):
    return [item for item in items if item.get('id') != item_id]


def send_broadcast(doc, data, config):
    broadcasts = doc['adminBroadcasts']
    stamp = next_id(broadcasts)
    broadcasts.append({
        'message': _require(data, 'message'),
        'type': data.get('type') or 'info',
        'timestamp': stamp,
        'id': stamp,
    })
    limit = config.get('BROADCAST_LIMIT', 20)
    doc['adminBroadcasts'] = broadcasts[-limit:]


def delete_broadcast(doc, data, config):
    doc['adminBroadcasts'] = _without_id(doc['adminBroadcasts'], data.get('id'))


def create_promo_code(doc, data, config):
    code = _key(data, 'code')
    promo = {
        'credits': data.get('credits') or 0,
        'plays': data.get('plays') or 0,
        'cash': data.get('cash') or 0,
        'event_type': data.get('eventType') or 'none',
        'max_uses': data.get('maxUses') or 0,
    }
    # Optional presentation fields are only stored when given
    if data.get('emoji') is not None:
        promo['emoji'] = data['emoji']
    if data.get('message') is not None:
        promo['message'] = data['message']
    doc['customPromoCodes'][code] = promo


def delete_promo_code(doc, data, config):
    doc['customPromoCodes'].pop(_key(data, 'code'), None)


def update_promo_code(doc, data, config):
    promo = doc['customPromoCodes'].get(_key(data, 'code'))
    if promo is None:
        return
    for field, key in (('credits', 'credits'), ('plays', 'plays'), ('cash', 'cash'), ('maxUses', 'max_uses')):
        if data.get(field) is not None:
            promo[key] = data[field]


def set_min_withdraw(doc, data, config):
    minimum = _number(data, 'min')
    if minimum < 0:
        raise SettingsError('min cannot be negative')
    if minimum >= MIN_WITHDRAW_CEILING:
        raise SettingsError('min is too large')
    # Stored with cent precision; echo the value the column will hold
    cents = Decimal(str(minimum)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    doc['minWithdraw'] = float(cents)


def set_sponsor_link(doc, data, config):
    link = _require(data, 'link')
    if not isinstance(link, str):
        raise SettingsError('link must be a string')
    doc['sponsorLink'] = link


def create_task(doc, data, config):
    tasks = doc['customTasks']
    tasks.append({
        'id': next_id(tasks),
        'name': _require(data, 'name'),
        'type': data.get('type'),
        'url': data.get('url'),
        'reward': data.get('reward'),
        'cooldown': data.get('cooldown') or 24,
        'html_content': data.get('htmlContent'),
    })


def delete_task(doc, data, config):
    doc['customTasks'] = _without_id(doc['customTasks'], data.get('id'))


def save_custom_level(doc, data, config):
    name = _key(data, 'levelName')
    doc['customLevels'][name] = {
        'obstacles': data.get('obstacles') or [],
        'distance': data.get('distance') or 500,
    }


def delete_custom_level(doc, data, config):
    doc['customLevels'].pop(_key(data, 'levelName'), None)


def report_error(doc, data, config):
    reports = doc['errorReports']
    stamp = next_id(reports)
    reports.append({
        'id': stamp,
        'message': _require(data, 'message'),
        'user': data.get('user') or 'anonymous',
        'timestamp': stamp,
        'resolved': False,
    })
    limit = config.get('ERROR_REPORT_LIMIT', 100)
    doc['errorReports'] = reports[-limit:]


def resolve_error_report(doc, data, config):
    for report in doc['errorReports']:
        if report.get('id') == data.get('id'):
            report['resolved'] = True


def delete_error_report(doc, data, config):
    doc['errorReports'] = _without_id(doc['errorReports'], data.get('id'))


def create_withdraw_method(doc, data, config):
    methods = doc['customWithdrawMethods']
    methods.append({
        'id': next_id(methods),
        'name': _require(data, 'name'),
        'icon': data.get('icon') or '💵',
    })


def delete_withdraw_method(doc, data, config):
    doc['customWithdrawMethods'] = _without_id(doc['customWithdrawMethods'], data.get('id'))


# action name -> in-place transformation of the settings document
DOCUMENT_ACTIONS = {
    'sendBroadcast': send_broadcast,
    'deleteBroadcast': delete_broadcast,
    'createPromoCode': create_promo_code,
    'deletePromoCode': delete_promo_code,
    'updatePromoCode': update_promo_code,
    'setMinWithdraw': set_min_withdraw,
    'setSponsorLink': set_sponsor_link,
    'createTask': create_task,
    'deleteTask': delete_task,
    'saveCustomLevel': save_custom_level,
    'deleteCustomLevel': delete_custom_level,
    'reportError': report_error,
    'resolveErrorReport': resolve_error_report,
    'deleteErrorReport': delete_error_report,
    'createWithdrawMethod': create_withdraw_method,
    'deleteWithdrawMethod': delete_withdraw_method,
}
