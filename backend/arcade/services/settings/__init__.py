"""Global settings services.

The settings singleton is rewritten as a whole on every mutating request;
``store`` loads and saves it under the row's revision counter, ``actions``
holds the per-action document transformations and ``withdrawals`` the
separate withdrawal log.
"""

from .actions import DOCUMENT_ACTIONS, SettingsError
from .store import default_document, load, save, to_document
from .withdrawals import MODERATION_ACTIONS, WITHDRAWAL_ACTIONS, list_withdrawals

__all__ = [
    'DOCUMENT_ACTIONS',
    'MODERATION_ACTIONS',
    'SettingsError',
    'WITHDRAWAL_ACTIONS',
    'default_document',
    'list_withdrawals',
    'load',
    'save',
    'to_document',
]
