"""User-facing message lookup."""

from __future__ import annotations

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "thread_merge.api.error.merging_failed": "Failed to merge the threads.",
        "thread_merge.api.error.updating_failed": "Failed to update the merged thread.",
        "thread_merge.api.error.deleting_failed": "Failed to delete the merged threads.",
    },
    "fr": {
        "thread_merge.api.error.merging_failed": "La fusion des discussions a échoué.",
        "thread_merge.api.error.updating_failed": "La mise à jour de la discussion fusionnée a échoué.",
        "thread_merge.api.error.deleting_failed": "La suppression des discussions fusionnées a échoué.",
    },
    "de": {
        "thread_merge.api.error.merging_failed": "Das Zusammenführen der Diskussionen ist fehlgeschlagen.",
        "thread_merge.api.error.updating_failed": "Die zusammengeführte Diskussion konnte nicht aktualisiert werden.",
        "thread_merge.api.error.deleting_failed": "Die zusammengeführten Diskussionen konnten nicht gelöscht werden.",
    },
}


class MessageCatalog:
    """Looks messages up by key for one locale.

    Missing keys fall back to the default locale, then to the key itself.
    """

    def __init__(
        self,
        locale: str = DEFAULT_LOCALE,
        messages: Optional[Dict[str, Dict[str, str]]] = None
    ):
        self.messages = messages if messages is not None else MESSAGES
        if locale not in self.messages:
            logger.warning(f"Unknown locale {locale!r}, using {DEFAULT_LOCALE!r}")
            locale = DEFAULT_LOCALE
        self.locale = locale

    def translate(self, key: str, **params) -> str:
        message = self.messages.get(self.locale, {}).get(key)
        if message is None:
            message = self.messages.get(DEFAULT_LOCALE, {}).get(key, key)
        return message.format(**params) if params else message
