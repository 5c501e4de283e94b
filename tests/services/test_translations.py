"""Tests for user-facing message lookup."""

from __future__ import annotations

import logging

from thread_merge.services.translations import MessageCatalog


class TestMessageCatalog:
    """Test suite for MessageCatalog."""

    def test_default_locale(self):
        catalog = MessageCatalog()

        assert catalog.locale == "en"
        assert catalog.translate("thread_merge.api.error.merging_failed") == "Failed to merge the threads."

    def test_known_locale(self):
        catalog = MessageCatalog("de")

        assert catalog.translate("thread_merge.api.error.updating_failed") == (
            "Die zusammengeführte Diskussion konnte nicht aktualisiert werden."
        )

    def test_unknown_locale_falls_back(self, caplog):
        caplog.set_level(logging.WARNING)

        catalog = MessageCatalog("xx")

        assert catalog.locale == "en"
        assert "Unknown locale 'xx'" in caplog.text

    def test_missing_key_falls_back_to_default_locale(self):
        messages = {"en": {"greeting": "Hello {name}"}, "fr": {}}

        catalog = MessageCatalog("fr", messages=messages)

        assert catalog.translate("greeting", name="Ada") == "Hello Ada"

    def test_unknown_key_returns_key(self):
        assert MessageCatalog().translate("no.such.key") == "no.such.key"
