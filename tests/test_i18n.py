from innerquest.core.config import DEFAULT_CONFIG
from innerquest.events.model import FALLBACK_EVENT
from innerquest.i18n.text import localize_event, localized_text, resolve_locale, text_direction


def test_plain_string_passes_through():
    assert localized_text("Bonjour", "en") == "Bonjour"


def test_locale_then_fallback_then_first():
    text = {"fr": "Bonjour", "en": "Hello"}

    assert localized_text(text, "en", "fr") == "Hello"
    assert localized_text(text, "de", "fr") == "Bonjour"
    assert localized_text({"es": "Hola"}, "de", "fr") == "Hola"


def test_resolve_locale():
    assert resolve_locale("en") == "en"
    assert resolve_locale("en-US") == "en"
    assert resolve_locale("it") == DEFAULT_CONFIG.default_locale
    assert resolve_locale("") == DEFAULT_CONFIG.default_locale


def test_text_direction():
    assert text_direction("ar") == "rtl"
    assert text_direction("fr") == "ltr"


def test_localize_event():
    data = localize_event(FALLBACK_EVENT, "en")

    assert data["id"] == "fallback_event"
    assert data["text"] == "You take a moment to reflect on your day..."
    assert data["choices"] == [{"index": 0, "label": "Continue", "effects": {}}]
