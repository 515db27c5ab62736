from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict

from ..core.config import DEFAULT_CONFIG, GameConfig

if TYPE_CHECKING:
    from ..events.model import Event, LocalizedText

RTL_LOCALES = {"ar", "he", "fa", "ur"}


def localized_text(text: LocalizedText, locale: str = "fr", fallback: str = "fr") -> str:
    """Picks the string for `locale`, then `fallback`, then whatever locale comes first."""
    if isinstance(text, str):
        return text
    if text.get(locale):
        return text[locale]
    if text.get(fallback):
        return text[fallback]
    return next(iter(text.values()), "")


def resolve_locale(locale: str, config: GameConfig = DEFAULT_CONFIG) -> str:
    if locale in config.supported_locales:
        return locale
    # "en-US" -> "en"
    base = locale.split("-")[0].split("_")[0].lower() if locale else ""
    if base in config.supported_locales:
        return base
    return config.default_locale


def text_direction(locale: str) -> str:
    return "rtl" if locale in RTL_LOCALES else "ltr"


def localize_event(event: Event, locale: str, config: GameConfig = DEFAULT_CONFIG) -> Dict[str, Any]:
    """Flattens an event into display strings for one locale."""
    locale = resolve_locale(locale, config)
    fallback = config.fallback_locale
    return {
        "id": event.id,
        "locale": locale,
        "dir": text_direction(locale),
        "text": localized_text(event.text, locale, fallback),
        "choices": [
            {
                "index": index,
                "label": localized_text(choice.label, locale, fallback),
                "effects": dict(choice.effects),
            }
            for index, choice in enumerate(event.choices)
        ],
        "tags": sorted(event.tags),
    }
