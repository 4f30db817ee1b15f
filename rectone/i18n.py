"""Locale handling for localized entity fields."""

from dataclasses import dataclass
from typing import Any, Optional

LOCALES = ("en", "zh", "es", "de", "ja")
DEFAULT_LOCALE = "en"


def normalize_locale(value: Optional[str]) -> str:
    """Map a language tag ("zh-CN", "de_DE", "EN") to a supported locale."""
    if not value:
        return DEFAULT_LOCALE
    tag = value.strip().lower().replace("_", "-")
    if tag in LOCALES:
        return tag
    primary = tag.split("-", 1)[0]
    return primary if primary in LOCALES else DEFAULT_LOCALE


def is_localized_key(key: str) -> bool:
    """True for suffix-keyed overrides such as ``name_zh``."""
    base, _, suffix = key.rpartition("_")
    return bool(base) and suffix in LOCALES


@dataclass(frozen=True)
class LocaleContext:
    """Per-request locale, passed explicitly to anything that localizes."""

    locale: str = DEFAULT_LOCALE

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "LocaleContext":
        return cls(locale=normalize_locale(tag))

    def localize(self, entity: Any, field: str, fallback: str = "") -> str:
        """Return ``<field>_<locale>`` if set, else ``<field>``, else fallback."""
        value = getattr(entity, f"{field}_{self.locale}", None)
        if value:
            return value
        value = getattr(entity, field, None)
        if value:
            return value
        return fallback
