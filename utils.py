"""Gemeinsame Hilfsfunktionen für Server, CLI und HTML-Ausgabe.

Das Modul liefert HTML-Escaping und die UI-Übersetzungen (Englisch und
Hongkong-Chinesisch) für die Arztliste. Unbekannte Sprachen fallen auf
Englisch zurück, unbekannte Schlüssel werden unverändert zurückgegeben.
"""

# utils.py
import html
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_UI_LANG = 'en'


def escape(text: Any) -> str:
    """Maskiert HTML-Sonderzeichen in einem String."""
    return html.escape(str(text))


# Einfache Übersetzungstabelle für UI-Strings
_TRANSLATIONS: Dict[str, Dict[str, str]] = {
    'brand': {
        'en': 'MixCare <strong>Doctor List</strong>',
        'zh-HK': 'MixCare 網絡醫生名單',
    },
    'searchPlaceholder': {
        'en': 'Search doctor name (EN / 中文)',
        'zh-HK': '搜尋醫生姓名（英文/中文）',
    },
    'allSpecialties': {
        'en': 'All Specialties',
        'zh-HK': '所有專科',
    },
    'allCities': {
        'en': 'All Cities',
        'zh-HK': '所有城市',
    },
    'allDistricts': {
        'en': 'All Districts',
        'zh-HK': '所有地區',
    },
    'allAreas': {
        'en': 'All Areas',
        'zh-HK': '所有分區',
    },
    'clearFilters': {
        'en': 'Clear filters',
        'zh-HK': '清除篩選',
    },
    'callToBook': {
        'en': 'Call to book',
        'zh-HK': '致電預約',
    },
    'map': {
        'en': 'Map',
        'zh-HK': '地圖',
    },
    'noDoctors': {
        'en': 'No doctors found.',
        'zh-HK': '找不到醫生。',
    },
    'phoneLabel': {
        'en': 'Phone',
        'zh-HK': '電話',
    },
    'openingLabel': {
        'en': 'Opening',
        'zh-HK': '診症時間',
    },
    'remarkLabel': {
        'en': 'Remark',
        'zh-HK': '備註',
    },
    'loading': {
        'en': 'Loading...',
        'zh-HK': '載入中...',
    },
    'errorLoading': {
        'en': 'Error loading data',
        'zh-HK': '載入資料時出錯',
    },
    'unknown': {
        'en': 'Unknown',
        'zh-HK': '不詳',
    },
    'doctorsCountOne': {
        'en': '{n} doctor found',
        'zh-HK': '共找到 {n} 位醫生',
    },
    'doctorsCountMany': {
        'en': '{n} doctors',
        'zh-HK': '共找到 {n} 位醫生',
    },
}


def translate(key: str, lang: str = DEFAULT_UI_LANG, **kwargs) -> str:
    """Einfache Übersetzung bestimmter Texte mit Platzhaltern."""
    entry = _TRANSLATIONS.get(key, {})
    template = entry.get(lang) or entry.get(DEFAULT_UI_LANG) or key
    return template.format(**kwargs) if kwargs else template


def doctors_count(n: int, lang: str = DEFAULT_UI_LANG) -> str:
    """Ergebniszähler; Englisch unterscheidet Singular und Plural."""
    key = 'doctorsCountMany' if n > 1 else 'doctorsCountOne'
    return translate(key, lang, n=n)


def translations_for(lang: str) -> Dict[str, str]:
    """Alle UI-Texte einer Sprache (für das Frontend)."""
    return {key: translate(key, lang) for key in _TRANSLATIONS}
