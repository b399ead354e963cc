"""Таблицы переводов названий фаз и подписей виджета.

Таблицы неизменяемые и загружаются один раз при импорте.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

PHASE_KEYS = (
    ("NEW_MOON", "New Moon"),
    ("WAXING_CRESCENT", "Waxing Crescent"),
    ("FIRST_QUARTER", "First Quarter"),
    ("WAXING_GIBBOUS", "Waxing Gibbous"),
    ("FULL_MOON", "Full Moon"),
    ("WANING_GIBBOUS", "Waning Gibbous"),
    ("LAST_QUARTER", "Last Quarter"),
    ("WANING_CRESCENT", "Waning Crescent"),
)

_RAW = {
    "en": (
        ("New Moon", "Waxing Crescent", "First Quarter", "Waxing Gibbous",
         "Full Moon", "Waning Gibbous", "Last Quarter", "Waning Crescent"),
        ("Illumination", "Age", "days", "in"),
    ),
    "fr": (
        ("Nouvelle Lune", "Premier Croissant", "Premier Quartier", "Gibbeuse Croissante",
         "Pleine Lune", "Gibbeuse Décroissante", "Dernier Quartier", "Dernier Croissant"),
        ("Illumination", "Âge", "jours", "dans"),
    ),
    "es": (
        ("Luna Nueva", "Luna Creciente", "Cuarto Creciente", "Gibosa Creciente",
         "Luna Llena", "Gibosa Menguante", "Cuarto Menguante", "Luna Menguante"),
        ("Iluminación", "Edad", "días", "en"),
    ),
    "de": (
        ("Neumond", "Zunehmende Sichel", "Erstes Viertel", "Zunehmender Mond",
         "Vollmond", "Abnehmender Mond", "Letztes Viertel", "Abnehmende Sichel"),
        ("Beleuchtung", "Alter", "Tage", "in"),
    ),
    "it": (
        ("Luna Nuova", "Luna Crescente", "Primo Quarto", "Gibbosa Crescente",
         "Luna Piena", "Gibbosa Calante", "Ultimo Quarto", "Luna Calante"),
        ("Illuminazione", "Età", "giorni", "in"),
    ),
    "pt": (
        ("Lua Nova", "Lua Crescente", "Quarto Crescente", "Gibosa Crescente",
         "Lua Cheia", "Gibosa Minguante", "Quarto Minguante", "Lua Minguante"),
        ("Iluminação", "Idade", "dias", "em"),
    ),
    "ru": (
        ("Новолуние", "Растущий серп", "Первая четверть", "Растущая луна",
         "Полнолуние", "Убывающая луна", "Последняя четверть", "Убывающий серп"),
        ("Освещённость", "Возраст", "дней", "через"),
    ),
    "zh": (
        ("新月", "蛾眉月", "上弦月", "盈凸月", "满月", "亏凸月", "下弦月", "残月"),
        ("照明", "月龄", "天", "在"),
    ),
    "ja": (
        ("新月", "三日月", "上弦の月", "十三夜月", "満月", "十六夜月", "下弦の月", "有明の月"),
        ("照度", "月齢", "日", "で"),
    ),
    "ko": (
        ("신월", "초승달", "상현달", "상현망간달", "보름달", "하현망간달", "하현달", "그믐달"),
        ("조도", "월령", "일", "에서"),
    ),
    "ar": (
        ("محاق", "هلال أول", "تربيع أول", "أحدب أول", "بدر", "أحدب أخير", "تربيع أخير", "هلال أخير"),
        ("الإضاءة", "العمر", "أيام", "في"),
    ),
    "hi": (
        ("अमावस्या", "बढ़ता चंद्रमा", "पहला चौथाई", "बढ़ता गिबस",
         "पूर्णिमा", "घटता गिबस", "आखिरी चौथाई", "घटता चंद्रमा"),
        ("रोशनी", "आयु", "दिन", "में"),
    ),
    "tr": (
        ("Yeni Ay", "Hilal", "İlk Dördün", "Şişkin Ay", "Dolunay", "Son Şişkin Ay", "Son Dördün", "Eski Ay"),
        ("Aydınlanma", "Yaş", "gün", "içinde"),
    ),
    "nl": (
        ("Nieuwe Maan", "Wassende Maan", "Eerste Kwartier", "Wassende Maan",
         "Volle Maan", "Afnemende Maan", "Laatste Kwartier", "Afnemende Maan"),
        ("Verlichting", "Leeftijd", "dagen", "in"),
    ),
    "pl": (
        ("Nów", "Rożek przybywający", "Pierwsza kwadra", "Księżyc garbaty przybywający",
         "Pełnia", "Księżyc garbaty ubywający", "Ostatnia kwadra", "Rożek ubywający"),
        ("Oświetlenie", "Wiek", "dni", "za"),
    ),
}

DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True)
class Labels:
    illumination: str
    age: str
    days: str
    in_: str


@dataclass(frozen=True)
class Locale:
    """Переводы одного языка: английское название фазы -> локальное, плюс подписи."""
    language: str
    phase_names: Mapping[str, str]
    labels: Labels

    def translate_phase(self, english_name: str) -> str:
        return self.phase_names.get(english_name, english_name)


def _build_locale(language: str) -> Locale:
    names, labels = _RAW[language]
    mapping = {english: local for (_key, english), local in zip(PHASE_KEYS, names)}
    return Locale(language=language, phase_names=MappingProxyType(mapping), labels=Labels(*labels))


LOCALES: Mapping[str, Locale] = MappingProxyType({lang: _build_locale(lang) for lang in _RAW})


def detect_language(environ: Optional[Mapping[str, str]] = None) -> str:
    """Язык из LANG ("ru_RU.UTF-8" -> "ru")."""
    env = os.environ if environ is None else environ
    lang = env.get("LANG") or "en_US.UTF-8"
    return lang.split(".")[0].split("_")[0].lower()


def get_locale(language: Optional[str] = None) -> Locale:
    """Локаль для языка; для неизвестных языков английская."""
    lang = language if language is not None else detect_language()
    return LOCALES.get(lang, LOCALES[DEFAULT_LANGUAGE])
