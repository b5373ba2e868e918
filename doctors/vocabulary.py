"""Filter option lists for one display language.

Options are labels in the active language only; they are rebuilt whenever
the language changes. Matching a chosen option against the doctors is done
by :mod:`doctors.filters` and is not limited to that language.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Set

from .language import resolve_exact, resolve_label
from .models import PRIMARY_LANG, Doctor, LangMap, Vocabulary

logger = logging.getLogger(__name__)

PREFERRED_CITIES_EN: tuple[str, ...] = ("Hong Kong", "香港")


def _resolver(use_fallback: bool):
    return resolve_label if use_fallback else resolve_exact


def build_vocabulary(doctors: Iterable[Doctor], lang: str, use_fallback: bool = True) -> Vocabulary:
    """Collect specialties and the city -> district -> area tree in ``lang``.

    A doctor without a city or district label ends up under the ``""`` key;
    empty specialties and areas are skipped.
    """
    resolve = _resolver(use_fallback)
    vocab = Vocabulary(lang=lang, use_fallback=use_fallback)
    for doctor in doctors:
        specialty = resolve(doctor.specialties, lang)
        if specialty:
            vocab.specialties.add(specialty)

        city = resolve(doctor.cities, lang)
        district = resolve(doctor.districts, lang)
        area = resolve(doctor.areas, lang)

        districts = vocab.cities.setdefault(city, {})
        areas = districts.setdefault(district, set())
        if area:
            areas.add(area)
    logger.debug(
        "Vokabular %s: %s Fachrichtungen, %s Städte",
        lang,
        len(vocab.specialties),
        len(vocab.cities),
    )
    return vocab


def preferred_cities(lang: str) -> Sequence[str]:
    if lang == PRIMARY_LANG:
        return PREFERRED_CITIES_EN
    return tuple(reversed(PREFERRED_CITIES_EN))


def default_city(vocab: Vocabulary, lang: str | None = None) -> str:
    """Return the city to pre-select at startup, or ``""`` if none fits."""
    labels = vocab.sorted_cities()
    for wanted in preferred_cities(lang or vocab.lang):
        for label in labels:
            if label and label.lower() == wanted.lower():
                return label
    return ""


def _lookup(values: LangMap, label: str) -> bool:
    return not label or values.matches(label)


def district_options(vocab: Vocabulary, doctors: Iterable[Doctor], city: str) -> List[str]:
    """Districts to offer once ``city`` is chosen (``""`` = any city).

    Labels come from the vocabulary language. A city that is not part of the
    vocabulary (e.g. a label from another language) is matched against the
    doctors directly.
    """
    found: Set[str] = set()
    if not city:
        for districts in vocab.cities.values():
            found.update(d for d in districts if d)
    elif city in vocab.cities:
        found.update(d for d in vocab.cities[city] if d)
    else:
        resolve = _resolver(vocab.use_fallback)
        for doctor in doctors:
            if _lookup(doctor.cities, city):
                label = resolve(doctor.districts, vocab.lang)
                if label:
                    found.add(label)
    return sorted(found)


def area_options(vocab: Vocabulary, doctors: Iterable[Doctor], city: str, district: str) -> List[str]:
    """Areas to offer for ``city`` and ``district`` (empty strings = any)."""
    found: Set[str] = set()
    if city in vocab.cities or not city:
        tree: Dict[str, Dict[str, Set[str]]] = vocab.cities if not city else {city: vocab.cities[city]}
        if not district or any(district in d for d in tree.values()):
            for districts in tree.values():
                for name, areas in districts.items():
                    if not district or name == district:
                        found.update(areas)
            return sorted(found)
    resolve = _resolver(vocab.use_fallback)
    for doctor in doctors:
        if _lookup(doctor.cities, city) and _lookup(doctor.districts, district):
            label = resolve(doctor.areas, vocab.lang)
            if label:
                found.add(label)
    return sorted(found)
