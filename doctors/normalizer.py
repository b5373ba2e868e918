"""Turn flat, per-language rows into :class:`~doctors.models.Doctor` entities.

A row looks like ``{"doc_id": "1", "lang": "en", "doc_name": "Tan", ...}``;
the same ``doc_id`` usually appears once per language. Two strategies exist:

``GROUPED``
    One doctor per ``doc_id``. Every row adds its language values. Address,
    coordinates and the action link come from the first row of the id only.
``PER_ROW``
    One doctor per row, so every language variant stays a separate entry.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Set

from .models import PRIMARY_LANG, Doctor, NormalizationStrategy, clean_value

logger = logging.getLogger(__name__)

# Raw field -> Doctor attribute holding the per-language values.
LOCALIZED_FIELDS: Dict[str, str] = {
    "doc_name": "names",
    "doc_address": "addresses",
    "doc_tel_A": "phones",
    "doc_cat_name": "specialties",
    "doc_wh": "openings",
    "doc_remark": "remarks",
    "area_name": "areas",
    "district_name": "districts",
    "city_name": "cities",
}


def record_lang(record: Mapping[str, Any]) -> str:
    return clean_value(record.get("lang")) or PRIMARY_LANG


def record_id(record: Mapping[str, Any]) -> str:
    return clean_value(record.get("doc_id"))


def _new_doctor(key: str, record: Mapping[str, Any], position: int, lang: str | None) -> Doctor:
    return Doctor(
        key=key,
        doc_id=record_id(record),
        lang=lang,
        position=position,
        address=clean_value(record.get("doc_address")),
        lat=clean_value(record.get("doc_lat")),
        lng=clean_value(record.get("doc_long")),
        cta_link=clean_value(record.get("cta_link")),
    )


def _apply_localized(doctor: Doctor, record: Mapping[str, Any], lang: str) -> None:
    for raw_key, attr in LOCALIZED_FIELDS.items():
        getattr(doctor, attr).put(lang, record.get(raw_key))


def _valid_records(records: Iterable[Any]) -> Iterable[tuple[int, Mapping[str, Any]]]:
    for position, record in enumerate(records):
        if not isinstance(record, Mapping):
            logger.warning("Zeile %s ist kein Objekt (%s) und wird übersprungen", position, type(record).__name__)
            continue
        yield position, record


def group_by_id(records: Iterable[Any]) -> List[Doctor]:
    doctors: Dict[str, Doctor] = {}
    for position, record in _valid_records(records):
        doc_id = record_id(record)
        doctor = doctors.get(doc_id)
        if doctor is None:
            doctor = _new_doctor(doc_id, record, position, None)
            doctors[doc_id] = doctor
        _apply_localized(doctor, record, record_lang(record))
    return list(doctors.values())


def split_per_row(records: Iterable[Any]) -> List[Doctor]:
    doctors: List[Doctor] = []
    for position, record in _valid_records(records):
        lang = record_lang(record)
        key = f"{record_id(record)}|{lang}|{position}"
        doctor = _new_doctor(key, record, position, lang)
        _apply_localized(doctor, record, lang)
        doctors.append(doctor)
    return doctors


def normalize_records(
    records: Iterable[Any],
    strategy: NormalizationStrategy | str = NormalizationStrategy.GROUPED,
) -> List[Doctor]:
    """Build the doctor collection for ``records`` with the given strategy."""
    strategy = NormalizationStrategy.parse(strategy)
    rows = list(records)
    if strategy is NormalizationStrategy.PER_ROW:
        doctors = split_per_row(rows)
    else:
        doctors = group_by_id(rows)
    logger.info("%s Zeilen normalisiert (%s) -> %s Ärzte", len(rows), strategy.value, len(doctors))
    return doctors


def count_distinct_ids(records: Iterable[Any]) -> int:
    ids: Set[str] = set()
    for _, record in _valid_records(records):
        ids.add(record_id(record))
    return len(ids)
