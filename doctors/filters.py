"""Filter engine for the doctor list.

Categorical selections match if *any* language value of the doctor equals
the selected label (case-insensitive). A user browsing in Chinese who picks
a label that the doctor only stores in English still gets the doctor. There
is no translation between languages, only literal label equality.
"""

from __future__ import annotations

from typing import Iterable, List

from .models import Doctor, FilterSelection

NAME_SEPARATOR = " "


def matches_query(doctor: Doctor, query: str) -> bool:
    needle = (query or "").strip().lower()
    if not needle:
        return True
    return needle in doctor.names.joined(NAME_SEPARATOR).lower()


def matches(doctor: Doctor, selection: FilterSelection) -> bool:
    """True if ``doctor`` satisfies every non-empty part of ``selection``."""
    if not matches_query(doctor, selection.query):
        return False
    if selection.specialty and not doctor.specialties.matches(selection.specialty):
        return False
    if selection.city and not doctor.cities.matches(selection.city):
        return False
    if selection.district and not doctor.districts.matches(selection.district):
        return False
    if selection.area and not doctor.areas.matches(selection.area):
        return False
    return True


def filter_doctors(doctors: Iterable[Doctor], selection: FilterSelection) -> List[Doctor]:
    """Return the matching doctors in input order."""
    return [doctor for doctor in doctors if matches(doctor, selection)]
