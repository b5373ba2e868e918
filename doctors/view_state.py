"""Immutable browsing state and the transitions the UI triggers.

Each transition returns a new :class:`ViewState`. Changing an upstream
selector (city, then district) resets everything below it so that a district
from the previous city can never stay selected.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Sequence

from .filters import filter_doctors
from .models import PRIMARY_LANG, Doctor, FilterSelection, Vocabulary
from .vocabulary import area_options, build_vocabulary, default_city, district_options


@dataclass(frozen=True)
class ViewState:
    lang: str = PRIMARY_LANG
    selection: FilterSelection = field(default_factory=FilterSelection)
    vocabulary: Vocabulary = field(default_factory=Vocabulary)
    district_options: tuple[str, ...] = ()
    area_options: tuple[str, ...] = ()
    use_fallback: bool = True

    @property
    def specialty_options(self) -> List[str]:
        return self.vocabulary.sorted_specialties()

    @property
    def city_options(self) -> List[str]:
        return self.vocabulary.sorted_cities()


def _with_options(state: ViewState, doctors: Sequence[Doctor]) -> ViewState:
    sel = state.selection
    return replace(
        state,
        district_options=tuple(district_options(state.vocabulary, doctors, sel.city)),
        area_options=tuple(area_options(state.vocabulary, doctors, sel.city, sel.district)),
    )


def initial_state(
    doctors: Sequence[Doctor],
    lang: str = PRIMARY_LANG,
    select_default_city: bool = True,
    use_fallback: bool = True,
) -> ViewState:
    """State after the first load; optionally pre-selects the home city."""
    vocab = build_vocabulary(doctors, lang, use_fallback=use_fallback)
    city = default_city(vocab, lang) if select_default_city else ""
    state = ViewState(lang=lang, selection=FilterSelection(city=city), vocabulary=vocab, use_fallback=use_fallback)
    return _with_options(state, doctors)


def change_language(state: ViewState, doctors: Sequence[Doctor], lang: str) -> ViewState:
    """Rebuild the vocabulary for ``lang`` and drop every selection."""
    vocab = build_vocabulary(doctors, lang, use_fallback=state.use_fallback)
    new_state = replace(state, lang=lang, selection=FilterSelection(), vocabulary=vocab)
    return _with_options(new_state, doctors)


def select_city(state: ViewState, doctors: Sequence[Doctor], city: str) -> ViewState:
    selection = replace(state.selection, city=city or "", district="", area="")
    return _with_options(replace(state, selection=selection), doctors)


def select_district(state: ViewState, doctors: Sequence[Doctor], district: str) -> ViewState:
    selection = replace(state.selection, district=district or "", area="")
    return _with_options(replace(state, selection=selection), doctors)


def select_area(state: ViewState, area: str) -> ViewState:
    return replace(state, selection=replace(state.selection, area=area or ""))


def select_specialty(state: ViewState, specialty: str) -> ViewState:
    return replace(state, selection=replace(state.selection, specialty=specialty or ""))


def set_query(state: ViewState, query: str) -> ViewState:
    return replace(state, selection=replace(state.selection, query=query or ""))


def clear_filters(state: ViewState, doctors: Sequence[Doctor]) -> ViewState:
    return _with_options(replace(state, selection=FilterSelection()), doctors)


def apply_selection(
    state: ViewState,
    doctors: Sequence[Doctor],
    *,
    query: str = "",
    specialty: str = "",
    city: str = "",
    district: str = "",
    area: str = "",
) -> ViewState:
    """Replay a full selection in UI order (city before district before area)."""
    state = clear_filters(state, doctors)
    state = set_query(state, query)
    state = select_specialty(state, specialty)
    if city:
        state = select_city(state, doctors, city)
    if district:
        state = select_district(state, doctors, district)
    if area:
        state = select_area(state, area)
    return state


def visible(state: ViewState, doctors: Sequence[Doctor]) -> List[Doctor]:
    return filter_doctors(doctors, state.selection)
