"""Display helpers: cards, telephone links, map links and the HTML listing."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

from utils import doctors_count, escape, translate

from .language import resolve_label
from .models import PRIMARY_LANG, Doctor
from .view_state import ViewState

PLACEHOLDER = "—"
MAP_ZOOM = 19
MAP_QUERY_URL = "https://www.google.com/maps?&q={query}&z={zoom}"
MAP_COORD_URL = "https://www.google.com/maps/@{lat},{lng},{zoom}z"

_TEL_STRIP_RE = re.compile(r"[^+0-9]")


def format_phone_for_tel(phone: Optional[str]) -> str:
    """Keep only ``+`` and digits so the value can go into a ``tel:`` link."""
    if not phone:
        return ""
    return _TEL_STRIP_RE.sub("", phone)


def display_lang(doctor: Doctor, lang: str) -> str:
    """Per-row doctors are shown in their own language, others in ``lang``."""
    return doctor.lang or lang or PRIMARY_LANG


def display_name(doctor: Doctor, lang: str) -> str:
    return (
        doctor.names.get(lang)
        or doctor.names.get(PRIMARY_LANG)
        or doctor.names.first()
        or translate("unknown", lang)
    )


def address_query(doctor: Doctor, lang: str) -> str:
    parts = [
        resolve_label(doctor.addresses, lang) or doctor.address,
        resolve_label(doctor.areas, lang),
        resolve_label(doctor.districts, lang),
        resolve_label(doctor.cities, lang),
    ]
    seen: List[str] = []
    for part in parts:
        if part and part not in seen:
            seen.append(part)
    return " ".join(seen).strip()


def map_url(doctor: Doctor, lang: str) -> Optional[str]:
    """Google Maps link; an address search is preferred over coordinates."""
    query = address_query(doctor, lang)
    if query:
        return MAP_QUERY_URL.format(query=quote(query, safe=""), zoom=MAP_ZOOM)
    if doctor.has_coordinates():
        return MAP_COORD_URL.format(
            lat=quote(doctor.lat, safe=""),
            lng=quote(doctor.lng, safe=""),
            zoom=MAP_ZOOM,
        )
    return None


def doctor_card(doctor: Doctor, lang: str) -> Dict[str, Any]:
    """Flatten a doctor into the strings one listing entry shows."""
    card_lang = display_lang(doctor, lang)
    phone = resolve_label(doctor.phones, card_lang) or doctor.phones.first()
    opening = resolve_label(doctor.openings, card_lang) or doctor.openings.first()
    return {
        "key": doctor.key,
        "id": doctor.doc_id,
        "lang": card_lang,
        "name": display_name(doctor, card_lang),
        "specialty": resolve_label(doctor.specialties, card_lang) or PLACEHOLDER,
        "city": resolve_label(doctor.cities, card_lang),
        "district": resolve_label(doctor.districts, card_lang),
        "area": resolve_label(doctor.areas, card_lang),
        "phone": phone,
        "tel": format_phone_for_tel(phone),
        "opening": opening,
        "remark": resolve_label(doctor.remarks, card_lang),
        "map_url": map_url(doctor, card_lang),
        "cta_link": doctor.cta_link,
    }


def _options_html(name: str, all_label: str, options: Iterable[str], selected: str) -> str:
    parts = [f'<select name="{name}" class="form-select">', f'<option value="">{escape(all_label)}</option>']
    for opt in options:
        sel = " selected" if opt == selected else ""
        parts.append(f'<option value="{escape(opt)}"{sel}>{escape(opt or PLACEHOLDER)}</option>')
    parts.append("</select>")
    return "".join(parts)


def _card_html(card: Dict[str, Any], lang: str) -> str:
    location = " • ".join([card["city"], card["district"], card["area"]])
    phone = card["phone"]
    lines = [
        '<div class="col-md-12"><div class="card h-100"><div class="card-body d-flex flex-column">',
        f'<h5 class="card-title">{escape(card["name"])}</h5>',
        f'<div class="meta mb-2">{escape(card["specialty"])}</div>',
        f'<div class="text-muted mb-2">{escape(location)}</div>',
        f'<div><strong>{escape(translate("phoneLabel", lang))}: </strong> '
        f'<a href="tel:{escape(card["tel"])}">{escape(phone or PLACEHOLDER)}</a></div>',
        f'<div class="mb-3"><strong>{escape(translate("openingLabel", lang))}: </strong> '
        f'{escape(card["opening"] or PLACEHOLDER)}</div>',
    ]
    if card["remark"]:
        lines.append(f'<div class="mb-3"><strong>{escape(translate("remarkLabel", lang))}: </strong> {escape(card["remark"])}</div>')
    lines.append('<div class="mt-auto d-flex gap-2">')
    if phone:
        lines.append(f'<a class="btn btn-primary btn-sm" href="tel:{escape(card["tel"])}">{escape(translate("callToBook", lang))}</a>')
    else:
        lines.append(
            '<button class="btn btn-secondary btn-sm disabled" type="button" aria-disabled="true">'
            f'{escape(translate("callToBook", lang))}</button>'
        )
    if card["map_url"]:
        lines.append(
            f'<a class="btn btn-outline-secondary btn-sm map-link" target="_blank" rel="noopener" '
            f'href="{escape(card["map_url"])}">{escape(translate("map", lang))}</a>'
        )
    lines.append("</div></div></div></div>")
    return "".join(lines)


def render_results_html(doctors: List[Doctor], lang: str) -> str:
    """Result list plus counter, as used by the server-rendered page."""
    count = f'<div id="resultCount">{escape(doctors_count(len(doctors), lang))}</div>'
    if not doctors:
        return count + f'<div class="col-12"><div class="card"><div class="card-body meta">{escape(translate("noDoctors", lang))}</div></div></div>'
    return count + "".join(_card_html(doctor_card(d, lang), lang) for d in doctors)


def render_error_html(lang: str) -> str:
    return (
        f'<div id="resultCount">{escape(doctors_count(0, lang))}</div>'
        f'<div class="col-12"><div class="card"><div class="card-body text-danger">{escape(translate("errorLoading", lang))}</div></div></div>'
    )


def render_page(state: Optional[ViewState], doctors: List[Doctor], lang: str, error: bool = False) -> str:
    """Complete HTML page with the filter form and the listing."""
    if error or state is None:
        form = ""
        body = render_error_html(lang)
    else:
        sel = state.selection
        form = "".join([
            '<form method="get" class="filters">',
            f'<input type="hidden" name="lang" value="{escape(lang)}">',
            f'<input type="search" name="q" value="{escape(sel.query)}" placeholder="{escape(translate("searchPlaceholder", lang))}">',
            _options_html("specialty", translate("allSpecialties", lang), state.specialty_options, sel.specialty),
            _options_html("city", translate("allCities", lang), state.city_options, sel.city),
            _options_html("district", translate("allDistricts", lang), state.district_options, sel.district),
            _options_html("area", translate("allAreas", lang), state.area_options, sel.area),
            '<button type="submit">OK</button>',
            f'<a href="?lang={escape(lang.lower())}&amp;city=">{escape(translate("clearFilters", lang))}</a>',
            "</form>",
        ])
        body = render_results_html(doctors, lang)
    # brand contains trusted markup from the translation table
    return (
        f'<!DOCTYPE html><html lang="{escape(lang)}"><head><meta charset="utf-8">'
        f'<title>MixCare</title></head><body>'
        f'<h1 id="brandTitle">{translate("brand", lang)}</h1>'
        f'{form}<div id="results" class="row">{body}</div></body></html>'
    )
