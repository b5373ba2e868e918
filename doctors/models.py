"""Dataclasses representing the normalized doctor directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

PRIMARY_LANG = "en"

# Lookup order after the requested language: HK Chinese, mainland Chinese, English.
FALLBACK_LANGS: tuple[str, ...] = ("zh-HK", "zh-CN", PRIMARY_LANG)

LOCALIZED_ATTRS: tuple[str, ...] = (
    "names",
    "addresses",
    "phones",
    "specialties",
    "openings",
    "remarks",
    "areas",
    "districts",
    "cities",
)


class NormalizationStrategy(str, Enum):
    """How raw rows are turned into :class:`Doctor` entities."""

    GROUPED = "grouped"
    PER_ROW = "per_row"

    @classmethod
    def parse(cls, value: Any) -> "NormalizationStrategy":
        """Accept enum members, names and a few spellings used in config files."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace("-", "_")
        if text in {"", "grouped", "group", "merge", "by_id"}:
            return cls.GROUPED
        if text in {"per_row", "row", "rows", "split"}:
            return cls.PER_ROW
        raise ValueError(f"Unknown normalization strategy: {value!r}")


class LangMap(dict):
    """Mapping of language tag to a non-empty value.

    Empty values are never stored; a missing language is a missing key. A
    second non-empty value for the same language replaces the first.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__()
        for lang, value in (data or {}).items():
            self.put(lang, value)

    def __setitem__(self, lang: str, value: Any) -> None:
        self.put(lang, value)

    def update(self, *args: Any, **kwargs: Any) -> None:
        for lang, value in dict(*args, **kwargs).items():
            self.put(lang, value)

    def setdefault(self, lang: str, value: Any = None) -> Any:
        if lang not in self:
            self.put(lang, value)
        return self.get(lang)

    def __ior__(self, other: Any) -> "LangMap":
        self.update(other)
        return self

    def put(self, lang: str, value: Any) -> None:
        text = clean_value(value)
        if not text:
            return
        super().__setitem__(str(lang), text)

    def resolve(self, lang: str, fallbacks: Iterable[str] = FALLBACK_LANGS) -> str:
        """Return the value for ``lang`` or the first fallback language present."""
        value = self.get(lang)
        if value:
            return value
        for candidate in fallbacks:
            value = self.get(candidate)
            if value:
                return value
        return ""

    def first(self) -> str:
        for value in self.values():
            return value
        return ""

    def joined(self, sep: str = " ") -> str:
        return sep.join(self.values())

    def matches(self, label: str) -> bool:
        """True if any language value equals ``label`` ignoring case."""
        wanted = (label or "").lower()
        return any(value.lower() == wanted for value in self.values())


def clean_value(value: Any) -> str:
    """Convert a raw field value to a stripped string; ``None`` becomes ``""``."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


@dataclass
class Doctor:
    """A normalized directory entry.

    Attributes:
        key: Identity inside the collection (``doc_id`` when grouped,
            ``doc_id|lang|position`` when built per row).
        doc_id: Identifier shared by all rows of the same doctor.
        lang: Language of the seeding row; only set for per-row entities.
        position: Input index of the row that created the entity.
        address: Fallback address from the first row seen.
    """

    key: str
    doc_id: str
    lang: Optional[str] = None
    position: int = 0
    names: LangMap = field(default_factory=LangMap)
    addresses: LangMap = field(default_factory=LangMap)
    phones: LangMap = field(default_factory=LangMap)
    specialties: LangMap = field(default_factory=LangMap)
    openings: LangMap = field(default_factory=LangMap)
    remarks: LangMap = field(default_factory=LangMap)
    areas: LangMap = field(default_factory=LangMap)
    districts: LangMap = field(default_factory=LangMap)
    cities: LangMap = field(default_factory=LangMap)
    address: str = ""
    lat: str = ""
    lng: str = ""
    cta_link: str = ""

    def __post_init__(self) -> None:
        for name in LOCALIZED_ATTRS:
            values = getattr(self, name)
            if not isinstance(values, LangMap):
                setattr(self, name, LangMap(values))

    def languages(self) -> List[str]:
        """All language tags observed for this doctor, in first-seen order."""
        seen: List[str] = []
        for name in LOCALIZED_ATTRS:
            for lang in getattr(self, name):
                if lang not in seen:
                    seen.append(lang)
        return seen

    def has_coordinates(self) -> bool:
        return bool(self.lat and self.lng)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "id": self.doc_id,
            "lang": self.lang,
            "names": dict(self.names),
            "addresses": dict(self.addresses),
            "phones": dict(self.phones),
            "specialties": dict(self.specialties),
            "openings": dict(self.openings),
            "remarks": dict(self.remarks),
            "areas": dict(self.areas),
            "districts": dict(self.districts),
            "cities": dict(self.cities),
            "address": self.address,
            "lat": self.lat,
            "lng": self.lng,
            "cta_link": self.cta_link,
        }


@dataclass
class Vocabulary:
    """Filter options in a single display language.

    ``cities`` maps city label -> district label -> area labels. Doctors
    without a city (or district) are kept under the ``""`` key. ``use_fallback``
    records whether labels missing in ``lang`` were taken from another language.
    """

    lang: str = PRIMARY_LANG
    specialties: Set[str] = field(default_factory=set)
    cities: Dict[str, Dict[str, Set[str]]] = field(default_factory=dict)
    use_fallback: bool = True

    def sorted_specialties(self) -> List[str]:
        return sorted(self.specialties)

    def sorted_cities(self) -> List[str]:
        return sorted(self.cities)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lang": self.lang,
            "specialties": self.sorted_specialties(),
            "cities": {
                city: {district: sorted(areas) for district, areas in sorted(districts.items())}
                for city, districts in sorted(self.cities.items())
            },
        }


@dataclass(frozen=True)
class FilterSelection:
    """Current filter input. An empty string means "no constraint"."""

    query: str = ""
    specialty: str = ""
    city: str = ""
    district: str = ""
    area: str = ""

    def is_empty(self) -> bool:
        return not (self.query.strip() or self.specialty or self.city or self.district or self.area)
