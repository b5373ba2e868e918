from doctors.models import NormalizationStrategy
from doctors.normalizer import (
    LOCALIZED_FIELDS,
    count_distinct_ids,
    normalize_records,
)


def test_grouped_scenario_merges_languages(tan_rows):
    doctors = normalize_records(tan_rows, NormalizationStrategy.GROUPED)
    assert len(doctors) == 1
    doctor = doctors[0]
    assert doctor.key == "1"
    assert doctor.names == {"en": "Tan", "zh-HK": "陳"}
    assert doctor.cities == {"en": "Hong Kong", "zh-HK": "香港"}
    assert doctor.lang is None


def test_grouped_count_equals_distinct_ids(sample_rows):
    doctors = normalize_records(sample_rows, "grouped")
    assert len(doctors) == count_distinct_ids(sample_rows) == 3
    assert [d.key for d in doctors] == ["1", "2", "3"]


def test_per_row_count_equals_rows(sample_rows):
    doctors = normalize_records(sample_rows, NormalizationStrategy.PER_ROW)
    assert len(doctors) == len(sample_rows)
    assert [d.key for d in doctors] == ["1|en|0", "1|zh-HK|1", "2|en|2", "3|zh-HK|3"]
    for doctor in doctors:
        assert list(doctor.names) == [doctor.lang]


def test_per_row_keys_unique_for_duplicate_rows():
    rows = [{"doc_id": "9", "lang": "en", "doc_name": "A"}, {"doc_id": "9", "lang": "en", "doc_name": "B"}]
    doctors = normalize_records(rows, NormalizationStrategy.PER_ROW)
    assert len({d.key for d in doctors}) == 2
    assert doctors[0].doc_id == doctors[1].doc_id == "9"


def test_grouped_seed_fields_come_from_first_row(sample_rows):
    doctor = normalize_records(sample_rows)[0]
    assert doctor.address == "1 Pedder Street"
    assert doctor.lat == "22.28"
    assert doctor.lng == "114.15"
    assert doctor.cta_link == "https://example.org/1"
    # later rows still contribute their localized address
    assert doctor.addresses == {"en": "1 Pedder Street", "zh-HK": "畢打街1號"}


def test_grouped_duplicate_language_last_write_wins():
    rows = [
        {"doc_id": "1", "lang": "en", "doc_name": "Tan", "doc_cat_name": "GP"},
        {"doc_id": "1", "lang": "en", "doc_name": "Tan Wai Man"},
    ]
    doctor = normalize_records(rows)[0]
    assert doctor.names == {"en": "Tan Wai Man"}
    assert doctor.specialties == {"en": "GP"}


def test_normalization_completeness(sample_rows):
    for strategy in NormalizationStrategy:
        doctors = normalize_records(sample_rows, strategy)
        for row in sample_rows:
            lang = row["lang"]
            owners = [d for d in doctors if d.doc_id == row["doc_id"] and (d.lang in (None, lang))]
            assert owners
            for raw_key, attr in LOCALIZED_FIELDS.items():
                value = row.get(raw_key)
                if value:
                    assert any(getattr(d, attr).get(lang) for d in owners)


def test_missing_lang_defaults_to_english():
    doctor = normalize_records([{"doc_id": "7", "doc_name": "Lee"}])[0]
    assert doctor.names == {"en": "Lee"}


def test_missing_ids_collapse_in_grouped_mode():
    rows = [{"doc_name": "A"}, {"doc_name": "B", "lang": "zh-HK"}, {"doc_id": None, "doc_name": "C", "lang": "fr"}]
    grouped = normalize_records(rows)
    assert len(grouped) == 1
    assert grouped[0].doc_id == ""
    assert grouped[0].names == {"en": "A", "zh-HK": "B", "fr": "C"}
    assert len(normalize_records(rows, NormalizationStrategy.PER_ROW)) == 3


def test_absent_values_are_missing_keys():
    doctor = normalize_records([{"doc_id": "1", "lang": "en", "doc_name": "Tan", "doc_cat_name": ""}])[0]
    assert doctor.specialties == {}
    assert "en" not in doctor.phones


def test_non_object_rows_are_skipped(caplog):
    doctors = normalize_records([{"doc_id": "1", "doc_name": "Tan"}, "garbage", None])
    assert len(doctors) == 1
    assert "übersprungen" in caplog.text
