"""
Pytest configuration: ensure project root is on sys.path for imports.

Tests import the local `doctors` package and the root modules (`server`,
`utils`, `runtime_config`) directly. This hook prepends the repo root so
imports work consistently, and provides a small bilingual data set.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _add_repo_root_to_sys_path() -> None:
    # tests/ -> repo root
    root = Path(__file__).resolve().parents[1]
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_add_repo_root_to_sys_path()


@pytest.fixture
def tan_rows():
    return [
        {"doc_id": "1", "lang": "en", "doc_name": "Tan", "city_name": "Hong Kong"},
        {"doc_id": "1", "lang": "zh-HK", "doc_name": "陳", "city_name": "香港"},
    ]


@pytest.fixture
def sample_rows():
    return [
        {
            "doc_id": "1",
            "lang": "en",
            "doc_name": "Tan",
            "doc_address": "1 Pedder Street",
            "doc_tel_A": "+852 2521-1234",
            "doc_cat_name": "General Practice",
            "area_name": "Pedder Street",
            "district_name": "Central",
            "city_name": "Hong Kong",
            "doc_lat": "22.28",
            "doc_long": "114.15",
            "cta_link": "https://example.org/1",
        },
        {
            "doc_id": "1",
            "lang": "zh-HK",
            "doc_name": "陳",
            "doc_address": "畢打街1號",
            "doc_cat_name": "普通科",
            "area_name": "畢打街",
            "district_name": "中環",
            "city_name": "香港",
            "doc_lat": "99",
            "doc_long": "99",
            "cta_link": "https://example.org/other",
        },
        {
            "doc_id": "2",
            "lang": "en",
            "doc_name": "Wong",
            "doc_cat_name": "Cardiology",
            "area_name": "Tsim Sha Tsui",
            "district_name": "Yau Tsim Mong",
            "city_name": "Kowloon",
        },
        {
            "doc_id": "3",
            "lang": "zh-HK",
            "doc_name": "張",
            "doc_cat_name": "Cardiology",
            "district_name": "沙田",
            "city_name": "新界",
        },
    ]
