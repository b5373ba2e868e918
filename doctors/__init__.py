"""Multilingual doctor directory: normalization, vocabularies and filtering."""

# Package exports should be side-effect free.

from . import (
    models,
    language,
    normalizer,
    vocabulary,
    filters,
    view_state,
    storage,
    presentation,
)

__all__ = [
    "models",
    "language",
    "normalizer",
    "vocabulary",
    "filters",
    "view_state",
    "storage",
    "presentation",
]
