"""Unit tests for identifier normalization and file naming."""

import pytest

from cvenom.utils.naming import (
    compiled_pdf_name,
    normalize_language,
    normalize_profile_name,
    suggested_filename,
)
from cvenom.utils.timestamp import current_year


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Alice", "alice"),
        ("Jean Paul.Dupont", "jean-paul-dupont"),
        ("jean_paul", "jean-paul"),
        ("  Marie@Company  ", "marie-company"),
        ("a -- b", "a-b"),
        ("-edge-", "edge"),
    ],
)
def test_normalize_profile_name(raw, expected):
    assert normalize_profile_name(raw) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("en", "en"),
        ("French", "fr"),
        ("français", "fr"),
        ("anglais", "en"),
        ("Español", "es"),
        ("deutsch", "de"),
        ("it", "en"),
        (None, "en"),
        ("", "en"),
    ],
)
def test_normalize_language(raw, expected):
    assert normalize_language(raw) == expected


@pytest.mark.unit
def test_file_names():
    assert compiled_pdf_name("alice", "modern", "fr") == "alice_modern_fr.pdf"
    assert suggested_filename("alice", 2024) == "alice_CV_2024.pdf"
    assert suggested_filename("alice") == f"alice_CV_{current_year()}.pdf"
