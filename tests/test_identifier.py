import pytest

from awb_tracker.services.identifier import split_mawb


@pytest.mark.parametrize("raw, expected", [
    ("123-45678901", ("123", "45678901")),
    ("  618-12345675 ", ("618", "12345675")),
    ("618 - 1234 5675", ("618", "12345675")),
    # hyphen split is verbatim, no digit validation
    ("AB-XYZ", ("AB", "XYZ")),
    ("12345678901", ("123", "45678901")),
    ("123 45678901", ("123", "45678901")),
    # embedded pattern still matches
    ("MAWB:12345678901/X", ("123", "45678901")),
])
def test_split_accepts(raw, expected):
    parts = split_mawb(raw)
    assert tuple(parts) == expected
    assert parts.is_valid


@pytest.mark.parametrize("raw", ["ABCDEF", "", "   ", "1234567", "123-", "-"])
def test_split_rejects(raw):
    parts = split_mawb(raw)
    assert tuple(parts) == ("", "")
    assert not parts.is_valid


def test_multiple_hyphens_fall_through_to_digit_pattern():
    assert tuple(split_mawb("X-123-45678901")) == ("123", "45678901")
    assert tuple(split_mawb("A-B-C")) == ("", "")


def test_leading_hyphen_falls_through():
    assert tuple(split_mawb("-12345678901")) == ("123", "45678901")


def test_none_is_rejected():
    assert not split_mawb(None).is_valid


def test_non_ascii_digits_are_not_identifiers():
    # Arabic-Indic and fullwidth digits
    assert not split_mawb("١٢٣٤٥٦٧٨٩٠١").is_valid
    assert not split_mawb("１２３ ４５６７８９０１").is_valid
