import pytest

from femo_client.domain.identifier import (
    IdentifierType,
    detect_identifier_type,
    identifier_type_label,
    is_valid_femo_id,
    is_valid_femo_mail,
    sanitize_identifier,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("12345", IdentifierType.FEMO_ID),
        ("  987  ", IdentifierType.FEMO_ID),
        ("a@b.co", IdentifierType.FEMO_MAIL),
        ("Ada.Lovelace@femo.space", IdentifierType.FEMO_MAIL),
        (" ada@femo.space ", IdentifierType.FEMO_MAIL),
        ("not an id", IdentifierType.INVALID),
        ("", IdentifierType.INVALID),
        ("   ", IdentifierType.INVALID),
        ("12a45", IdentifierType.INVALID),
        ("-12", IdentifierType.INVALID),
        ("a@b", IdentifierType.INVALID),
        ("a b@c.de", IdentifierType.INVALID),
        ("a@@b.co", IdentifierType.INVALID),
        ("١٢٣", IdentifierType.INVALID),
        ("123\n", IdentifierType.FEMO_ID),
        ("\ufeff123\u3000", IdentifierType.FEMO_ID),
        ("123\x1c", IdentifierType.INVALID),
        ("\x85123", IdentifierType.INVALID),
        ("a\x1cb@c.de", IdentifierType.FEMO_MAIL),
        ("a\u2028b@c.de", IdentifierType.INVALID),
    ],
)
def test_detect_identifier_type(value, expected):
    assert detect_identifier_type(value) is expected


@pytest.mark.parametrize("value", [None, 12345, ["12345"], {"id": 1}])
def test_detect_identifier_type_is_total_for_non_strings(value):
    assert detect_identifier_type(value) is IdentifierType.INVALID


def test_identifier_type_values_match_api_names():
    assert IdentifierType.FEMO_ID.value == "femoId"
    assert IdentifierType.FEMO_MAIL.value == "femoMail"
    assert IdentifierType.INVALID.value == "invalid"


def test_validators_and_sanitizer():
    assert is_valid_femo_id("0042")
    assert not is_valid_femo_id("42.0")
    assert is_valid_femo_mail("x@y.zz")
    assert not is_valid_femo_mail("x@y")
    assert sanitize_identifier("  Ada@Femo.Space ") == "ada@femo.space"


def test_identifier_type_label():
    assert identifier_type_label(IdentifierType.FEMO_ID) == "Femo ID"
    assert identifier_type_label(IdentifierType.FEMO_MAIL) == "Femo Mail"
    assert identifier_type_label(IdentifierType.INVALID) == "Invalid"


def test_trimming_matches_browser_whitespace():
    assert sanitize_identifier("\ufeff Ada@Femo.Space\xa0") == "ada@femo.space"
    assert sanitize_identifier("ada@femo.space\x1f") == "ada@femo.space\x1f"
    assert is_valid_femo_id("\u2003 42 \u2003")
    assert not is_valid_femo_id("42\x1e")
