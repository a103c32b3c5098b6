# tests/services/whatsapp/test_phone.py
import pytest

from distribuidora.services.whatsapp import InvalidRecipient, normalize_recipient


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("(88) 99671-0011", "5588996710011"),
        ("88 99671-0011", "5588996710011"),
        ("88996710011", "5588996710011"),
        ("5588996710011", "5588996710011"),
        ("+55 (88) 99671-0011", "5588996710011"),
    ],
)
def test_normalize_recipient(raw, expected):
    assert normalize_recipient(raw) == expected


def test_normalize_recipient_is_idempotent():
    once = normalize_recipient("(88) 99671-0011")
    assert normalize_recipient(once) == once


def test_normalize_recipient_custom_prefix():
    assert normalize_recipient("912 345 678", country_prefix="351") == "351912345678"


@pytest.mark.parametrize("raw", ["", "   ", "(--)", None])
def test_normalize_recipient_without_digits(raw):
    with pytest.raises(InvalidRecipient):
        normalize_recipient(raw)
