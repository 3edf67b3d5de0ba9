"""Code generator, currency and QR helper tests."""

from collections import Counter

import pytest

from fbop.utils.codes import CODE_ALPHABET, generate_code, normalize_code
from fbop.utils.money import format_currency, parse_currency
from fbop.utils.qr import decode_scan, encode_qr_base64, encode_qr_png


def test_alphabet_excludes_confusable_characters():
    assert len(CODE_ALPHABET) == 29
    assert len(set(CODE_ALPHABET)) == 29
    for ch in "0O1IL":
        assert ch not in CODE_ALPHABET


def test_generate_code_default_length_and_symbols():
    code = generate_code()
    assert len(code) == 8
    assert set(code) <= set(CODE_ALPHABET)


def test_generate_code_custom_length_and_alphabet():
    assert len(generate_code(6)) == 6
    assert generate_code(4, "A") == "AAAA"


@pytest.mark.parametrize("length, alphabet", [(0, CODE_ALPHABET), (-1, CODE_ALPHABET), (8, "")])
def test_generate_code_rejects_bad_arguments(length, alphabet):
    with pytest.raises(ValueError):
        generate_code(length, alphabet)


def test_generate_code_uses_whole_alphabet():
    counts = Counter("".join(generate_code() for _ in range(2000)))
    assert set(counts) == set(CODE_ALPHABET)


def test_generated_codes_are_independent():
    codes = {generate_code() for _ in range(1000)}
    assert len(codes) == 1000


def test_normalize_code():
    assert normalize_code("  ab23xz7k\n") == "AB23XZ7K"


@pytest.mark.parametrize("cents, text", [
    (0, "$0.00"),
    (5, "$0.05"),
    (1234, "$12.34"),
    (-105, "-$1.05"),
    (100000, "$1000.00"),
])
def test_format_currency(cents, text):
    assert format_currency(cents) == text


@pytest.mark.parametrize("text, cents", [
    ("12.34", 1234),
    ("12", 1200),
    (".5", 50),
    ("$3.1", 310),
    ("-2.50", -250),
    ("-$2", -200),
    ("1.239", 123),
    (" 7. ", 700),
    ("abc", None),
    ("", None),
    ("$", None),
    ("1,000", None),
])
def test_parse_currency(text, cents):
    assert parse_currency(text) == cents


def test_qr_png_encoding():
    png = encode_qr_png("QZ4K8MNP")
    assert png.startswith(b"\x89PNG\r\n\x1a\n")
    assert encode_qr_base64("QZ4K8MNP").startswith("iVBOR")


def test_decode_scan_normalizes():
    assert decode_scan(" qz4k8mnp ") == "QZ4K8MNP"
    with pytest.raises(ValueError):
        decode_scan("   ")
