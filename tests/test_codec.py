import pytest

from contract import (
    MAX_TEXT_BYTES, ChunkedBytes, FeltReader, decode_bool, decode_string, decode_wide,
    encode_byte_array, encode_felt, encode_wide, get_selector_from_name, text_length
)


@pytest.mark.parametrize("raw,expected", [
    ({'low': 150000, 'high': 0}, 150000),
    ({'low': '150000', 'high': '0'}, 150000),
    ({'low': 5, 'high': 1}, 5 + 2**128),
    ({'low': '0x10', 'high': '0x2'}, 16 + 2 * 2**128),
    (['7', '0'], 7),
    ([3, 1], 3 + 2**128),
])
def test_decode_wide_split(raw, expected):
    """Split integers recombine as low + high * 2**128"""
    assert decode_wide(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    (42, 42),
    ("42", 42),
    ("0x2a", 42),
    ("0X2A", 42),
])
def test_decode_wide_plain(raw, expected):
    assert decode_wide(raw) == expected


@pytest.mark.parametrize("raw", [
    None,
    "abc",
    "-5",
    "",
    1.5,
    {'foo': 1},
    [1, 2, 3],
    {'low': 'x', 'high': 0},
    {'data': [], 'pending_word': 0, 'pending_word_len': 0},
])
def test_decode_wide_unreadable_is_zero(raw):
    assert decode_wide(raw) == 0


@pytest.mark.parametrize("raw,expected", [
    (True, True),
    (1, True),
    ("1", True),
    (False, False),
    (0, False),
    ("0", False),
    ("true", False),
    (2, False),
    (None, False),
    ({'low': 1, 'high': 0}, False),
])
def test_decode_bool(raw, expected):
    assert decode_bool(raw) is expected


def test_decode_string_native_unchanged():
    assert decode_string("Supermercado Enor") == "Supermercado Enor"
    assert decode_string("") == ""


def test_decode_string_none_is_empty():
    assert decode_string(None) == ""


def test_decode_string_short_string_felt():
    assert decode_string(int.from_bytes(b"hello", 'big')) == "hello"


def test_decode_string_chunked():
    first = b"a" * 31
    raw = {
        'data': [int.from_bytes(first, 'big')],
        'pending_word': hex(int.from_bytes(b"bc", 'big')),
        'pending_word_len': 2
    }
    assert decode_string(raw) == "a" * 31 + "bc"


def test_decode_string_unknown_falls_back_to_str():
    assert decode_string(12.5) == "12.5"
    assert decode_string(['x']) == "['x']"


@pytest.mark.parametrize("text", [
    "",
    "Kiosco",
    "a" * 31,
    "a" * 45,
    "Almacén Ñandú",
    "x" * 93,
])
def test_byte_array_decodes_back(text):
    reader = FeltReader(encode_byte_array(text))
    assert decode_string(reader.read_byte_array()) == text
    reader.expect_end()


def test_encode_byte_array_layout():
    word = str(int.from_bytes(b"a" * 31, 'big'))
    assert encode_byte_array("a" * 31) == ['1', word, '0', '0']
    assert encode_byte_array("hi") == ['0', str(int.from_bytes(b"hi", 'big')), '2']
    assert encode_byte_array("") == ['0', '0', '0']


def test_encode_wide():
    assert encode_wide(150000) == ['150000', '0']
    assert encode_wide(2**128 + 5) == ['5', '1']
    assert decode_wide(encode_wide(2**200 + 9)) == 2**200 + 9


@pytest.mark.parametrize("value", [-1, 2**256, 1.5, True, "10"])
def test_encode_wide_rejects(value):
    with pytest.raises(ValueError):
        encode_wide(value)


def test_encode_felt():
    assert encode_felt("12") == "12"
    assert encode_felt("0x1f") == "31"
    assert encode_felt(7) == "7"
    with pytest.raises(ValueError):
        encode_felt("store-1")
    with pytest.raises(ValueError):
        encode_felt(2**252)


def test_text_length_counts_bytes():
    assert MAX_TEXT_BYTES == 31
    assert text_length("abc") == 3
    assert text_length("ñ") == 2


def test_selector():
    assert get_selector_from_name("transfer") == (
        "0x83afd3f4caedc6eebf44246fe54e38c95e3179a5ec9ea81740eca5b482d12e"
    )
    assert get_selector_from_name("__default__") == "0x0"
    assert int(get_selector_from_name("get_all_stores"), 16) < 2**250


def test_pending_word_truncated_to_declared_length():
    word = int.from_bytes(b"abc", 'big')

    assert decode_string(ChunkedBytes((), word, 2)) == "ab"
    assert decode_string(FeltReader(["0", hex(word), "2"]).read_byte_array()) == "ab"


def test_zero_length_pending_word_is_ignored():
    full = int.from_bytes(b"x" * 31, 'big')

    assert decode_string(ChunkedBytes((), int.from_bytes(b"zz", 'big'), 0)) == ""
    assert decode_string(ChunkedBytes((full,), 7, 0)) == "x" * 31


def test_short_words_are_left_padded():
    assert decode_string(ChunkedBytes((), int.from_bytes(b"\x00hi", 'big'), 3)) == "\x00hi"
    assert decode_string({'data': [], 'pending_word': '0x6869', 'pending_word_len': '2'}) == "hi"
