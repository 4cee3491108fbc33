"""Value decoding and calldata encoding for the price contract.

Decoders never raise: an unreadable value decodes to an empty/zero default and
a warning is logged. Encoders produce calldata in the ledger's native format,
every felt as a decimal string.
"""
import logging
from functools import lru_cache
from typing import Any, List, Union

from Crypto.Hash import keccak

from .wire import (
    WORD_BYTES, ChunkedBytes, DecodeError, Plain, SplitWide,
    classify, to_int
)

logger = logging.getLogger(__name__)

# Felts are integers modulo this prime
FELT_PRIME = 2**251 + 17 * 2**192 + 1
WIDE_LIMIT = 2**256
HALF_BITS = 128
HALF_MASK = 2**HALF_BITS - 1
SELECTOR_MASK = 2**250 - 1

# Store fields and report descriptions must fit a single word
MAX_TEXT_BYTES = WORD_BYTES

DEFAULT_ENTRY_POINTS = ('__default__', '__l1_default__')


def decode_short_string(felt: int) -> str:
    """Decode a felt holding up to 31 big-endian ASCII/UTF-8 bytes."""
    data = felt.to_bytes((felt.bit_length() + 7) // 8, 'big')
    return data.decode('utf-8', errors='replace')


def _word_bytes(word: int, length: int) -> bytes:
    """The first `length` bytes of a word, left-padded with zeros when shorter."""
    data = word.to_bytes((word.bit_length() + 7) // 8, 'big')
    return data.rjust(length, b'\x00')[:length]


def _chunked_to_bytes(shape: ChunkedBytes) -> bytes:
    data = b''.join(_word_bytes(word, WORD_BYTES) for word in shape.words)
    return data + _word_bytes(shape.pending_word, shape.pending_word_len)


def decode_string(raw: Any) -> str:
    """Decode a contract string value into a native str."""
    if raw is None:
        return ''
    shape = classify(raw)
    if isinstance(shape, Plain):
        if isinstance(shape.value, str):
            return shape.value
        if isinstance(shape.value, bool):
            return str(shape.value)
        return decode_short_string(shape.value)
    elif isinstance(shape, ChunkedBytes):
        return _chunked_to_bytes(shape).decode('utf-8', errors='replace')
    elif isinstance(shape, SplitWide):
        logger.warning(f"Got a split integer where a string was expected: {raw!r}")
    else:
        logger.warning(f"Unknown string shape {type(shape.value).__name__}: {raw!r}")
    return str(raw)


def decode_wide(raw: Any) -> int:
    """Decode a 256-bit contract integer; unreadable input decodes to 0."""
    shape = classify(raw)
    if isinstance(shape, Plain):
        try:
            return to_int(shape.value)
        except DecodeError as e:
            logger.warning(f"Failed to parse integer {raw!r}: {e}")
            return 0
    elif isinstance(shape, SplitWide):
        if shape.high == 0:
            return shape.low
        return shape.low + (shape.high << HALF_BITS)
    elif isinstance(shape, ChunkedBytes):
        logger.warning(f"Got a byte array where an integer was expected: {raw!r}")
        return 0
    else:
        logger.warning(f"Failed to convert {raw!r} to integer")
        return 0


def decode_bool(raw: Any) -> bool:
    """True only for True, 1 and "1"."""
    shape = classify(raw)
    if isinstance(shape, Plain):
        value = shape.value
        if isinstance(value, bool):
            return value
        return value == 1 or value == "1"
    return False


def encode_felt(value: Union[int, str]) -> str:
    """Encode an id or address as a decimal felt string.

    Raises:
        ValueError: If the value is not an integer in felt range
    """
    try:
        number = to_int(value)
    except DecodeError as e:
        raise ValueError(str(e)) from e
    if number >= FELT_PRIME:
        raise ValueError(f"Value does not fit a felt: {value!r}")
    return str(number)


def encode_wide(value: int) -> List[str]:
    """Encode a 256-bit integer as [low, high]."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer, got {value!r}")
    if value < 0 or value >= WIDE_LIMIT:
        raise ValueError(f"Value out of 256-bit range: {value}")
    return [str(value & HALF_MASK), str(value >> HALF_BITS)]


def encode_byte_array(text: str) -> List[str]:
    """Encode a string as [word_count, *words, pending_word, pending_word_len]."""
    data = text.encode('utf-8')
    full_words = len(data) // WORD_BYTES
    words = [
        int.from_bytes(data[i * WORD_BYTES:(i + 1) * WORD_BYTES], 'big')
        for i in range(full_words)
    ]
    pending = data[full_words * WORD_BYTES:]
    return (
        [str(len(words))]
        + [str(word) for word in words]
        + [str(int.from_bytes(pending, 'big')), str(len(pending))]
    )


def text_length(text: str) -> int:
    """Length of a string as the write path counts it, in encoded bytes."""
    return len(text.encode('utf-8'))


@lru_cache(maxsize=None)
def get_selector_from_name(entrypoint: str) -> str:
    """Entry point selector: keccak-256 of the name, truncated to 250 bits."""
    if entrypoint in DEFAULT_ENTRY_POINTS:
        return '0x0'
    digest = keccak.new(digest_bits=256, data=entrypoint.encode('ascii')).digest()
    return hex(int.from_bytes(digest, 'big') & SELECTOR_MASK)
