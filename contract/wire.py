"""Wire shapes returned by the price contract.

Contract return values arrive in a handful of encodings. They are classified
once, where they enter the process, into one of these variants:

    Plain         a native str, int or bool
    ChunkedBytes  a string as 31-byte words plus a length-tagged pending word
    SplitWide     a 256-bit integer as two 128-bit words (low, high)
    Unknown       anything else, kept verbatim

The node itself answers with a flat list of felts; FeltReader walks that list
following the contract's serialization layout and yields the same variants.
"""
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

T = TypeVar('T')

WORD_BYTES = 31


class DecodeError(Exception):
    """Raised when a contract response does not match the expected layout."""
    pass


@dataclass(frozen=True)
class Plain:
    value: Union[str, int, bool]


@dataclass(frozen=True)
class ChunkedBytes:
    words: Tuple[int, ...]
    pending_word: int
    pending_word_len: int


@dataclass(frozen=True)
class SplitWide:
    low: int
    high: int


@dataclass(frozen=True)
class Unknown:
    value: Any


WireValue = Union[Plain, ChunkedBytes, SplitWide, Unknown]


def to_int(value: Any) -> int:
    """Parse a felt given as int, decimal string or 0x-prefixed hex string.

    Raises:
        DecodeError: If the value is not a non-negative integer
    """
    if isinstance(value, bool):
        raise DecodeError(f"Expected integer, got bool {value!r}")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith('0x'):
                result = int(text, 16)
            elif text.isdigit():
                result = int(text, 10)
            else:
                raise ValueError(text)
        except ValueError:
            raise DecodeError(f"Not a numeric value: {value!r}")
    else:
        raise DecodeError(f"Expected integer, got {type(value).__name__}")
    if result < 0:
        raise DecodeError(f"Negative value: {value!r}")
    return result


def classify(raw: Any) -> WireValue:
    """Decide which wire shape a raw contract value has."""
    if isinstance(raw, (Plain, ChunkedBytes, SplitWide, Unknown)):
        return raw
    if isinstance(raw, (str, int, bool)):
        return Plain(raw)
    try:
        if isinstance(raw, Mapping):
            if 'low' in raw and 'high' in raw:
                return SplitWide(to_int(raw['low']), to_int(raw['high']))
            if isinstance(raw.get('data'), (list, tuple)):
                return ChunkedBytes(
                    tuple(to_int(word) for word in raw['data']),
                    to_int(raw.get('pending_word') or 0),
                    to_int(raw.get('pending_word_len') or 0)
                )
        elif isinstance(raw, (list, tuple)) and len(raw) == 2:
            return SplitWide(to_int(raw[0]), to_int(raw[1]))
    except DecodeError:
        pass
    return Unknown(raw)


class FeltReader:
    """Cursor over a flat felt response."""

    def __init__(self, felts: Sequence[Any]):
        self._felts = list(felts)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._felts) - self._pos

    def take(self, count: int) -> List[Any]:
        """Consume `count` raw felts without interpreting them."""
        if count < 0 or count > self.remaining:
            raise DecodeError(
                f"Response truncated: wanted {count} felts at offset {self._pos}, "
                f"{self.remaining} left"
            )
        chunk = self._felts[self._pos:self._pos + count]
        self._pos += count
        return chunk

    def read_felt(self) -> int:
        return to_int(self.take(1)[0])

    def read_plain(self) -> Plain:
        return Plain(self.read_felt())

    def read_u256(self) -> SplitWide:
        low = self.read_felt()
        high = self.read_felt()
        return SplitWide(low, high)

    def read_byte_array(self) -> ChunkedBytes:
        count = self.read_felt()
        words = tuple(to_int(word) for word in self.take(count))
        pending_word = self.read_felt()
        pending_word_len = self.read_felt()
        if pending_word_len >= WORD_BYTES:
            raise DecodeError(f"Pending word length {pending_word_len} out of range")
        return ChunkedBytes(words, pending_word, pending_word_len)

    def read_array(self, read_item: Callable[['FeltReader'], T]) -> List[T]:
        count = self.read_felt()
        return [read_item(self) for _ in range(count)]

    def expect_end(self) -> None:
        if self.remaining:
            raise DecodeError(f"{self.remaining} unexpected trailing felts")


def as_reader(felts: Optional[Sequence[Any]]) -> FeltReader:
    if felts is None:
        raise DecodeError("Empty response")
    if isinstance(felts, (str, bytes)) or not isinstance(felts, Sequence):
        raise DecodeError(f"Expected a felt list, got {type(felts).__name__}")
    return FeltReader(felts)
