"""Contract module for the store price contract.

This module provides:
1. Classification of contract return values into wire shapes
2. Decoding of those shapes into native strings, integers and booleans
3. Calldata encoding for writes
4. A read adapter (ContractReader) and a write adapter (ContractWriter)
"""

from .wire import (
    DecodeError, Plain, ChunkedBytes, SplitWide, Unknown, WireValue,
    FeltReader, classify
)
from .codec import (
    MAX_TEXT_BYTES, decode_string, decode_wide, decode_bool,
    encode_felt, encode_wide, encode_byte_array, get_selector_from_name, text_length
)
from .display import format_price, price_to_display, format_relative, is_old_price
from .models import (
    Price, Store, NewStore, Report, PriceDisplay, StoreWithPrice,
    StorePreview, CurrentPrice, Call, ExecutionResult
)
from .reader import ContractReader
from .writer import (
    ContractWriter, WriteError, WriteValidationError, SubmissionError,
    PRICE_ENCODERS, encode_price_split, encode_price_plain
)

__all__ = [
    # Wire shapes
    'DecodeError', 'Plain', 'ChunkedBytes', 'SplitWide', 'Unknown', 'WireValue',
    'FeltReader', 'classify',
    # Codec
    'MAX_TEXT_BYTES', 'decode_string', 'decode_wide', 'decode_bool',
    'encode_felt', 'encode_wide', 'encode_byte_array', 'get_selector_from_name', 'text_length',
    # Display
    'format_price', 'price_to_display', 'format_relative', 'is_old_price',
    # Models
    'Price', 'Store', 'NewStore', 'Report', 'PriceDisplay', 'StoreWithPrice',
    'StorePreview', 'CurrentPrice', 'Call', 'ExecutionResult',
    # Adapters
    'ContractReader', 'ContractWriter',
    'WriteError', 'WriteValidationError', 'SubmissionError',
    'PRICE_ENCODERS', 'encode_price_split', 'encode_price_plain'
]
