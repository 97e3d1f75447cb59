"""Lenient base64 decoder with an up-front capacity check.

Characters outside the base64 alphabet (whitespace, newlines, control
bytes) are skipped rather than rejected. The decoded size is derived
from the text length and its trailing padding before any byte is
produced, and output is only copied into the destination once the
whole input has been decoded.
"""
import logging

logger = logging.getLogger(__name__)

BASE64_ALPHABET = b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
PAD = ord("=")
SKIP = 0x80


def _build_decode_table() -> bytes:
    table = bytearray([SKIP] * 256)
    for value, symbol in enumerate(BASE64_ALPHABET):
        table[symbol] = value
    table[PAD] = 0
    return bytes(table)


DECODE_TABLE = _build_decode_table()


class Base64Error(ValueError):
    """Base class for decode failures."""
    pass


class Base64CapacityError(Base64Error):
    """Destination capacity is smaller than the decoded length."""

    def __init__(self, required: int, capacity: int):
        super().__init__(
            f"Base64 decoded length {required} is bigger than {capacity}"
        )
        self.required = required
        self.capacity = capacity


class Base64DecodeError(Base64Error):
    """Input ended with an incomplete 4-symbol block."""
    pass


def _as_bytes(text) -> bytes:
    if isinstance(text, str):
        # Non-ASCII characters are outside the alphabet and get skipped anyway
        return text.encode("latin-1", errors="replace")
    return bytes(text)


def padding_count(text) -> int:
    """Number of trailing '=' characters (0, 1 or 2) counted for sizing."""
    data = _as_bytes(text)
    if data.endswith(b"=="):
        return 2
    if data.endswith(b"="):
        return 1
    return 0


def decoded_length(text) -> int:
    """
    Expected decoded size: (len(text) * 3) // 4 minus trailing padding.

    Skipped characters are counted in len(text), so the result is an
    upper bound for input with embedded whitespace. Empty or degenerate
    input ("=", "==") yields 0.
    """
    data = _as_bytes(text)
    return max(0, (len(data) * 3) // 4 - padding_count(data))


def decode(text, dest: bytearray, dest_capacity: int, strict: bool = False) -> int:
    """
    Decode base64 text into dest.

    Args:
        text: Encoded text (str or bytes)
        dest: Destination buffer, written from offset 0
        dest_capacity: Maximum number of bytes that may be written to dest
        strict: If True, a trailing incomplete block raises instead of
            being dropped

    Returns:
        Number of bytes written to dest

    Raises:
        Base64CapacityError: decoded_length(text) exceeds dest_capacity
        Base64DecodeError: strict mode and the symbol count is not a
            multiple of 4
    """
    data = _as_bytes(text)
    required = decoded_length(data)
    if required > dest_capacity:
        logger.warning(f"Base64 decoded length {required} is bigger than {dest_capacity}")
        raise Base64CapacityError(required, dest_capacity)

    out = bytearray()
    block = [0, 0, 0, 0]
    pads = 0
    count = 0
    for symbol in data:
        value = DECODE_TABLE[symbol]
        if value == SKIP:
            continue
        block[count] = value
        if symbol == PAD:
            pads += 1
        count += 1
        if count == 4:
            b0, b1, b2, b3 = block
            chunk = (
                ((b0 << 2) | (b1 >> 4)) & 0xFF,
                ((b1 << 4) | (b2 >> 2)) & 0xFF,
                ((b2 << 6) | b3) & 0xFF,
            )
            # '=' symbols contribute zero bits, not output bytes
            out.extend(chunk[:max(0, 3 - pads)])
            count = 0
            pads = 0

    if count:
        if strict:
            raise Base64DecodeError(
                f"Incomplete base64 block: {count} trailing symbol(s)"
            )
        logger.warning(f"Dropping incomplete base64 block of {count} symbol(s)")

    if len(out) > dest_capacity:
        logger.warning(f"Base64 output of {len(out)} bytes exceeds capacity {dest_capacity}")
        raise Base64CapacityError(len(out), dest_capacity)

    dest[:len(out)] = out
    return len(out)
