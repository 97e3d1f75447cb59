"""Domain models for secret retrieval."""
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class ResultCode(IntEnum):
    """Terminal outcome of one retrieval call."""
    SUCCESS = 0
    ERR = -1            # General error
    INVALID_PARAM = -2  # Invalid parameter
    BUF_ERR = -3        # Internal buffer allocation failure
    NO_SECRET = -4      # Remote returned no secret
    BUF_TOO_SMALL = -5  # Caller buffer is too small


@dataclass
class SecretPayload:
    """Decoded secret bytes, alive only for the duration of one call."""
    name: str
    data: bytes

    def __len__(self) -> int:
        return len(self.data)


@dataclass
class SecretBuffer:
    """
    Caller-owned destination buffer.

    `length` is the declared capacity on the way in (the storage size
    when omitted) and is overwritten with the number of bytes copied on
    success. Callers must read it back rather than assume their original
    capacity survives.
    """
    data: bytearray
    length: Optional[int] = None

    def __post_init__(self):
        if self.length is None and self.data is not None:
            self.length = len(self.data)
