"""Delivery sinks for decoded secrets."""
import logging
import os

from .models import ResultCode, SecretBuffer, SecretPayload

logger = logging.getLogger(__name__)


def deliver_to_file(payload: SecretPayload, path) -> ResultCode:
    """
    Write the secret to path, truncating any existing content.

    A failure mid-write may leave a truncated or empty file behind.

    Returns:
        SUCCESS, or ERR on any I/O failure or unusable path
        (embedded NUL, not a path-like value)
    """
    try:
        with open(os.fspath(path), "wb") as f:
            f.write(payload.data)
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Failed to write secret '{payload.name}' to {path}: {e}")
        return ResultCode.ERR

    logger.debug(f"Wrote {len(payload)} bytes of secret '{payload.name}' to {path}")
    return ResultCode.SUCCESS


def deliver_to_buffer(payload: SecretPayload, buffer: SecretBuffer) -> ResultCode:
    """
    Copy the secret into a caller buffer.

    On BUF_TOO_SMALL neither buffer.data nor buffer.length is touched.
    On SUCCESS buffer.length is set to the number of bytes copied.
    """
    size = len(payload)
    if size > buffer.length:
        logger.warning(f"Buffer size {buffer.length} is smaller than the secret length {size}")
        return ResultCode.BUF_TOO_SMALL

    buffer.data[:size] = payload.data
    buffer.length = size
    return ResultCode.SUCCESS
