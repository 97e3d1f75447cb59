"""Workflow for secret retrieval over an attested channel.

Each call acquires its own channel, fetches the encoded secret once,
decodes it and hands it to a delivery sink. Nothing is cached and no
step is retried.
"""
import logging
from typing import Callable, Optional, Tuple

from ..domains import base64_codec
from ..domains.channel import ChannelError, ChannelFactory, GrpcChannelFactory
from ..domains.delivery import deliver_to_buffer, deliver_to_file
from ..domains.models import ResultCode, SecretBuffer, SecretPayload
from ..domains.secret_client import GrSecretClient

logger = logging.getLogger(__name__)

Deliver = Callable[[SecretPayload], ResultCode]


def _fetch_encoded(
    server_addr: str,
    config: str,
    name: str,
    channel_factory: ChannelFactory,
    timeout: Optional[float],
) -> str:
    channel = channel_factory.acquire(server_addr, config)
    try:
        return GrSecretClient(channel).get_secret(name, timeout=timeout)
    finally:
        channel.close()


def retrieve_secret(
    server_addr: str,
    config: str,
    name: str,
    channel_factory: Optional[ChannelFactory] = None,
    timeout: Optional[float] = None,
    strict_decode: bool = True,
) -> Tuple[ResultCode, Optional[SecretPayload]]:
    """
    Fetch and decode a secret.

    Args:
        server_addr: Address of the secret provisioning service
        config: Channel configuration blob, passed through unparsed
        name: Name of the secret
        channel_factory: Channel capability (GrpcChannelFactory if None)
        timeout: RPC deadline in seconds
        strict_decode: Reject encoded text ending in an incomplete block

    Returns:
        (SUCCESS, payload) or (failure code, None)
    """
    factory = channel_factory or GrpcChannelFactory()

    try:
        encoded = _fetch_encoded(server_addr, config, name, factory, timeout)
    except ChannelError as e:
        logger.error(f"Failed to acquire channel to {server_addr}: {e}")
        return ResultCode.ERR, None
    except Exception as e:
        # Injected factories and channels raise whatever their transport raises
        logger.error(f"Secret request to {server_addr} failed: {type(e).__name__}: {e}")
        return ResultCode.ERR, None

    if not encoded:
        logger.warning(f"No secret returned for '{name}'")
        return ResultCode.NO_SECRET, None

    size = base64_codec.decoded_length(encoded)
    if not size:
        logger.error(f"Secret '{name}' has no decodable content")
        return ResultCode.ERR, None

    try:
        scratch = bytearray(size)
    except MemoryError:
        logger.error(f"Failed to allocate {size} bytes for secret '{name}'")
        return ResultCode.BUF_ERR, None

    try:
        written = base64_codec.decode(encoded, scratch, size, strict=strict_decode)
    except base64_codec.Base64Error as e:
        logger.error(f"Failed to decode secret '{name}': {e}")
        return ResultCode.ERR, None

    return ResultCode.SUCCESS, SecretPayload(name=name, data=bytes(scratch[:written]))


def _run(
    server_addr: str,
    config: str,
    name: str,
    deliver: Deliver,
    channel_factory: Optional[ChannelFactory],
    timeout: Optional[float],
    strict_decode: bool,
) -> ResultCode:
    if not server_addr or not config or not name:
        logger.error("server_addr, config and name are required")
        return ResultCode.INVALID_PARAM

    code, payload = retrieve_secret(
        server_addr, config, name,
        channel_factory=channel_factory,
        timeout=timeout,
        strict_decode=strict_decode,
    )
    if code != ResultCode.SUCCESS:
        return code
    return deliver(payload)


def get_secret_to_file(
    server_addr: str,
    config: str,
    name: str,
    out_path,
    channel_factory: Optional[ChannelFactory] = None,
    timeout: Optional[float] = None,
    strict_decode: bool = True,
) -> ResultCode:
    """
    Fetch a secret and write its decoded bytes to out_path.

    out_path is only opened once the secret has been fetched and
    decoded; on any earlier failure it is neither created nor modified.

    Returns:
        ResultCode (an int); SUCCESS means out_path holds exactly the secret
    """
    if not out_path:
        logger.error("out_path is required")
        return ResultCode.INVALID_PARAM

    return _run(
        server_addr, config, name,
        lambda payload: deliver_to_file(payload, out_path),
        channel_factory, timeout, strict_decode,
    )


def get_secret_to_buffer(
    server_addr: str,
    config: str,
    name: str,
    buffer: SecretBuffer,
    channel_factory: Optional[ChannelFactory] = None,
    timeout: Optional[float] = None,
    strict_decode: bool = True,
) -> ResultCode:
    """
    Fetch a secret into a caller buffer.

    On SUCCESS buffer.data[:buffer.length] holds the secret and
    buffer.length is the actual size. On BUF_TOO_SMALL the buffer and its
    length are left untouched.

    Returns:
        ResultCode (an int)
    """
    if buffer is None or buffer.data is None:
        logger.error("buffer is required")
        return ResultCode.INVALID_PARAM

    if buffer.length is None or buffer.length < 0 or buffer.length > len(buffer.data):
        logger.error(f"Buffer length {buffer.length} doesn't fit its storage of {len(buffer.data)} bytes")
        return ResultCode.INVALID_PARAM

    return _run(
        server_addr, config, name,
        lambda payload: deliver_to_buffer(payload, buffer),
        channel_factory, timeout, strict_decode,
    )
