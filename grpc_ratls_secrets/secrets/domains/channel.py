"""Attested gRPC channel acquisition.

The retrieval pipeline treats the channel as an opaque capability: it
hands over a server address and the configuration blob and gets back a
connected channel, or a ChannelError. Attestation policy lives in the
credentials provider, not here.
"""
import json
import logging
from pathlib import Path
from typing import Callable, Optional, Protocol

import grpc

logger = logging.getLogger(__name__)

CredentialsProvider = Callable[[str], grpc.ChannelCredentials]


class ChannelError(Exception):
    """Channel could not be established."""
    pass


class ChannelFactory(Protocol):
    """Produces a connected channel from (server address, config blob)."""

    def acquire(self, server_addr: str, config: str) -> grpc.Channel:
        ...


def _read_pem(path: Optional[str]) -> Optional[bytes]:
    if not path:
        return None
    try:
        return Path(path).expanduser().read_bytes()
    except OSError as e:
        raise ChannelError(f"Failed to read PEM file {path}: {e}") from e


def tls_credentials_from_config(config: str) -> grpc.ChannelCredentials:
    """
    Build TLS channel credentials from a JSON configuration blob.

    Recognized keys (all optional PEM file paths):
        root_certificates, private_key, certificate_chain

    Other keys describe attestation policy and are ignored here; plug a
    different provider into GrpcChannelFactory to enforce them.

    Raises:
        ChannelError: If the blob is not a JSON object or a PEM file can't be read
    """
    try:
        settings = json.loads(config)
    except (TypeError, ValueError) as e:
        raise ChannelError(f"Invalid channel configuration: {e}") from e

    if not isinstance(settings, dict):
        raise ChannelError("Channel configuration must be a JSON object")

    return grpc.ssl_channel_credentials(
        root_certificates=_read_pem(settings.get("root_certificates")),
        private_key=_read_pem(settings.get("private_key")),
        certificate_chain=_read_pem(settings.get("certificate_chain")),
    )


class GrpcChannelFactory:
    """
    Creates secure grpcio channels, one per acquire() call.

    grpcio connects lazily. With connect_timeout set, acquire() blocks
    until the handshake completes so that an unreachable server or a
    rejected attestation surfaces as ChannelError instead of a failed RPC.
    """

    def __init__(
        self,
        credentials_provider: Optional[CredentialsProvider] = None,
        connect_timeout: Optional[float] = None,
    ):
        self._credentials_provider = credentials_provider or tls_credentials_from_config
        self._connect_timeout = connect_timeout

    def acquire(self, server_addr: str, config: str) -> grpc.Channel:
        try:
            credentials = self._credentials_provider(config)
            channel = grpc.secure_channel(server_addr, credentials)
        except ChannelError:
            raise
        except Exception as e:
            raise ChannelError(f"Failed to create channel to {server_addr}: {e}") from e

        if self._connect_timeout is not None:
            try:
                grpc.channel_ready_future(channel).result(timeout=self._connect_timeout)
            except grpc.FutureTimeoutError as e:
                channel.close()
                raise ChannelError(
                    f"Channel to {server_addr} not ready after {self._connect_timeout}s"
                ) from e

        logger.debug(f"Channel created for {server_addr}")
        return channel
