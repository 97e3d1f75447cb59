"""GrSecret service client wrapper."""
import logging
from typing import Optional

import grpc

from .ratls_messages import GET_SECRET_METHOD, SecretReply, SecretRequest

logger = logging.getLogger(__name__)


class GrSecretClient:
    """Issues GetSecret requests over an established channel."""

    def __init__(self, channel: grpc.Channel):
        self._get_secret = channel.unary_unary(
            GET_SECRET_METHOD,
            request_serializer=SecretRequest.SerializeToString,
            response_deserializer=SecretReply.FromString,
        )

    def get_secret(self, name: str, timeout: Optional[float] = None) -> str:
        """
        Fetch the encoded secret by name.

        Args:
            name: Name of the secret
            timeout: RPC deadline in seconds (transport default if None)

        Returns:
            Base64-encoded secret text, or "" if not found or the RPC failed.
            The two cases are not distinguished.
        """
        request = SecretRequest(name=name)
        try:
            reply = self._get_secret(request, timeout=timeout)
        except grpc.RpcError as e:
            logger.warning(f"GetSecret RPC failed for '{name}': {e.code()}: {e.details()}")
            return ""
        return reply.secret
