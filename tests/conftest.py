"""Shared fixtures: fake channel capability and an in-process GrSecret server."""
from concurrent import futures

import grpc
import pytest

from grpc_ratls_secrets.secrets.domains.ratls_messages import SERVICE_NAME, SecretReply, SecretRequest


class FakeRpcError(grpc.RpcError):
    """RpcError carrying a status, like the ones raised by real unary calls."""

    def __init__(self, code, details):
        super().__init__(details)
        self._code = code
        self._details = details

    def code(self):
        return self._code

    def details(self):
        return self._details


class FakeChannel:
    """Channel whose GetSecret calls are answered by a handler.

    Requests and replies go through the real serializers.
    """

    def __init__(self, handler):
        self.handler = handler
        self.methods = []
        self.requests = []
        self.closed = False

    def unary_unary(self, method, request_serializer=None, response_deserializer=None, **kwargs):
        self.methods.append(method)

        def call(request, timeout=None):
            self.requests.append((SecretRequest.FromString(request_serializer(request)), timeout))
            reply = self.handler(self.requests[-1][0])
            return response_deserializer(reply.SerializeToString())

        return call

    def close(self):
        self.closed = True


class FakeChannelFactory:
    """Channel capability returning FakeChannels that serve a fixed secret."""

    def __init__(self, secret="", error=None, rpc_error=None):
        self.secret = secret
        self.error = error
        self.rpc_error = rpc_error
        self.acquired = []
        self.channels = []

    def _handle(self, request):
        if self.rpc_error is not None:
            raise self.rpc_error
        return SecretReply(secret=self.secret)

    def acquire(self, server_addr, config):
        self.acquired.append((server_addr, config))
        if self.error is not None:
            raise self.error
        channel = FakeChannel(self._handle)
        self.channels.append(channel)
        return channel


class InsecureChannelFactory:
    """Plaintext channels for the in-process server."""

    def acquire(self, server_addr, config):
        return grpc.insecure_channel(server_addr)


@pytest.fixture
def fake_factory():
    """Factory serving "QUJD" (b"ABC") unless reconfigured by the test."""
    return FakeChannelFactory(secret="QUJD")


@pytest.fixture
def channel_config():
    return '{"verify_mr_enclave": "on", "sgx_mrs": []}'


@pytest.fixture
def secret_server():
    """Start a GrSecret server on localhost; yields (address, secrets dict)."""
    secrets = {}

    def get_secret(request, context):
        if request.name == "forbidden":
            context.abort(grpc.StatusCode.PERMISSION_DENIED, "not allowed")
        return SecretReply(secret=secrets.get(request.name, ""))

    handler = grpc.method_handlers_generic_handler(
        SERVICE_NAME,
        {
            "GetSecret": grpc.unary_unary_rpc_method_handler(
                get_secret,
                request_deserializer=SecretRequest.FromString,
                response_serializer=SecretReply.SerializeToString,
            )
        },
    )
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=2))
    server.add_generic_rpc_handlers((handler,))
    port = server.add_insecure_port("127.0.0.1:0")
    server.start()
    try:
        yield f"127.0.0.1:{port}", secrets
    finally:
        server.stop(None)
