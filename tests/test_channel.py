"""Tests for the attested channel capability."""
import json
from unittest import mock

import grpc
import pytest

from grpc_ratls_secrets.secrets.domains import channel as channel_module
from grpc_ratls_secrets.secrets.domains.channel import (
    ChannelError,
    GrpcChannelFactory,
    tls_credentials_from_config,
)


class TestTlsCredentialsFromConfig:
    """Test suite for the default credentials provider."""

    def test_empty_object_uses_system_roots(self):
        with mock.patch.object(channel_module.grpc, "ssl_channel_credentials") as creds:
            tls_credentials_from_config("{}")
        creds.assert_called_once_with(root_certificates=None, private_key=None, certificate_chain=None)

    def test_reads_pem_files(self, tmp_path):
        root = tmp_path / "ca.pem"
        key = tmp_path / "key.pem"
        chain = tmp_path / "chain.pem"
        root.write_bytes(b"ROOT")
        key.write_bytes(b"KEY")
        chain.write_bytes(b"CHAIN")
        config = json.dumps({
            "root_certificates": str(root),
            "private_key": str(key),
            "certificate_chain": str(chain),
            "verify_mr_enclave": "on",
        })

        with mock.patch.object(channel_module.grpc, "ssl_channel_credentials") as creds:
            tls_credentials_from_config(config)
        creds.assert_called_once_with(root_certificates=b"ROOT", private_key=b"KEY", certificate_chain=b"CHAIN")

    def test_invalid_json_raises(self):
        with pytest.raises(ChannelError, match="Invalid channel configuration"):
            tls_credentials_from_config("{not json")

    def test_non_object_raises(self):
        with pytest.raises(ChannelError, match="JSON object"):
            tls_credentials_from_config("[1, 2]")

    def test_missing_pem_file_raises(self, tmp_path):
        config = json.dumps({"root_certificates": str(tmp_path / "missing.pem")})
        with pytest.raises(ChannelError, match="Failed to read PEM file"):
            tls_credentials_from_config(config)


class TestGrpcChannelFactory:
    """Test suite for GrpcChannelFactory."""

    def test_passes_config_blob_to_provider_unchanged(self):
        provider = mock.Mock(return_value=grpc.ssl_channel_credentials())
        factory = GrpcChannelFactory(credentials_provider=provider)
        blob = '{"sgx_mrs": [{"mr_enclave": ""}]}'

        channel = factory.acquire("127.0.0.1:50051", blob)
        try:
            provider.assert_called_once_with(blob)
        finally:
            channel.close()

    def test_provider_channel_error_propagates(self):
        provider = mock.Mock(side_effect=ChannelError("attestation policy rejected"))
        factory = GrpcChannelFactory(credentials_provider=provider)
        with pytest.raises(ChannelError, match="attestation policy rejected"):
            factory.acquire("127.0.0.1:50051", "{}")

    def test_unexpected_provider_error_becomes_channel_error(self):
        provider = mock.Mock(side_effect=RuntimeError("boom"))
        factory = GrpcChannelFactory(credentials_provider=provider)
        with pytest.raises(ChannelError, match="boom"):
            factory.acquire("127.0.0.1:50051", "{}")

    def test_connect_timeout_raises_when_not_ready(self):
        future = mock.Mock()
        future.result.side_effect = grpc.FutureTimeoutError()
        provider = mock.Mock(return_value=grpc.ssl_channel_credentials())
        factory = GrpcChannelFactory(credentials_provider=provider, connect_timeout=0.1)

        with mock.patch.object(channel_module.grpc, "channel_ready_future", return_value=future):
            with pytest.raises(ChannelError, match="not ready"):
                factory.acquire("127.0.0.1:1", "{}")
        future.result.assert_called_once_with(timeout=0.1)
