"""Tests for the file and buffer delivery sinks."""
import pytest

from grpc_ratls_secrets.secrets.domains.delivery import deliver_to_buffer, deliver_to_file
from grpc_ratls_secrets.secrets.domains.models import ResultCode, SecretBuffer, SecretPayload


@pytest.fixture
def payload():
    return SecretPayload(name="db-password", data=b"ABC")


class TestDeliverToFile:
    """Test suite for deliver_to_file."""

    def test_writes_exact_bytes(self, payload, tmp_path):
        out = tmp_path / "secret.bin"
        assert deliver_to_file(payload, out) == ResultCode.SUCCESS
        assert out.read_bytes() == b"ABC"

    def test_truncates_existing_content(self, payload, tmp_path):
        out = tmp_path / "secret.bin"
        out.write_bytes(b"previous much longer content")
        assert deliver_to_file(payload, str(out)) == ResultCode.SUCCESS
        assert out.read_bytes() == b"ABC"

    def test_io_failure_is_err(self, payload, tmp_path):
        out = tmp_path / "missing-dir" / "secret.bin"
        assert deliver_to_file(payload, out) == ResultCode.ERR
        assert not out.exists()

    def test_directory_target_is_err(self, payload, tmp_path):
        assert deliver_to_file(payload, tmp_path) == ResultCode.ERR

    def test_path_with_nul_byte_is_err(self, payload, tmp_path):
        assert deliver_to_file(payload, str(tmp_path) + "/a\x00b") == ResultCode.ERR

    @pytest.mark.parametrize("target", [12.5, object()])
    def test_non_path_target_is_err(self, payload, target):
        assert deliver_to_file(payload, target) == ResultCode.ERR


class TestDeliverToBuffer:
    """Test suite for deliver_to_buffer."""

    def test_too_small_leaves_buffer_untouched(self, payload):
        buffer = SecretBuffer(bytearray(b"\x00\x00"))
        assert deliver_to_buffer(payload, buffer) == ResultCode.BUF_TOO_SMALL
        assert buffer.data == bytearray(2)
        assert buffer.length == 2

    def test_exact_fit(self, payload):
        buffer = SecretBuffer(bytearray(3))
        assert deliver_to_buffer(payload, buffer) == ResultCode.SUCCESS
        assert buffer.data == bytearray(b"ABC")
        assert buffer.length == 3

    def test_larger_buffer_updates_length(self, payload):
        buffer = SecretBuffer(bytearray(b"\xff" * 8))
        assert deliver_to_buffer(payload, buffer) == ResultCode.SUCCESS
        assert buffer.length == 3
        assert buffer.data == bytearray(b"ABC" + b"\xff" * 5)
        assert len(buffer.data) == 8

    def test_declared_length_below_storage_is_honored(self, payload):
        """Capacity is the declared length, not the storage size."""
        buffer = SecretBuffer(bytearray(16), length=2)
        assert deliver_to_buffer(payload, buffer) == ResultCode.BUF_TOO_SMALL
        assert buffer.length == 2
        assert buffer.data == bytearray(16)


class TestSecretBuffer:
    def test_length_defaults_to_storage_size(self):
        assert SecretBuffer(bytearray(10)).length == 10

    def test_explicit_length(self):
        assert SecretBuffer(bytearray(10), length=4).length == 4

    def test_explicit_negative_length_is_kept(self):
        assert SecretBuffer(bytearray(10), length=-1).length == -1


def test_result_codes_are_ints():
    assert ResultCode.SUCCESS == 0
    assert [int(code) for code in ResultCode] == [0, -1, -2, -3, -4, -5]
