"""Input validation for CLI arguments."""
import re
import sys

# host:port, [ipv6]:port, or a grpc target URI such as unix:/path or dns:///host:port
_ADDRESS_PATTERN = re.compile(r'^(?:[A-Za-z0-9._-]+|\[[0-9A-Fa-f:.]+\]):\d{1,5}$')
_TARGET_URI_PATTERN = re.compile(r'^(?:unix|unix-abstract|dns|ipv4|ipv6|vsock):\S+$')


def validate_secret_name(name: str) -> None:
    """
    Validate a secret name.

    Names are passed to the service verbatim; they must be non-empty and
    contain no whitespace or control characters.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print("Error: Secret name cannot be empty", file=sys.stderr)
        sys.exit(2)

    if any(ch.isspace() or not ch.isprintable() for ch in name):
        print(f"Error: Invalid secret name {name!r}", file=sys.stderr)
        print("\nSecret names cannot contain whitespace or control characters.", file=sys.stderr)
        sys.exit(2)


def validate_server_address(address: str) -> None:
    """
    Validate a gRPC server address.

    Accepts host:port, [ipv6]:port, and grpc target URIs (unix:, dns:, ...).

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not address:
        print("Error: Server address cannot be empty", file=sys.stderr)
        sys.exit(2)

    if _TARGET_URI_PATTERN.match(address):
        return

    match = _ADDRESS_PATTERN.match(address)
    if not match or not 0 < int(address.rsplit(":", 1)[1]) < 65536:
        print(f"Error: Invalid server address '{address}'", file=sys.stderr)
        print("\nExpected host:port, e.g.:", file=sys.stderr)
        print("  localhost:50051", file=sys.stderr)
        print("  10.0.0.5:50051", file=sys.stderr)
        print("  [::1]:50051", file=sys.stderr)
        sys.exit(2)
