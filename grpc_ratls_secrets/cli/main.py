"""CLI entrypoint for grpc-ratls-secrets."""
import sys
import argparse
import logging
from pathlib import Path

import yaml

from .validators import validate_secret_name, validate_server_address

VERSION = "0.1.0"
DEFAULT_BUFFER_SIZE = 64 * 1024

# Configure logging to stderr
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)

_RESULT_MESSAGES = {
    "ERR": "Failed to retrieve secret",
    "INVALID_PARAM": "Invalid parameter",
    "BUF_ERR": "Failed to allocate secret buffer",
    "NO_SECRET": "Secret not found",
    "BUF_TOO_SMALL": "Secret is larger than the output buffer (raise --buffer-size)",
}


def cmd_version(args):
    """Show version information."""
    print(f"grpc-ratls-secrets {VERSION}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    from grpc_ratls_secrets.secrets.domains.preferences import set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path."""
    from grpc_ratls_secrets.secrets.domains.preferences import get_preference
    from grpc_ratls_secrets.secrets.domains.config_loader import default_config_path

    config_path_pref = get_preference("config_path")

    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            print(f"Config path: {config_path}")
        else:
            print(f"Config path (from preference, but file not found): {config_path}")
        print("Source: preference")
    else:
        default_config = default_config_path()
        print(f"Config path: {default_config}")
        if default_config.exists():
            print("Source: default")
        else:
            print("Source: default (file not found)")


def cmd_config_clear(args):
    """Clear config path preference."""
    from grpc_ratls_secrets.secrets.domains.preferences import clear_preference
    from grpc_ratls_secrets.secrets.domains.config_loader import default_config_path

    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def cmd_config_init(args):
    """Interactive config setup: writes the default config file."""
    from grpc_ratls_secrets.secrets.domains.config_loader import default_config_path

    default_config = default_config_path()

    print("=== grpc-ratls-secrets Configuration Setup ===\n")
    print(f"Config file: {default_config}\n")

    if default_config.exists():
        response = input("Configuration file already exists. Overwrite? (y/N): ").strip().lower()
        if response != 'y':
            print(f"\nKeeping existing config at: {default_config}")
            return

    server_address = input("Secret server address (host:port): ").strip()
    validate_server_address(server_address)

    attestation_path = Path(input("Path to attestation/channel config JSON: ").strip()).expanduser().resolve()
    if not attestation_path.is_file():
        print(f"Error: File not found: {attestation_path}", file=sys.stderr)
        sys.exit(1)

    config = {
        "server": {"address": server_address},
        "attestation": {"config_path": str(attestation_path)},
    }

    timeout = input("RPC timeout in seconds (blank for transport default): ").strip()
    if timeout:
        try:
            config["client"] = {"timeout": float(timeout)}
        except ValueError:
            print(f"Error: Invalid timeout: {timeout}", file=sys.stderr)
            sys.exit(2)

    default_config.parent.mkdir(parents=True, exist_ok=True)
    with open(default_config, 'w') as f:
        yaml.safe_dump(config, f, default_flow_style=False)
    print(f"\nConfig written to: {default_config}")


def cmd_secrets_get(args):
    """Fetch a secret into a file or to stdout."""
    from grpc_ratls_secrets.secrets.domains.channel import GrpcChannelFactory
    from grpc_ratls_secrets.secrets.domains.config_loader import (
        load_config, get_server_address, read_channel_config, get_client_options,
    )
    from grpc_ratls_secrets.secrets.domains.models import ResultCode, SecretBuffer
    from grpc_ratls_secrets.secrets.workflows.secret_operations import (
        get_secret_to_file, get_secret_to_buffer,
    )

    validate_secret_name(args.secret_name)

    # The config file is only needed for values not given on the command line
    config = None
    if not (args.server and args.attestation_config):
        config = load_config()

    server_addr = args.server or get_server_address(config)
    validate_server_address(server_addr)

    if args.attestation_config:
        channel_config = Path(args.attestation_config).expanduser().read_text()
    else:
        channel_config = read_channel_config(config)

    timeout, strict_decode = get_client_options(config) if config else (None, True)
    if args.timeout is not None:
        timeout = args.timeout

    factory = GrpcChannelFactory(connect_timeout=timeout)

    if args.output:
        code = get_secret_to_file(
            server_addr, channel_config, args.secret_name, args.output,
            channel_factory=factory, timeout=timeout, strict_decode=strict_decode,
        )
    else:
        buffer = SecretBuffer(bytearray(args.buffer_size))
        code = get_secret_to_buffer(
            server_addr, channel_config, args.secret_name, buffer,
            channel_factory=factory, timeout=timeout, strict_decode=strict_decode,
        )
        if code == ResultCode.SUCCESS:
            sys.stdout.buffer.write(bytes(buffer.data[:buffer.length]))
            sys.stdout.flush()

    if code != ResultCode.SUCCESS:
        print(f"Error: {_RESULT_MESSAGES[code.name]}: '{args.secret_name}' ({code.name})", file=sys.stderr)
        sys.exit(1)

    if args.output:
        print(f"Secret '{args.secret_name}' written to {args.output}", file=sys.stderr)
    sys.exit(0)


def _positive_int(value):
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _positive_float(value):
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number, got {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="ratls-secrets",
        description="Fetch secrets from a secret provisioning service over an attested gRPC channel",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (channel, network, secret not found, buffer too small, etc.)
  2 - Usage error (invalid arguments, invalid secret name or server address)

Environment variables:
  RATLS_SERVER_ADDR - Server address (overrides config file)

Configuration:
  Default location: ~/.config/grpc-ratls-secrets/config.yml
  Custom path: Set with 'ratls-secrets config set-path <path>'
  View current: Run 'ratls-secrets config show'
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging on stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of grpc-ratls-secrets"
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage grpc-ratls-secrets configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="Store the absolute path to your config file in preferences.json"
    )
    config_set_path_parser.add_argument("path", help="Path to config file")

    config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="Display the current configuration file path and its source (preference or default)"
    )
    config_subparsers.add_parser(
        "clear",
        help="Clear config path preference",
        description="Remove the config path preference; the default location is used afterwards"
    )
    config_subparsers.add_parser(
        "init",
        help="Interactive config setup",
        description="Prompt for server address and attestation config, then write the default config file"
    )

    secrets_parser = subparsers.add_parser(
        "secrets",
        help="Secret retrieval operations",
        description="Retrieve secrets from the provisioning service"
    )
    secrets_subparsers = secrets_parser.add_subparsers(dest="secrets_command")

    get_parser = secrets_subparsers.add_parser(
        "get",
        help="Get a secret",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Fetch a secret over an attested channel and decode it.

With -o the decoded bytes are written to FILE (existing content is
replaced). Without -o they are written to stdout, provided they fit in
--buffer-size bytes.

Exit codes:
  0 - Secret retrieved
  1 - Retrieval failed (see the result code in the error message)
  2 - Invalid secret name or server address
        """
    )
    get_parser.add_argument("secret_name", help="Name of the secret")
    get_parser.add_argument("-o", "--output", help="Write the secret to this file")
    get_parser.add_argument(
        "--buffer-size",
        type=_positive_int,
        default=DEFAULT_BUFFER_SIZE,
        help=f"Maximum secret size when writing to stdout (default: {DEFAULT_BUFFER_SIZE})"
    )
    get_parser.add_argument("--server", help="Server address host:port (overrides config)")
    get_parser.add_argument(
        "--attestation-config",
        help="Path to the attestation/channel config JSON (overrides config)"
    )
    get_parser.add_argument(
        "--timeout",
        type=_positive_float,
        help="Connect and RPC timeout in seconds (overrides config)"
    )

    return parser, {
        "config": config_parser,
        "secrets": secrets_parser,
    }


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors
        2 - Usage errors
    """
    parser, subparsers = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "config":
            if args.config_command == "set-path":
                cmd_config_set_path(args)
            elif args.config_command == "show":
                cmd_config_show(args)
            elif args.config_command == "clear":
                cmd_config_clear(args)
            elif args.config_command == "init":
                cmd_config_init(args)
            else:
                subparsers["config"].print_help()
                sys.exit(2)
        elif args.command == "secrets":
            if args.secrets_command == "get":
                cmd_secrets_get(args)
            else:
                subparsers["secrets"].print_help()
                sys.exit(2)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
