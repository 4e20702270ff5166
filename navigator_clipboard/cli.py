"""Command line interface: ``navigator-clipboard serve|copy|paste|version``."""
import re
import sys
import asyncio
import logging
import argparse
from typing import Optional, Sequence

from pydantic import ValidationError

from .client import Clipboard, RelayClient, read_limited
from .conf import (
    CLIPBOARD_SERVER_ENV,
    DEFAULT_GPG_EXECUTABLE,
    DEFAULT_MAX_SIZE,
    DEFAULT_TIMEOUT,
)
from .config import ClientConfig, ServerConfig
from .exceptions import ClipboardError
from .resolver import KeyOptions
from .server import serve
from .version import __title__, __version__

logger = logging.getLogger("navigator.clipboard")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


def parse_duration(text: str) -> float:
    """Parse "10m", "1h30m", "500ms" or plain seconds into seconds."""
    text = text.strip()
    try:
        return float(text)
    except ValueError:
        pass
    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise argparse.ArgumentTypeError(f"invalid duration: {text!r}")
    return total


def _add_client_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--timeout", type=parse_duration, default=DEFAULT_TIMEOUT,
        help="Time limit for requests",
    )
    parser.add_argument(
        "-p", "--password",
        help="Password to derive the symmetric-key used for encryption/decryption",
    )
    parser.add_argument(
        "-k", "--symmetric-key-file",
        help="Path to symmetric-key file used for encryption/decryption",
    )
    parser.add_argument(
        "-u", "--gpg-user-id",
        help="GPG user id of the recipient key",
    )
    parser.add_argument(
        "--gpg-path", default=DEFAULT_GPG_EXECUTABLE,
        help="Path to gpg executable",
    )
    parser.add_argument(
        "-a", "--basic-auth",
        help="Basic authentication, username:password",
    )
    parser.add_argument(
        "--max-size", default=DEFAULT_MAX_SIZE,
        help="Max data size with unit",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="navigator-clipboard",
        description="Copy and paste between devices",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_cmd = commands.add_parser("serve", help="Start the server that acts like a clipboard")
    serve_cmd.add_argument("--host", help="Interface the server listens on")
    serve_cmd.add_argument("--port", type=int, help="The port the server listens on")
    serve_cmd.add_argument(
        "--ttl", type=parse_duration,
        help="The time that the contents is stored. Give 0s for disabling TTL",
    )
    serve_cmd.add_argument(
        "--check-interval", type=parse_duration,
        help="Interval of the expiry sweep (defaults to the TTL)",
    )
    serve_cmd.add_argument("-a", "--basic-auth", help="Basic authentication, username:password")
    serve_cmd.add_argument("--max-size", help="Max accepted body size with unit")
    serve_cmd.add_argument(
        "--shutdown-timeout", type=parse_duration,
        help="Grace period for in-flight requests on shutdown",
    )

    copy_cmd = commands.add_parser("copy", help="Copy from stdin")
    _add_client_arguments(copy_cmd)
    copy_cmd.add_argument(
        "-K", "--public-key-file",
        help="Path to an RSA public-key file used for encryption; PEM or DER format",
    )

    paste_cmd = commands.add_parser("paste", help="Paste to stdout")
    _add_client_arguments(paste_cmd)
    paste_cmd.add_argument(
        "-K", "--private-key-file",
        help="Path to an RSA private-key file used for decryption; PEM or DER format",
    )
    paste_cmd.add_argument(
        "--private-key-password-file",
        help="Path to password file to decrypt the encrypted private key",
    )

    commands.add_parser("version", help="Print the version")
    return parser


def _key_options(args: argparse.Namespace) -> KeyOptions:
    return KeyOptions(
        password=args.password,
        symmetric_key_file=args.symmetric_key_file,
        public_key_file=getattr(args, "public_key_file", None),
        private_key_file=getattr(args, "private_key_file", None),
        private_key_password_file=getattr(args, "private_key_password_file", None),
        gpg_user_id=args.gpg_user_id,
        gpg_executable=args.gpg_path,
    )


def _client_config(args: argparse.Namespace) -> ClientConfig:
    return ClientConfig.from_env(
        timeout=args.timeout,
        basic_auth=args.basic_auth,
        max_size=args.max_size,
        gpg_executable=args.gpg_path,
    )


async def run_copy(args: argparse.Namespace, stdin=None) -> None:
    config = _client_config(args)
    stdin = stdin or sys.stdin.buffer
    data = read_limited(stdin, config.max_size)
    async with RelayClient(config) as client:
        await Clipboard(client).copy(data, _key_options(args))


async def run_paste(args: argparse.Namespace, stdout=None) -> None:
    config = _client_config(args)
    stdout = stdout or sys.stdout.buffer
    async with RelayClient(config) as client:
        data = await Clipboard(client).paste(_key_options(args))
    stdout.write(data)
    stdout.flush()


async def run_serve(args: argparse.Namespace) -> None:
    config = ServerConfig.from_env(
        host=args.host,
        port=args.port,
        ttl=args.ttl,
        check_interval=args.check_interval,
        basic_auth=args.basic_auth,
        max_size=args.max_size,
        shutdown_timeout=args.shutdown_timeout,
    )
    await serve(config)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.INFO if args.command == "serve" else logging.WARNING
    logging.basicConfig(
        level=logging.DEBUG if args.debug else level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )
    if args.command == "version":
        print(f"{__title__} {__version__}")
        return 0
    runners = {"serve": run_serve, "copy": run_copy, "paste": run_paste}
    try:
        asyncio.run(runners[args.command](args))
    except ValidationError as err:
        if args.command != "serve" and any(e["loc"] == ("address",) for e in err.errors()):
            print(
                f"put the relay address into {CLIPBOARD_SERVER_ENV} environment variable",
                file=sys.stderr,
            )
        else:
            print(f"invalid configuration: {err}", file=sys.stderr)
        return 1
    except ClipboardError as err:
        logger.debug("%s failed", args.command, exc_info=True)
        print(err, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
