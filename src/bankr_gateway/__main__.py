"""
Gateway CLI.

Commands:
  bankr-gateway serve        Run the HTTP gateway (default)
  bankr-gateway init-token   Generate a proxy token and store it in .env
"""

import argparse
import sys
from typing import List, Optional

import uvicorn

from .config import GatewaySettings
from .engine.exceptions import ConfigurationError
from .logs import setup_logging
from .servers.apps import create_app
from .servers.security import create_proxy_token, save_key_to_env


def serve_command(args: argparse.Namespace) -> int:
    try:
        settings = GatewaySettings.from_env(args.env_file)
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 1

    logger = setup_logging(settings.log_level)
    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e.message)
        return 1

    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def init_token_command(args: argparse.Namespace) -> int:
    token = create_proxy_token(prefix=args.prefix, length=args.length)
    save_key_to_env("PROXY_TOKEN", token, env_file=args.env_file or ".env")
    print(f"PROXY_TOKEN written to {args.env_file or '.env'}")
    print("Send it in the x-proxy-token header of every request.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bankr-gateway",
        description="Request/response gateway for the Bankr agent API",
    )
    parser.add_argument("--env-file", default=None, help="Path of the .env file")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the HTTP gateway")
    serve.add_argument("--host", default=None, help="Bind address (overrides HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (overrides PORT)")
    serve.set_defaults(handler=serve_command)

    init_token = subparsers.add_parser("init-token", help="Generate PROXY_TOKEN into the .env file")
    init_token.add_argument("--prefix", default="bgw_", help="Token prefix")
    init_token.add_argument("--length", type=int, default=32, help="Random characters after the prefix")
    init_token.set_defaults(handler=init_token_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv
    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args([*argv, "serve"])
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
