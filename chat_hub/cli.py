"""
Chat Hub 命令行入口

    chat-hub serve [--host HOST] [--port PORT] [--log-level LEVEL]
    chat-hub token NAME [--expires-in SECONDS]
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console

from .exceptions import ConfigError
from .hub import TokenVerifier, run_server
from .utils import HubConfig, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chat-hub", description="Real-time room chat hub"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the chat server")
    serve.add_argument("--host", help="Host address")
    serve.add_argument("--port", type=int, help="Port number")
    serve.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")

    token = subparsers.add_parser("token", help="Issue a signed access token")
    token.add_argument("name", help="Display name carried in the token")
    token.add_argument(
        "--expires-in", type=int, default=3600, help="Lifetime in seconds"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """命令行主函数"""
    args = build_parser().parse_args(argv)
    console = Console(stderr=True)

    try:
        config = HubConfig.from_env()
        overrides = {
            key: value
            for key, value in (
                ("host", getattr(args, "host", None)),
                ("port", getattr(args, "port", None)),
                ("log_level", getattr(args, "log_level", None)),
            )
            if value is not None
        }
        config.update(**overrides)

        if args.command == "token":
            verifier = TokenVerifier(
                config.require_secret(), algorithms=config.jwt_algorithms
            )
            print(verifier.issue_token(args.name, expires_in=args.expires_in))
            return 0

        configure_logging(
            level=config.log_level,
            log_file=config.log_file,
            enable_rich=config.enable_rich_logging,
        )
        asyncio.run(run_server(config))
        return 0

    except ConfigError as e:
        console.print(f"[red]配置错误:[/red] {e.message}")
        return 2
    except KeyboardInterrupt:
        console.print("再见!")
        return 0


if __name__ == "__main__":
    sys.exit(main())
