import argparse
import logging
import sys

import uvicorn

from src.adapters.store_factory import create_store
from src.api.deps import get_settings
from src.app_shell.config import check_settings
from src.components.analytics import StorageError

logger = logging.getLogger("cli")


def handle_serve(args: argparse.Namespace) -> None:
    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port
    logger.info(f"Server running on {host}:{port}")
    uvicorn.run(
        "src.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )


def handle_check(args: argparse.Namespace) -> None:
    settings = get_settings()
    problems = check_settings(settings)
    if problems:
        for problem in problems:
            logger.error(problem)
        sys.exit(1)

    store = create_store(settings.store_url)
    try:
        store.connect()
    except StorageError as e:
        logger.error(f"Store connection failed: {e}")
        sys.exit(1)
    try:
        state = "connected" if store.is_connected() else "disconnected"
    finally:
        store.close()
    print(f"Configuration OK. Store: {state}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Page Load Analytics CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address (default: HOST or 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, help="Listen port (default: PORT or 3001)")

    # check
    subparsers.add_parser("check", help="Validate configuration and store connectivity")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        handle_serve(args)
    elif args.command == "check":
        handle_check(args)


if __name__ == "__main__":
    main()
