"""Entry point for the default reset quantity service.

Usage:
    python -m default_reset_quantity serve
    FLAG_STORE_PATH=flags.json CATALOG_PATH=catalog.csv python -m default_reset_quantity serve
"""

from __future__ import annotations

import argparse


def _cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server."""
    import uvicorn

    from .app import create_app
    from .config import get_settings

    settings = get_settings()
    app = create_app(settings)

    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level="info",
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="default_reset_quantity",
        description="Default Reset Quantity service",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Start the API server")
    serve.add_argument("--host", default=None, help="Bind host (default from settings)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default from settings)")
    serve.set_defaults(func=_cmd_serve)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
