"""CLI entry point: python main.py --port 3001"""

import argparse
import sys

from src.settings import get_settings


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="RepoDeck - GitHub repository dashboard backend"
    )
    parser.add_argument(
        "--host", default=settings.host,
        help=f"Host to bind to (default: {settings.host})"
    )
    parser.add_argument(
        "--port", type=int, default=settings.port,
        help=f"Port to bind to (default: {settings.port})"
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload for development"
    )
    args = parser.parse_args()

    import uvicorn

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
