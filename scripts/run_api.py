#!/usr/bin/env python3
"""Run the FastAPI server.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT]

Environment:
    LOG_LEVEL            - Logging level (default: INFO)
    PORT                 - Default port when --port is not given (default: 5000)
    TRADE_JOURNAL_PATH   - Optional JSONL file to persist simulated trades
    (see core/config.py for feed and threshold settings)

Examples:
    python scripts/run_api.py
    python scripts/run_api.py --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Ensure imports work when invoked as a script
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def main() -> int:
    """Run the API server."""
    parser = argparse.ArgumentParser(description="Run the hybrid price / AI suggestion / paper trade API.")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", "5000")),
        help="Port to bind to (default: $PORT or 5000)",
    )
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    args = parser.parse_args()

    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Fail fast on bad configuration before binding the port
    from core.config import AppSettings

    try:
        AppSettings.from_env()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Starting FastAPI server on {args.host}:{args.port}")
    print("Endpoints:")
    print(f"  - GET  http://{args.host}:{args.port}/price/BTC")
    print(f"  - POST http://{args.host}:{args.port}/ai/suggestion")
    print(f"  - POST http://{args.host}:{args.port}/trade")
    print(f"  - GET  http://{args.host}:{args.port}/trades")
    print()

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed", file=sys.stderr)
        print("Install with: pip install -e .", file=sys.stderr)
        return 1

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=log_level.lower(),
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
