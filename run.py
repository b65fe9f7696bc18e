#!/usr/bin/env python3
"""Run the Betboard API server.

Usage:
    python run.py [--host HOST] [--port PORT] [--reload] [--workers N]

Examples:
    python run.py                      # Run with defaults (localhost:8000)
    python run.py --port 8080          # Run on port 8080
    python run.py --reload             # Run with auto-reload for development
    python run.py --memory             # Run without Postgres (state lost on exit)
"""

import argparse
import os

import uvicorn


def main():
    parser = argparse.ArgumentParser(
        description="Run the Betboard API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload on code changes (development mode)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes (default: 1)",
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use the in-process store instead of Postgres (single worker only)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        default="info",
        help="Uvicorn logging level (default: info)",
    )

    args = parser.parse_args()

    workers = args.workers
    if args.memory:
        os.environ["BETBOARD_STORE_BACKEND"] = "memory"
        workers = 1
    if args.reload:
        workers = 1

    print(f"Betboard listening on http://{args.host}:{args.port}  (docs at /docs)")

    uvicorn.run(
        "betboard.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
