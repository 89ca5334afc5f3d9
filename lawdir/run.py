#!/usr/bin/env python3
"""
Development server for the directory API.

Usage:
    python -m lawdir.run [--host HOST] [--port PORT] [--no-reload]
"""

import argparse

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Legal Directory Service")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", action="store_true")
    args = parser.parse_args()

    print(f"Legal Directory Service on http://{args.host}:{args.port} (docs at /docs)")
    uvicorn.run("lawdir.api:app", host=args.host, port=args.port, reload=not args.no_reload)


if __name__ == "__main__":
    main()
