#!/usr/bin/env python3
"""
Run the hbcore Admin API.

Usage:
    python run_admin.py
    python run_admin.py --port 8080
    python run_admin.py --debug
"""

import argparse

from src.hbcore.admin import run_admin


def main():
    parser = argparse.ArgumentParser(description="Run hbcore Admin API")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=5050, help="Port to run on")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    run_admin(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
