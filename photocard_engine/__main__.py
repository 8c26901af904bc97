"""Entry point for running photocard_engine as a module.

Usage:
    python -m photocard_engine <command> [options]
"""
from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
