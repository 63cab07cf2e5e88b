"""Entry point for running bookminer as a module.

Usage:
    python -m bookminer <command> [options]
"""
from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
