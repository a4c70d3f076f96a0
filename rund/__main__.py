"""
Entry point for running rund as a module.
Usage: python -m rund [OPTIONS] [APP] [ARGS...]
"""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
