"""Entry point for ``python -m cumon``."""

from cumon.cli import app

if __name__ == "__main__":
    app()
