"""Allow ``python -m bindery``."""

from __future__ import annotations

from bindery.cli.main import cli

if __name__ == "__main__":
    cli()
