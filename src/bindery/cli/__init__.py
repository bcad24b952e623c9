"""Command line interface for bindery.

Entry point: ``bindery`` (see bindery.cli.main).
"""

from __future__ import annotations
