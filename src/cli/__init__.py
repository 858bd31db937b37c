"""Console helpers for the command-line scripts."""

from .console import console, dim, fail, header, ok, print_table

__all__ = ["console", "ok", "fail", "dim", "header", "print_table"]
