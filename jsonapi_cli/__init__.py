"""Command-line client for JSON:API servers.

The command surface is implemented with Typer and Rich for better help and
error ergonomics, while document outputs remain machine-friendly with --json.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
