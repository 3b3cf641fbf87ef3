"""SSH connection bookmarks for the command line.

The command surface is implemented with Typer, errors are rendered with Rich
on stderr, and saved profiles live in a small JSON document.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
