"""
ninaseq - An editor model for NINA advanced sequences.

This package provides the sequence document model, a tree editing engine with
undo/redo, and a serializer for the NINA sequence JSON format, along with a
command-line interface for inspecting and converting sequence files.
"""

__version__ = "0.1.0"

from . import config
from . import core
from . import parsers
from . import utils

__all__ = [
    "config",
    "core",
    "parsers",
    "utils",
    "__version__"
]


def main():
    """Main entry point for the CLI."""
    from .cli import main as cli_main
    return cli_main()
