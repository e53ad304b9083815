"""rulelist CLI - Command-line interface for the rule list editor."""

from importlib.metadata import version, PackageNotFoundError

from rulelist_cli.main import cli_main

try:
    __version__ = version("rulelist")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development

__all__ = ["cli_main", "__version__"]
