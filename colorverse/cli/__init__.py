"""Command Line Interface for ColorVerse.

Provides command-line tools for sending completions through the provider
fallback chain and inspecting provider status.
"""

from colorverse.cli.main import cli

__all__ = ["cli"]
