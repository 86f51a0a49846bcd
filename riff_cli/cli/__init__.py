"""CLI front-end module for riff-cli

This module implements the Typer-based CLI interface with the init family
of commands and the logs command.
"""

from .main import app

__all__ = ['app']
