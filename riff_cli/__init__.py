"""
riff-cli: scaffolding and log helper for riff functions

This package generates the per-language artifacts a riff function needs
(Dockerfile, Function and Topic manifests, source stub) and wraps kubectl
to display the logs of a running function.
"""

__version__ = "0.0.4"
__author__ = "riff team"
__description__ = "Command line helper for riff functions"
