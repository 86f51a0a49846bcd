"""Per-language generators of function artifacts"""

from .base import GeneratedFile, Initializer, InitializerError, registry
from . import languages  # noqa: F401  registers the language initializers

__all__ = ['GeneratedFile', 'Initializer', 'InitializerError', 'registry']
