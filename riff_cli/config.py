"""
Configuration management for riff-cli

Settings are looked up in an explicit, ordered list of sources:
1. Command-line flags (highest priority)
2. Environment variables (RIFF_*)
3. Config file (~/.riff.yaml, or the file given with --config)
4. Defaults (code)

The first source holding a non-empty value wins.
"""

import getpass
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog
import yaml

from .models import DEFAULT_RIFF_VERSION, DEFAULT_VERSION

logger = structlog.get_logger(__name__)

ENV_PREFIX = "RIFF_"


def _default_user_account() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


class SettingSource(ABC):
    """A named place a setting can come from"""

    name: str = "base"

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value for key, or None when this source has none"""
        pass


class FlagSource(SettingSource):
    """Values given explicitly on the command line"""

    name = "flag"

    def __init__(self, flags: Optional[Mapping[str, Any]] = None):
        self.flags = dict(flags or {})

    def get(self, key: str) -> Optional[Any]:
        return self.flags.get(key)


class EnvironmentSource(SettingSource):
    """Environment variables such as RIFF_USERACCOUNT"""

    name = "environment"

    def __init__(self, environ: Optional[Mapping[str, str]] = None, prefix: str = ENV_PREFIX):
        self.environ = os.environ if environ is None else environ
        self.prefix = prefix

    def get(self, key: str) -> Optional[Any]:
        return self.environ.get(self.prefix + key.upper())


class FileSource(SettingSource):
    """Flat YAML config file, loaded on first lookup"""

    name = "file"

    def __init__(self, path: str):
        self.path = path
        self._values: Optional[Dict[str, Any]] = None

    @property
    def values(self) -> Dict[str, Any]:
        if self._values is None:
            self._values = self._load()
        return self._values

    def _load(self) -> Dict[str, Any]:
        config_path = Path(self.path).expanduser()

        if not config_path.exists():
            logger.debug("Config file not found", path=self.path)
            return {}

        try:
            with open(config_path, "r") as f:
                content = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load config file", path=self.path, error=str(e))
            return {}

        if not isinstance(content, dict):
            logger.warning("Ignoring config file without a mapping", path=self.path)
            return {}

        logger.debug("Loaded configuration from file", path=self.path)
        return {str(k).lower(): v for k, v in content.items()}

    def get(self, key: str) -> Optional[Any]:
        return self.values.get(key)


class DefaultSource(SettingSource):
    """Compiled-in defaults"""

    name = "default"

    def __init__(self, defaults: Mapping[str, Any]):
        self.defaults = dict(defaults)

    def get(self, key: str) -> Optional[Any]:
        return self.defaults.get(key)


class OverrideResolver:
    """Queries setting sources in order and returns the first answer"""

    def __init__(self, sources: List[SettingSource]):
        self.sources = list(sources)

    def lookup(self, key: str) -> Tuple[Optional[Any], Optional[str]]:
        """Resolve key

        Returns:
            Tuple of (value, name of the source that answered); both None
            when no source has a value
        """
        for source in self.sources:
            value = source.get(key)
            if value is None or value == "":
                continue
            logger.debug("Resolved setting", key=key, source=source.name)
            return value, source.name
        return None, None

    def get(self, key: str, default: Any = None) -> Any:
        value, _ = self.lookup(key)
        return default if value is None else value

    def get_string(self, key: str, default: str = "") -> str:
        return str(self.get(key, default))


class Config:
    """Configuration manager for riff-cli"""

    DEFAULTS = {
        "useraccount": _default_user_account(),
        "namespace": "",
        "version": DEFAULT_VERSION,
        "riff_version": DEFAULT_RIFF_VERSION,
        "kubectl": "kubectl",
        "log_level": "WARNING",
        "log_file": "",
        "log_max_size_mb": 10,
        "log_backup_count": 3,
    }

    def __init__(
        self,
        config_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize configuration

        Args:
            config_file: Path to config file (default: ~/.riff.yaml)
            environ: Environment mapping (default: os.environ)
        """
        self.config_file = config_file or self._get_default_config_path()
        self.environment = EnvironmentSource(environ)
        self.file = FileSource(self.config_file)
        self.defaults = DefaultSource(self.DEFAULTS)

    def _get_default_config_path(self) -> str:
        return str(Path.home() / ".riff.yaml")

    def resolver(self, flags: Optional[Mapping[str, Any]] = None) -> OverrideResolver:
        """Build the ordered lookup for one command invocation

        Args:
            flags: Explicitly given flag values keyed by setting name;
                None values mean the flag was not given
        """
        return OverrideResolver([
            FlagSource(flags),
            self.environment,
            self.file,
            self.defaults,
        ])

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting without flag overrides"""
        return self.resolver().get(key, default)

    def get_int(self, key: str, default: int) -> int:
        """Get a numeric setting; values that are not integers mean default"""
        value = self.get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-integer setting", key=key, value=value)
            return default

    def logging_settings(self) -> Dict[str, Any]:
        return {
            "level": self.get("log_level", "WARNING"),
            "file": self.get("log_file") or None,
            "max_size_mb": self.get_int("log_max_size_mb", 10),
            "backup_count": self.get_int("log_backup_count", 3),
        }
