"""
Core data models for riff-cli

These models carry the user supplied options of a single command invocation
from flag parsing, through defaulting and validation, to the initializers
and the kubectl wrapper.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_VERSION = "0.0.1-snapshot"
DEFAULT_RIFF_VERSION = "0.0.4"
DEFAULT_CONTAINER = "sidecar"


class Language(str, Enum):
    """Function languages supported by the init commands"""

    JAVA = "java"
    NODE = "node"
    PYTHON = "python"
    GO = "go"
    COMMAND = "command"


class Protocol(str, Enum):
    """Wire protocols understood by the riff function invokers"""

    STDIO = "stdio"
    HTTP = "http"
    GRPC = "grpc"


class InitOptions(BaseModel):
    """Options of an init invocation

    Instances are immutable: defaulting and validation return updated copies
    via ``evolve``, and the final copy is what an initializer receives.
    """

    model_config = ConfigDict(frozen=True)

    file_path: str = Field(default="", description="Function directory or artifact file")
    function_name: str = Field(default="", description="Name of the function")
    artifact: str = Field(default="", description="Artifact path, relative to the function directory")
    handler: str = Field(default="", description="Language specific entry point")
    version: str = Field(default=DEFAULT_VERSION, description="Version of the function image")
    riff_version: str = Field(default=DEFAULT_RIFF_VERSION, description="Version of the invoker image")
    user_account: str = Field(default="", description="Docker account of the image repository")
    input: str = Field(default="", description="Input topic (defaults to the function name)")
    output: str = Field(default="", description="Output topic")
    protocol: str = Field(default="", description="Invoker protocol (empty for the language default)")
    dry_run: bool = False
    force: bool = False

    def evolve(self, **changes) -> "InitOptions":
        """Return a copy with the given fields replaced"""
        return self.model_copy(update=changes)

    @property
    def function_dir(self) -> str:
        """Directory that holds the function sources and generated files"""
        if self.file_path and os.path.isfile(self.file_path):
            return os.path.dirname(self.file_path)
        return self.file_path

    @property
    def input_topic(self) -> str:
        return self.input or self.function_name

    @property
    def artifact_base(self) -> str:
        return os.path.basename(self.artifact)

    @property
    def image(self) -> str:
        """Image reference written to the Function manifest"""
        if self.user_account:
            return f"{self.user_account}/{self.function_name}:{self.version}"
        return f"{self.function_name}:{self.version}"


class LogsOptions(BaseModel):
    """Options of a logs invocation"""

    model_config = ConfigDict(frozen=True)

    function: str = Field(..., min_length=1, description="Name of the function")
    container: str = Field(default=DEFAULT_CONTAINER, description="Container within the function pod")
    namespace: Optional[str] = Field(default=None, description="Namespace of the function")
    tail: bool = False

    def kubectl_args(self) -> List[str]:
        """Namespace arguments shared by every kubectl call"""
        if self.namespace:
            return ['--namespace', self.namespace]
        return []

    def pod_query_args(self) -> List[str]:
        """kubectl arguments locating the pod that runs the function"""
        return ['get'] + self.kubectl_args() + [
            'pod',
            '-l', f'function={self.function}',
            '-o', 'jsonpath={.items[0].metadata.name}',
        ]

    def logs_args(self, pod: str) -> List[str]:
        """kubectl arguments fetching (or following) the container logs"""
        args = ['logs'] + self.kubectl_args() + [pod, '-c', self.container]
        if self.tail:
            args.append('-f')
        return args
