"""
Validation and normalization of init options

Every check takes the value under test plus whatever context it needs and
returns the normalized value, raising ValidationError on failure. The
checks run in a fixed order (filepath, function name, artifact, protocol)
so the first problem found is always the one reported.
"""

import os
import re
from typing import Optional

import structlog

from .models import InitOptions, Protocol

logger = structlog.get_logger(__name__)


class ValidationError(Exception):
    """Raised when input validation fails"""
    pass


class InitOptionsValidator:
    """Validates the options of an init invocation"""

    # Function names end up as file names and as Kubernetes object names,
    # so they follow the RFC 1123 DNS label rules.
    FUNCTION_NAME_PATTERN = re.compile(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$')
    MAX_FUNCTION_NAME_LENGTH = 63

    @classmethod
    def validate_filepath(cls, file_path: str) -> str:
        """Resolve the function path to an absolute, existing path

        Args:
            file_path: Path given on the command line (empty for cwd)

        Returns:
            Absolute path

        Raises:
            ValidationError: If the path does not exist
        """
        if not file_path:
            file_path = os.getcwd()

        resolved = os.path.abspath(os.path.expanduser(file_path))
        if not os.path.exists(resolved):
            raise ValidationError(f"Filepath {file_path} does not exist")

        return resolved

    @classmethod
    def validate_function_name(cls, name: str, file_path: str) -> str:
        """Default and validate the function name

        Args:
            name: Name given on the command line (empty to derive it)
            file_path: Validated function path

        Returns:
            Function name

        Raises:
            ValidationError: If the name is empty or not a valid DNS label
        """
        if not name:
            function_dir = file_path
            if os.path.isfile(file_path):
                function_dir = os.path.dirname(file_path)
            name = os.path.basename(os.path.normpath(function_dir))

        if not name:
            raise ValidationError("Function name cannot be empty, use --name")

        if len(name) > cls.MAX_FUNCTION_NAME_LENGTH:
            raise ValidationError(
                f"Function name too long: {len(name)} chars "
                f"(max {cls.MAX_FUNCTION_NAME_LENGTH})"
            )

        if not cls.FUNCTION_NAME_PATTERN.match(name):
            raise ValidationError(
                f"Invalid function name '{name}': must match pattern "
                f"{cls.FUNCTION_NAME_PATTERN.pattern} (use --name to set one)"
            )

        return name

    @classmethod
    def validate_artifact(cls, artifact: str, file_path: str) -> str:
        """Normalize the artifact to a path relative to the function directory

        When no artifact is given and the function path names a file, that
        file is the artifact. An empty result means the initializer looks
        for one itself.

        Raises:
            ValidationError: If the artifact is missing or outside the
                function directory
        """
        if os.path.isfile(file_path):
            function_dir = os.path.dirname(file_path)
            if not artifact:
                return os.path.basename(file_path)
        else:
            function_dir = file_path

        if not artifact:
            return ""

        candidate = artifact
        if not os.path.isabs(candidate):
            candidate = os.path.join(function_dir, candidate)
        candidate = os.path.normpath(candidate)

        if not os.path.isfile(candidate):
            raise ValidationError(f"Artifact {artifact} does not exist")

        relative = os.path.relpath(candidate, function_dir)
        if relative == os.pardir or relative.startswith(os.pardir + os.sep):
            raise ValidationError(
                f"Artifact {artifact} must be located inside the function directory {function_dir}"
            )

        return relative.replace(os.sep, '/')

    @classmethod
    def validate_protocol(cls, protocol: Optional[str]) -> str:
        """Validate the protocol against the supported set (empty allowed)"""
        if not protocol:
            return ""

        normalized = protocol.strip().lower()
        valid = [p.value for p in Protocol]
        if normalized not in valid:
            raise ValidationError(
                f"Invalid protocol '{protocol}'. "
                f"Valid options: {', '.join(valid)}"
            )

        return normalized


def validate_init_options(options: InitOptions) -> InitOptions:
    """Run all init checks in order and return the normalized options

    Raises:
        ValidationError: On the first failing check
    """
    try:
        file_path = InitOptionsValidator.validate_filepath(options.file_path)
        function_name = InitOptionsValidator.validate_function_name(options.function_name, file_path)
        artifact = InitOptionsValidator.validate_artifact(options.artifact, file_path)
        protocol = InitOptionsValidator.validate_protocol(options.protocol)
    except ValidationError as e:
        logger.debug("Init options validation failed", error=str(e))
        raise

    return options.evolve(
        file_path=file_path,
        function_name=function_name,
        artifact=artifact,
        protocol=protocol,
    )
