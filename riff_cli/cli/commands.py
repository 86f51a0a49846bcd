"""
Command implementations for init and logs

This module holds the business logic behind the CLI: the init flow
(validate, default, dispatch to an initializer) and the logs flow (find
the function pod, then fetch or follow its logs).
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog

from ..initializers import registry as initializer_registry
from ..kubectl import Kubectl, KubectlError
from ..logging_config import PerformanceLogger
from ..models import InitOptions, Language, LogsOptions
from ..renderers.terminal import TerminalRenderer
from ..validation import validate_init_options

logger = structlog.get_logger(__name__)


class FunctionNotActiveError(KubectlError):
    """Raised when no pod runs the requested function"""

    def __init__(self, function: str, cause: str = ""):
        self.function = function
        self.cause = cause
        message = f"Function {function} may not be currently active"
        if cause:
            message = f"{message} ({cause})"
        super().__init__(message)


@dataclass
class CommandResult:
    """Result of command execution"""
    output: str
    exit_code: int = 0
    result_data: Optional[Any] = None


def default_handler(language: Language, options: InitOptions) -> InitOptions:
    """Apply the per-language handler default

    Python handlers default to the function name. Go handlers must be
    exported symbols, so the function name is used with its first letter
    upper-cased.
    """
    if options.handler:
        return options

    name = options.function_name
    if language == Language.PYTHON:
        return options.evolve(handler=name)
    if language == Language.GO:
        return options.evolve(handler=name[:1].upper() + name[1:])
    return options


class InitCommand:
    """Implementation of the init commands

    Flow: validate -> default -> dispatch. Validation runs to completion
    before an initializer is created, so a rejected invocation writes
    nothing.
    """

    def __init__(self, language: Optional[Language] = None, renderer: Optional[TerminalRenderer] = None):
        self.language = language
        self.renderer = renderer or TerminalRenderer(colors_enabled=False)

    def execute(self, options: InitOptions) -> CommandResult:
        """Execute init

        Raises:
            ValidationError: When the options are invalid
            InitializerError: When the artifacts cannot be generated
        """
        options = validate_init_options(options)

        language = self.language or initializer_registry.detect_language(options)
        options = default_handler(language, options)

        initializer = initializer_registry.create(language)
        with PerformanceLogger(f"init {language.value}", logger):
            files = initializer.initialize(options)

        return CommandResult(
            output=self.renderer.render_init(language, options, files),
            result_data=files,
        )


class LogsCommand:
    """Implementation of the logs command"""

    def __init__(self, kubectl: Optional[Kubectl] = None, echo: Callable[[str], None] = print):
        self.kubectl = kubectl or Kubectl()
        self.echo = echo

    async def execute(self, options: LogsOptions) -> CommandResult:
        """Display (or follow) the logs of a function container

        Raises:
            FunctionNotActiveError: When no pod runs the function
            KubectlError: When fetching or following the logs fails
        """
        namespace = f"namespace {options.namespace}" if options.namespace else "the current namespace"
        self.echo(
            f"Displaying logs for container {options.container} of function "
            f"{options.function} in {namespace}\n"
        )

        pod = await self.find_pod(options)
        args = options.logs_args(pod)

        if options.tail:
            await self.kubectl.follow(args, self.echo)
            return CommandResult(output="")

        output = await self.kubectl.exec_for_string(args, combine_output=True)
        return CommandResult(output=output.rstrip("\n"))

    async def find_pod(self, options: LogsOptions) -> str:
        """Return the name of the pod running the function"""
        try:
            pod = await self.kubectl.exec_for_string(options.pod_query_args())
        except KubectlError as e:
            raise FunctionNotActiveError(options.function, str(e)) from e

        pod = pod.strip()
        if not pod:
            raise FunctionNotActiveError(options.function)

        logger.debug("Found function pod", function=options.function, pod=pod)
        return pod
