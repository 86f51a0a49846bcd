"""
init command family

`riff init` scaffolds a function: one subcommand per language plus a
hidden fallback that detects the language from the artifact when no
language is named. All subcommands share the same options, which may
appear before or after the language.
"""

from typing import List, Optional

import typer
from typer.core import TyperCommand, TyperGroup
from typing_extensions import Annotated

from ..config import Config
from ..initializers import InitializerError
from ..logging_config import log_command_execution, log_error_with_context
from ..models import DEFAULT_RIFF_VERSION, DEFAULT_VERSION, InitOptions, Language
from ..renderers.terminal import TerminalRenderer
from ..validation import ValidationError
from .commands import InitCommand

DETECT_COMMAND = "auto"

# Extra positional arguments reach build_init_options, which reports them
INIT_CONTEXT_SETTINGS = {"allow_extra_args": True}


class InitGroup(TyperGroup):
    """init group that accepts options before the language

    The language is the first positional argument, wherever it appears, and
    is moved to the front for dispatch. When the first positional argument
    is not a language (a path, or nothing at all) the detect command runs.
    """

    def parse_args(self, ctx: typer.Context, args: List[str]) -> List[str]:
        args = list(args)
        if args and args[0] in ctx.help_option_names:
            return super().parse_args(ctx, args)

        index = self._language_index(args, self._flag_names() | set(ctx.help_option_names))
        if index is None:
            args = [DETECT_COMMAND] + args
        else:
            args = [args[index]] + args[:index] + args[index + 1:]
        return super().parse_args(ctx, args)

    def _language_index(self, args: List[str], flags: set) -> Optional[int]:
        expects_value = False
        for index, arg in enumerate(args):
            if expects_value:
                expects_value = False
                continue
            if arg == "--":
                return None
            if arg.startswith("-") and arg != "-":
                attached = "=" in arg or (not arg.startswith("--") and len(arg) > 2)
                expects_value = arg not in flags and not attached
                continue
            return index if arg in self.commands and arg != DETECT_COMMAND else None
        return None

    def _flag_names(self) -> set:
        names = set()
        for command in self.commands.values():
            for param in command.params:
                if getattr(param, "is_flag", False):
                    names.update(param.opts)
                    names.update(param.secondary_opts)
        return names


class DetectContext(typer.Context):
    """Context of the detect command, which users know as plain `riff init`"""

    @property
    def command_path(self) -> str:
        if self.parent is not None:
            return self.parent.command_path
        return super().command_path


class DetectCommand(TyperCommand):
    context_class = DetectContext


init_app = typer.Typer(
    name="init",
    help="Initialize a function",
    cls=InitGroup,
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


PathArgument = Annotated[Optional[str], typer.Argument(help="Function directory or artifact file", show_default=False)]
DryRunOption = Annotated[bool, typer.Option("--dry-run", help="Print generated function artifacts content to stdout only")]
FilePathOption = Annotated[Optional[str], typer.Option("--filepath", "-f", help="Path or directory used for the function resources (defaults to the current directory)")]
NameOption = Annotated[Optional[str], typer.Option("--name", "-n", help="The name of the function (defaults to the name of the current directory)")]
RiffVersionOption = Annotated[Optional[str], typer.Option("--riff-version", help=f"The version of riff to use when building containers (default: {DEFAULT_RIFF_VERSION})", show_default=False)]
VersionOption = Annotated[Optional[str], typer.Option("--version", "-v", help=f"The version of the function image (default: {DEFAULT_VERSION})", show_default=False)]
UserAccountOption = Annotated[Optional[str], typer.Option("--useraccount", "-u", help="The Docker user account to be used for the image repository", show_default=False)]
ArtifactOption = Annotated[Optional[str], typer.Option("--artifact", "-a", help="Path to the function artifact, source code or jar file")]
InputOption = Annotated[Optional[str], typer.Option("--input", "-i", help="The name of the input topic (defaults to function name)")]
OutputOption = Annotated[Optional[str], typer.Option("--output", "-o", help="The name of the output topic (optional)")]
ProtocolOption = Annotated[Optional[str], typer.Option("--protocol", "-p", help="The protocol to use for function invocations (stdio, http, grpc)")]
ForceOption = Annotated[bool, typer.Option("--force", help="Overwrite existing functions artifacts")]


def _get_config(ctx: typer.Context) -> Config:
    if isinstance(ctx.obj, Config):
        return ctx.obj
    return Config()


def build_init_options(
    ctx: typer.Context,
    path: Optional[str],
    filepath: Optional[str],
    name: Optional[str],
    version: Optional[str],
    riff_version: Optional[str],
    useraccount: Optional[str],
    artifact: Optional[str],
    input: Optional[str],
    output: Optional[str],
    protocol: Optional[str],
    dry_run: bool,
    force: bool,
    handler: Optional[str] = None,
) -> InitOptions:
    """Turn parsed flags into InitOptions

    At most one positional argument is accepted, and only when --filepath
    is not given.

    Raises:
        UsageError: When the positional arguments are invalid
    """
    positional = ([path] if path is not None else []) + list(ctx.args)
    if len(positional) > 1 or (positional and filepath):
        ctx.fail(f"Invalid argument(s): {' '.join(positional)}")

    resolver = _get_config(ctx).resolver({
        "useraccount": useraccount,
        "version": version,
        "riff_version": riff_version,
    })

    return InitOptions(
        file_path=filepath or path or "",
        function_name=name or "",
        artifact=artifact or "",
        handler=handler or "",
        version=resolver.get_string("version", DEFAULT_VERSION),
        riff_version=resolver.get_string("riff_version", DEFAULT_RIFF_VERSION),
        user_account=resolver.get_string("useraccount"),
        input=input or "",
        output=output or "",
        protocol=protocol or "",
        dry_run=dry_run,
        force=force,
    )


def run_init(ctx: typer.Context, language: Optional[Language], options: InitOptions) -> None:
    """Run the init flow and translate failures into exit codes"""
    command_name = f"init {language.value}" if language else "init"
    log_command_execution(command_name, options.model_dump())

    renderer = TerminalRenderer(colors_enabled=False)
    command = InitCommand(language=language, renderer=renderer)

    try:
        result = command.execute(options)
    except (ValidationError, InitializerError, OSError) as e:
        log_error_with_context(e, {"command": command_name})
        typer.echo(renderer.render_error(str(e)), err=True)
        raise typer.Exit(1)

    typer.echo(result.output)


@init_app.command(DETECT_COMMAND, hidden=True, cls=DetectCommand, context_settings=INIT_CONTEXT_SETTINGS)
def init_detect(
    ctx: typer.Context,
    path: PathArgument = None,
    dry_run: DryRunOption = False,
    filepath: FilePathOption = None,
    name: NameOption = None,
    riff_version: RiffVersionOption = None,
    version: VersionOption = None,
    useraccount: UserAccountOption = None,
    artifact: ArtifactOption = None,
    input: InputOption = None,
    output: OutputOption = None,
    protocol: ProtocolOption = None,
    force: ForceOption = False,
):
    """Initialize a function, detecting the language from its artifact"""
    options = build_init_options(
        ctx, path, filepath, name, version, riff_version, useraccount,
        artifact, input, output, protocol, dry_run, force,
    )
    run_init(ctx, None, options)


@init_app.command("java", context_settings=INIT_CONTEXT_SETTINGS)
def init_java(
    ctx: typer.Context,
    handler: Annotated[str, typer.Option("--handler", help="The fully qualified class name of the function handler", show_default=False)],
    path: PathArgument = None,
    dry_run: DryRunOption = False,
    filepath: FilePathOption = None,
    name: NameOption = None,
    riff_version: RiffVersionOption = None,
    version: VersionOption = None,
    useraccount: UserAccountOption = None,
    artifact: ArtifactOption = None,
    input: InputOption = None,
    output: OutputOption = None,
    protocol: ProtocolOption = None,
    force: ForceOption = False,
):
    """
    Initialize a Java function

    Generates the Dockerfile and resource manifests for a function packaged
    as a jar. The jar is looked up in the function directory, target/ and
    build/libs/ unless --artifact is given.

    [bold]Example:[/bold]
      riff init java -a target/greeter-1.0.0.jar --handler functions.Greeter
    """
    options = build_init_options(
        ctx, path, filepath, name, version, riff_version, useraccount,
        artifact, input, output, protocol, dry_run, force, handler=handler,
    )
    run_init(ctx, Language.JAVA, options)


@init_app.command("command", context_settings=INIT_CONTEXT_SETTINGS)
def init_command(
    ctx: typer.Context,
    path: PathArgument = None,
    dry_run: DryRunOption = False,
    filepath: FilePathOption = None,
    name: NameOption = None,
    riff_version: RiffVersionOption = None,
    version: VersionOption = None,
    useraccount: UserAccountOption = None,
    artifact: ArtifactOption = None,
    input: InputOption = None,
    output: OutputOption = None,
    protocol: ProtocolOption = None,
    force: ForceOption = False,
):
    """
    Initialize an executable command function

    The command reads its input on stdin and writes the result to stdout.

    [bold]Example:[/bold]
      riff init command ./echo -i words
    """
    options = build_init_options(
        ctx, path, filepath, name, version, riff_version, useraccount,
        artifact, input, output, protocol, dry_run, force,
    )
    run_init(ctx, Language.COMMAND, options)


@init_app.command("node", context_settings=INIT_CONTEXT_SETTINGS)
def init_node(
    ctx: typer.Context,
    path: PathArgument = None,
    dry_run: DryRunOption = False,
    filepath: FilePathOption = None,
    name: NameOption = None,
    riff_version: RiffVersionOption = None,
    version: VersionOption = None,
    useraccount: UserAccountOption = None,
    artifact: ArtifactOption = None,
    input: InputOption = None,
    output: OutputOption = None,
    protocol: ProtocolOption = None,
    force: ForceOption = False,
):
    """
    Initialize a node.js function (alias: js)

    [bold]Example:[/bold]
      riff init node ./square -i numbers -o squares
    """
    options = build_init_options(
        ctx, path, filepath, name, version, riff_version, useraccount,
        artifact, input, output, protocol, dry_run, force,
    )
    run_init(ctx, Language.NODE, options)


init_app.command("js", hidden=True, context_settings=INIT_CONTEXT_SETTINGS)(init_node)


@init_app.command("python", context_settings=INIT_CONTEXT_SETTINGS)
def init_python(
    ctx: typer.Context,
    handler: Annotated[Optional[str], typer.Option("--handler", help="The name of the function handler (defaults to the function name)", show_default=False)] = None,
    path: PathArgument = None,
    dry_run: DryRunOption = False,
    filepath: FilePathOption = None,
    name: NameOption = None,
    riff_version: RiffVersionOption = None,
    version: VersionOption = None,
    useraccount: UserAccountOption = None,
    artifact: ArtifactOption = None,
    input: InputOption = None,
    output: OutputOption = None,
    protocol: ProtocolOption = None,
    force: ForceOption = False,
):
    """
    Initialize a Python function

    [bold]Example:[/bold]
      riff init python ./wordcount --handler process -i words
    """
    options = build_init_options(
        ctx, path, filepath, name, version, riff_version, useraccount,
        artifact, input, output, protocol, dry_run, force, handler=handler,
    )
    run_init(ctx, Language.PYTHON, options)


@init_app.command("go", context_settings=INIT_CONTEXT_SETTINGS)
def init_go(
    ctx: typer.Context,
    handler: Annotated[Optional[str], typer.Option("--handler", help="The name of the function handler (name of Exported go function)", show_default=False)] = None,
    path: PathArgument = None,
    dry_run: DryRunOption = False,
    filepath: FilePathOption = None,
    name: NameOption = None,
    riff_version: RiffVersionOption = None,
    version: VersionOption = None,
    useraccount: UserAccountOption = None,
    artifact: ArtifactOption = None,
    input: InputOption = None,
    output: OutputOption = None,
    protocol: ProtocolOption = None,
    force: ForceOption = False,
):
    """
    Initialize a go plugin function

    The handler defaults to the function name with its first letter
    upper-cased, as plugins can only expose exported symbols.

    [bold]Example:[/bold]
      riff init go ./echo -i words
    """
    options = build_init_options(
        ctx, path, filepath, name, version, riff_version, useraccount,
        artifact, input, output, protocol, dry_run, force, handler=handler,
    )
    run_init(ctx, Language.GO, options)
