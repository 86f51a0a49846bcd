"""
CLI front-end using Typer framework

Commands:
- init: scaffold a function (one subcommand per language)
- logs: display or tail the logs of a running function
"""

import asyncio
from typing import Optional

import typer
from typing_extensions import Annotated

from .. import __version__
from ..config import Config
from ..kubectl import Kubectl, KubectlError
from ..logging_config import log_command_execution, log_error_with_context, setup_logging_from_config
from ..models import DEFAULT_CONTAINER, LogsOptions
from .commands import LogsCommand
from .init import init_app

app = typer.Typer(
    name="riff",
    help="Command line helper for riff functions",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(init_app, name="init")


def version_callback(value: bool):
    """Show version and exit"""
    if value:
        typer.echo(f"riff v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[Optional[bool], typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit")] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
    config: Annotated[Optional[str], typer.Option("--config", help="Config file (default is $HOME/.riff.yaml)")] = None,
):
    """
    riff: build and run functions on Kubernetes

    [bold]Commands:[/bold]
    • [cyan]init[/cyan] - Generate Dockerfile, Function and Topic manifests for a function
    • [cyan]logs[/cyan] - Display the logs of a running function
    """
    settings = Config(config_file=config)
    ctx.obj = settings
    setup_logging_from_config(settings.logging_settings(), debug=debug)


@app.command()
def logs(
    ctx: typer.Context,
    name: Annotated[str, typer.Option("--name", "-n", help="The name of the function", show_default=False)],
    container: Annotated[str, typer.Option("--container", "-c", help="The name of the function container (sidecar or main)")] = DEFAULT_CONTAINER,
    tail: Annotated[bool, typer.Option("--tail", "-t", help="Tail the logs")] = False,
    namespace: Annotated[Optional[str], typer.Option("--namespace", help="The namespace used for the deployed resources")] = None,
):
    """
    Display the logs for a running function

    [bold]Example:[/bold]
      riff logs -n myfunc -t

    will tail the logs from the 'sidecar' container for the function 'myfunc'
    """
    if not name:
        raise typer.BadParameter("the function name cannot be empty", param_hint="'--name'")

    settings = ctx.obj if isinstance(ctx.obj, Config) else Config()
    resolver = settings.resolver({"namespace": namespace})

    options = LogsOptions(
        function=name,
        container=container,
        namespace=resolver.get_string("namespace") or None,
        tail=tail,
    )
    log_command_execution("logs", options.model_dump())

    command = LogsCommand(kubectl=Kubectl(settings.get("kubectl", "kubectl")), echo=typer.echo)

    try:
        result = asyncio.run(command.execute(options))
    except KeyboardInterrupt:
        raise typer.Exit(130)
    except KubectlError as e:
        log_error_with_context(e, {"command": "logs", "function": name})
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if result.output:
        typer.echo(result.output)
    raise typer.Exit(result.exit_code)


if __name__ == "__main__":
    app()
