"""
Terminal renderer using rich for output formatting

Renders the outcome of init commands: a short summary of the written
files, or the full content of every file for dry runs.
"""

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from ..initializers import GeneratedFile
from ..models import InitOptions, Language


class TerminalRenderer:
    """ANSI terminal renderer using rich library"""

    def __init__(self, colors_enabled: bool = True, width: Optional[int] = None):
        self.colors_enabled = colors_enabled
        self.width = width or 100

    def _console(self) -> Console:
        return Console(
            color_system="auto" if self.colors_enabled else None,
            width=self.width,
            legacy_windows=False,
        )

    def render_init(self, language: Language, options: InitOptions, files: List[GeneratedFile]) -> str:
        """Render the result of an init command"""
        if options.dry_run:
            return self.render_dry_run(files)

        console = self._console()
        with console.capture() as capture:
            console.print(
                f"Initialized [bold]{language.value}[/bold] function "
                f"[cyan]{options.function_name}[/cyan] in {escape(options.function_dir)}",
                highlight=False,
                soft_wrap=True,
            )
            for generated in files:
                console.print(f"  created {generated.name}", markup=False, highlight=False, soft_wrap=True)

        return capture.get().rstrip("\n")

    def render_dry_run(self, files: List[GeneratedFile]) -> str:
        """Render the content of every generated file, unstyled"""
        console = self._console()
        with console.capture() as capture:
            for generated in files:
                console.print(Text(f"--- {generated.name} ---", style="bold"), soft_wrap=True)
                console.print(generated.content.rstrip("\n"), markup=False, highlight=False, soft_wrap=True)
                console.print()

        return capture.get().rstrip("\n")

    def render_error(self, message: str) -> str:
        console = self._console()
        with console.capture() as capture:
            console.print(Text(f"Error: {message}", style="red"), soft_wrap=True)
        return capture.get().rstrip("\n")
