"""
Language initializers

One initializer per supported language. Each knows which files are its
artifacts, which invoker image runs them, how the Dockerfile wires the
artifact and handler into the invoker, and what a starter source looks like.
"""

import os
from typing import Tuple

from ..models import InitOptions, Language, Protocol
from .base import Initializer, InitializerError, registry


@registry.register
class JavaInitializer(Initializer):
    """Java functions packaged as a jar"""

    language = Language.JAVA
    extensions = ('.jar',)
    search_dirs = ('.', 'target', os.path.join('build', 'libs'))
    default_protocol = Protocol.HTTP

    def check(self, options: InitOptions) -> None:
        if not options.handler:
            raise InitializerError(
                "Java functions need a handler class, use: riff init java --handler <class>"
            )

    def dockerfile(self, options: InitOptions) -> str:
        return f"""FROM {self.invoker_image(options)}
ARG FUNCTION_JAR=/functions/{options.artifact_base}
ARG FUNCTION_CLASS={options.handler}
ADD {options.artifact} $FUNCTION_JAR
ENV FUNCTION_URI file://${{FUNCTION_JAR}}?handler=${{FUNCTION_CLASS}}
"""


@registry.register
class NodeInitializer(Initializer):
    """node.js functions exporting a single function"""

    language = Language.NODE
    extensions = ('.js',)
    default_protocol = Protocol.HTTP

    def dockerfile(self, options: InitOptions) -> str:
        return f"""FROM {self.invoker_image(options)}
ENV FUNCTION_URI /functions/{options.artifact_base}
ADD {options.artifact} ${{FUNCTION_URI}}
"""

    def source_stub(self, options: InitOptions) -> Tuple[str, str]:
        return f"{options.function_name}.js", """module.exports = (x) => x;
"""


@registry.register
class PythonInitializer(Initializer):
    """Python 3 modules exposing a handler function"""

    language = Language.PYTHON
    extensions = ('.py',)
    default_protocol = Protocol.STDIO
    invoker = "python3"

    def dockerfile(self, options: InitOptions) -> str:
        lines = [
            f"FROM {self.invoker_image(options)}",
            f"ARG FUNCTION_MODULE={options.artifact_base}",
            f"ARG FUNCTION_HANDLER={options.handler}",
            f"ADD ./{options.artifact} /",
        ]
        if os.path.isfile(os.path.join(options.function_dir, "requirements.txt")):
            lines.append("ADD ./requirements.txt /")
            lines.append("RUN pip install --upgrade pip && pip install -r /requirements.txt")
        lines.append(f"ENV FUNCTION_URI file:///${{FUNCTION_MODULE}}?handler=${{FUNCTION_HANDLER}}")
        return "\n".join(lines) + "\n"

    def source_stub(self, options: InitOptions) -> Tuple[str, str]:
        handler = options.handler or options.function_name
        if not handler.isidentifier():
            raise InitializerError(
                f"Handler '{handler}' is not a valid Python identifier, use --handler"
            )
        return f"{options.function_name}.py", f"""def {handler}(x):
    return x
"""


@registry.register
class GoInitializer(Initializer):
    """Go plugins exporting a handler function"""

    language = Language.GO
    extensions = ('.go',)
    default_protocol = Protocol.GRPC

    def dockerfile(self, options: InitOptions) -> str:
        plugin = f"{options.function_name}.so"
        return f"""FROM golang:1.10 as builder
WORKDIR /go/src/{options.function_name}
COPY . .
RUN go build -buildmode=plugin -o /{plugin} {options.artifact}

FROM {self.invoker_image(options)}
COPY --from=builder /{plugin} /{plugin}
ENV FUNCTION_URI file:///{plugin}?handler={options.handler}
"""

    def source_stub(self, options: InitOptions) -> Tuple[str, str]:
        if not options.handler.isidentifier():
            raise InitializerError(
                f"Handler '{options.handler}' is not a valid Go identifier, use --handler"
            )
        return f"{options.function_name}.go", f"""package main

func {options.handler}(input string) string {{
	return input
}}
"""


@registry.register
class CommandInitializer(Initializer):
    """Executable commands reading stdin and writing stdout"""

    language = Language.COMMAND
    extensions = ('.sh',)
    default_protocol = Protocol.STDIO

    def dockerfile(self, options: InitOptions) -> str:
        return f"""FROM {self.invoker_image(options)}
ARG FUNCTION_URI="/{options.artifact_base}"
ADD {options.artifact} $FUNCTION_URI
ENV FUNCTION_URI $FUNCTION_URI
"""

    def source_stub(self, options: InitOptions) -> Tuple[str, str]:
        return f"{options.function_name}.sh", """#!/bin/sh
cat
"""
