"""
Base initializer classes and interfaces

An initializer turns validated InitOptions into the files a riff function
needs: a Dockerfile, the Function and Topic manifests and, when the user has
no source yet, a source stub. Nothing is written until every target has been
checked, so a refused run leaves the directory untouched.
"""

import glob
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import structlog
import yaml

from ..models import InitOptions, Language, Protocol

logger = structlog.get_logger(__name__)

API_VERSION = "projectriff.io/v1alpha1"
INVOKER_IMAGE = "projectriff/{language}-function-invoker:{version}"


class InitializerError(Exception):
    """Raised when function artifacts cannot be generated"""
    pass


@dataclass
class GeneratedFile:
    """A generated function artifact"""
    path: str
    content: str
    written: bool = False

    @property
    def name(self) -> str:
        return os.path.basename(self.path)


class Initializer(ABC):
    """Abstract base class for all language initializers"""

    language: Language
    extensions: Tuple[str, ...] = ()
    search_dirs: Tuple[str, ...] = ('.',)
    default_protocol: Protocol = Protocol.HTTP
    invoker: str = ""

    def initialize(self, options: InitOptions) -> List[GeneratedFile]:
        """Generate the function artifacts

        Args:
            options: Validated, immutable init options

        Returns:
            The generated files; written is False for dry runs

        Raises:
            InitializerError: When the artifact is ambiguous or a target
                exists and force is not set
        """
        options = self.prepare(options)
        stub = None
        if not options.artifact:
            stub = self.source_stub(options)
            options = options.evolve(artifact=stub[0])

        files = []
        if stub is not None:
            files.append(self._file(options, *stub))
        files.append(self._file(options, "Dockerfile", self.dockerfile(options)))
        files.append(self._file(options, f"{options.function_name}-function.yaml", self.function_manifest(options)))
        files.append(self._file(options, f"{options.function_name}-topics.yaml", self.topics_manifest(options)))

        if options.dry_run:
            logger.debug("Dry run, nothing written", function=options.function_name)
            return files

        if not options.force:
            existing = [f.name for f in files if os.path.exists(f.path)]
            if existing:
                raise InitializerError(
                    f"{', '.join(existing)} already exist(s) in {options.function_dir}, "
                    f"use --force to overwrite"
                )

        for generated in files:
            with open(generated.path, "w") as f:
                f.write(generated.content)
            generated.written = True
            logger.info("Wrote function artifact", path=generated.path)

        return files

    def prepare(self, options: InitOptions) -> InitOptions:
        """Fill in language defaults: protocol and discovered artifact"""
        if not options.protocol:
            options = options.evolve(protocol=self.default_protocol.value)
        if not options.artifact:
            artifact = self.discover_artifact(options.function_dir)
            if artifact:
                options = options.evolve(artifact=artifact)
        self.check(options)
        return options

    def check(self, options: InitOptions) -> None:
        """Language specific preconditions; raise InitializerError to refuse"""
        pass

    def discover_artifact(self, function_dir: str) -> Optional[str]:
        """Find the single artifact matching this language's extensions

        Returns:
            Path relative to function_dir, or None when there is none

        Raises:
            InitializerError: When more than one candidate matches
        """
        candidates = find_candidates(function_dir, self.extensions, self.search_dirs)
        if len(candidates) > 1:
            raise InitializerError(
                f"Found multiple {self.language.value} artifacts in {function_dir} "
                f"({', '.join(candidates)}), use --artifact to choose one"
            )
        return candidates[0] if candidates else None

    def source_stub(self, options: InitOptions) -> Tuple[str, str]:
        """Return (file name, content) of a starter source file"""
        raise InitializerError(
            f"No {self.language.value} artifact found in {options.function_dir}, "
            f"use --artifact to point at one"
        )

    @abstractmethod
    def dockerfile(self, options: InitOptions) -> str:
        pass

    def invoker_image(self, options: InitOptions) -> str:
        return INVOKER_IMAGE.format(language=self.invoker or self.language.value, version=options.riff_version)

    def function_manifest(self, options: InitOptions) -> str:
        spec = {
            "protocol": options.protocol,
            "input": options.input_topic,
        }
        if options.output:
            spec["output"] = options.output
        spec["container"] = {"image": options.image}

        manifest = {
            "apiVersion": API_VERSION,
            "kind": "Function",
            "metadata": {"name": options.function_name},
            "spec": spec,
        }
        return yaml.dump(manifest, default_flow_style=False, sort_keys=False)

    def topics_manifest(self, options: InitOptions) -> str:
        topics = [options.input_topic]
        if options.output:
            topics.append(options.output)

        documents = [
            {
                "apiVersion": API_VERSION,
                "kind": "Topic",
                "metadata": {"name": topic},
            }
            for topic in topics
        ]
        return yaml.dump_all(documents, default_flow_style=False, sort_keys=False)

    def _file(self, options: InitOptions, name: str, content: str) -> GeneratedFile:
        return GeneratedFile(path=os.path.join(options.function_dir, name), content=content)


def find_candidates(function_dir: str, extensions: Tuple[str, ...], search_dirs: Tuple[str, ...] = ('.',)) -> List[str]:
    """List files under function_dir with one of the extensions

    Returns:
        Sorted paths relative to function_dir, using forward slashes
    """
    candidates = set()
    for search_dir in search_dirs:
        for extension in extensions:
            pattern = os.path.join(glob.escape(function_dir), search_dir, f"*{extension}")
            for match in glob.glob(pattern):
                if os.path.isfile(match):
                    relative = os.path.relpath(match, function_dir)
                    candidates.add(relative.replace(os.sep, '/'))
    return sorted(candidates)


class InitializerRegistry:
    """Registry for managing and creating initializers"""

    def __init__(self):
        self._initializers: Dict[Language, type] = {}

    def register(self, initializer_class: type) -> type:
        """Register an initializer class for its language"""
        self._initializers[initializer_class.language] = initializer_class
        return initializer_class

    def create(self, language: Language) -> Initializer:
        """Create the initializer for a language"""
        if language not in self._initializers:
            raise InitializerError(f"Unsupported language: {language}")
        return self._initializers[language]()

    def detect_language(self, options: InitOptions) -> Language:
        """Work out the language from the artifact extension

        When no artifact is given, the function directory is searched for
        any known artifact; exactly one must be found.

        Raises:
            InitializerError: When no language or more than one matches
        """
        artifact = options.artifact
        if not artifact:
            found = []
            for initializer_class in self._initializers.values():
                found.extend(find_candidates(
                    options.function_dir,
                    initializer_class.extensions,
                    initializer_class.search_dirs,
                ))
            if not found:
                raise InitializerError(
                    f"Could not find a function artifact in {options.function_dir}, "
                    f"use --artifact or choose a language: {', '.join(l.value for l in Language)}"
                )
            if len(found) > 1:
                raise InitializerError(
                    f"Found multiple function artifacts in {options.function_dir} "
                    f"({', '.join(sorted(found))}), use --artifact to choose one"
                )
            artifact = found[0]

        extension = os.path.splitext(artifact)[1].lower()
        for language, initializer_class in self._initializers.items():
            if extension in initializer_class.extensions:
                logger.debug("Detected function language", language=language.value, artifact=artifact)
                return language

        raise InitializerError(
            f"Could not determine the language of artifact {artifact}, "
            f"choose one: {', '.join(l.value for l in Language)}"
        )

    @property
    def languages(self) -> List[Language]:
        return list(self._initializers)


# Global registry instance
registry = InitializerRegistry()
