"""
Template rendering pipeline.

This module drives one render per template: directive resolution, program
synthesis, compilation, isolated execution and, on failure, diagnostic
remapping. It also names the outputs so that templates sharing a file name
do not collide.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from ..codegen.synthesizer import ProgramSynthesizer, SynthesizedProgram
from ..diagnostics.model import Diagnostic, has_errors
from ..diagnostics.remapper import DiagnosticRemapper
from ..runtime.compiler import DynamicCompiler
from ..runtime.executor import IsolatedExecutor
from ..runtime.loader import CompiledArtifact
from ..template.directives import DirectiveResolver
from ..template.sources import IncludeLookup, InMemorySource, TemplateSource, build_include_lookup, file_name
from ..utils.config import Altt4Config, get_config
from ..utils.debug_artifacts import DebugArtifactManager
from ..utils.exceptions import CompilationError, RenderCancelledError, get_fallback_handler
from ..utils.logging import Altt4Logger
from ..utils.string_utils import comment_text

_REFERENCES_HEADER = "// *** Above source is compiled with following reference assemblies. ***\n//\n"
_GENERATOR_SOURCE_HEADER = "// *** Above source is generated from following code. ***\n//\n"


@dataclass
class GeneratedSource:
    """One output document produced for a template."""

    hint_name: str
    text: str
    diagnostics: List[Diagnostic] = field(default_factory=list)
    template_path: str = ""

    @property
    def has_errors(self) -> bool:
        return has_errors(self.diagnostics)


def number_duplicates(templates: Sequence[TemplateSource]) -> List[int]:
    """
    Number templates that share a file name.

    Returns:
        For each template, how many earlier templates have the same file name
    """
    seen = {}
    numbers = []
    for template in templates:
        name = file_name(template)
        numbers.append(seen.get(name, 0))
        seen[name] = seen.get(name, 0) + 1
    return numbers


def output_name(template: TemplateSource, number: int, output_extension: str) -> str:
    """Output name for the *number*-th template with this file name."""
    base = os.path.splitext(file_name(template))[0]
    if number == 0:
        return f"{base}{output_extension}"
    return f"{base}.{number}{output_extension}"


def append_annotations(
    text: str,
    references: Optional[Sequence[str]] = None,
    program_source: Optional[str] = None,
) -> str:
    """
    Append the optional annotation blocks after rendered text.

    Args:
        text: Rendered text
        references: Libraries the program was compiled against, if requested
        program_source: Generator program source, if requested

    Returns:
        Text with the requested annotation blocks
    """
    if references is None and program_source is None:
        return text

    parts = [text, "\n"]

    if references is not None:
        parts.append("\n")
        parts.append(_REFERENCES_HEADER)
        parts.extend(f"// {name}\n" for name in references)

    if program_source is not None:
        parts.append("\n")
        parts.append(_GENERATOR_SOURCE_HEADER)
        parts.append(comment_text(program_source))

    return "".join(parts)


class TemplateGenerator:
    """
    Renders text templates into output documents.

    Every render is independent: resolver, program and artifact are created
    for one template and discarded afterwards.
    """

    def __init__(self, config: Optional[Altt4Config] = None, culture: Optional[str] = None):
        """
        Initialize template generator.

        Args:
            config: Configuration, the global configuration if None
            culture: Locale name for generated programs, overrides the config
        """
        self.config = config or get_config()
        self.culture = (culture.strip() or None) if culture is not None else self.config.runtime.culture
        self._logger = Altt4Logger(__name__)

        self.compiler = DynamicCompiler(
            optimize=self.config.compilation.optimize,
            check_imports=self.config.compilation.check_imports,
        )
        self.executor = IsolatedExecutor(
            isolation=self.config.runtime.isolation,
            timeout_seconds=self.config.runtime.timeout_seconds,
            fallback_handler=get_fallback_handler(),
        )

        self._debug_manager: Optional[DebugArtifactManager] = None
        if self.config.is_debug_enabled():
            self._debug_manager = DebugArtifactManager(self.config.debug.artifact_dir)

    def generate(
        self,
        templates: Iterable[TemplateSource],
        includes: Iterable[TemplateSource] = (),
        cancel_event: Optional[threading.Event] = None,
    ) -> List[GeneratedSource]:
        """
        Render every template.

        Args:
            templates: Top-level templates in discovery order
            includes: Files available to include directives
            cancel_event: Event that cancels the remaining renders when set

        Returns:
            One GeneratedSource per template with text; templates without
            text and cancelled renders produce nothing
        """
        templates = list(templates)
        include_lookup = build_include_lookup(includes, self.config.template.include_extension)
        numbers = number_duplicates(templates)

        results = []
        for template, number in zip(templates, numbers):
            hint_name = output_name(template, number, self.config.template.output_extension)
            generated = self.render_one(template, include_lookup, hint_name, cancel_event)
            if generated is not None:
                results.append(generated)
        return results

    def render_one(
        self,
        template: TemplateSource,
        include_lookup: IncludeLookup,
        hint_name: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[GeneratedSource]:
        """
        Render a single template.

        Args:
            template: Top-level template
            include_lookup: Include candidates keyed by file name
            hint_name: Output name, derived from the template if None
            cancel_event: Event that cancels the render when set

        Returns:
            GeneratedSource, or None when the template has no text, cannot
            be read, or the render was cancelled
        """
        if hint_name is None:
            hint_name = output_name(template, 0, self.config.template.output_extension)

        try:
            text = template.get_text()
        except (OSError, UnicodeDecodeError) as e:
            self._logger.logger.warning(f"Failed to read template {template.path}: {e}")
            return None
        if text is None:
            self._logger.logger.info(f"No text for template {template.path}, skipping")
            return None

        try:
            return self._render(template.path, text, include_lookup, hint_name, cancel_event)
        except RenderCancelledError as e:
            self._logger.logger.info(f"Render of {template.path} cancelled ({e.phase})")
            return None

    def _render(
        self,
        template_path: str,
        text: str,
        include_lookup: IncludeLookup,
        hint_name: str,
        cancel_event: Optional[threading.Event],
    ) -> GeneratedSource:
        self._logger.log_render_start(template_path, sum(len(c) for c in include_lookup.values()))

        resolver = DirectiveResolver(include_lookup, self.config.template.include_extension)
        resolved = resolver.resolve(text, template_path)

        if resolved.failed:
            self._logger.log_directive_errors(template_path, len(resolved.errors))
            return GeneratedSource(hint_name, resolved.error_text(), template_path=template_path)

        program = ProgramSynthesizer().synthesize(resolved.sections, resolved.imports, self.culture)
        if self._debug_manager is not None:
            self._debug_manager.save_program(hint_name, program.source)

        compile_start = time.time()
        outcome = self.compiler.compile(program)
        compilation_time = time.time() - compile_start

        remapper = DiagnosticRemapper(template_path, text)

        try:
            artifact = outcome.require_artifact(program.source)
        except CompilationError as e:
            self._logger.log_compile_failure(template_path, len(e.diagnostics))
            remapped = remapper.remap(program, e.diagnostics)
            if self._debug_manager is not None:
                self._debug_manager.save_fallback(hint_name, remapped.fallback_text)
            return GeneratedSource(hint_name, remapped.fallback_text, remapped.diagnostics, template_path)

        diagnostics = remapper.remap_diagnostics(program, outcome.diagnostics) if outcome.diagnostics else []

        render = self.executor.execute(artifact, cancel_event)
        if not render.succeeded:
            self._logger.log_fallback(template_path, render.exception_text.splitlines()[-1] if render.exception_text else "")
        self._logger.log_performance_metrics(compilation_time, render.execution_time)

        output = self._annotate(render.text, resolved.append_reference_assemblies, resolved.append_generator_source,
                                artifact, program)
        return GeneratedSource(hint_name, output, diagnostics, template_path)

    @staticmethod
    def _annotate(
        text: str,
        with_references: bool,
        with_program: bool,
        artifact: CompiledArtifact,
        program: SynthesizedProgram,
    ) -> str:
        return append_annotations(
            text,
            references=artifact.references if with_references else None,
            program_source=program.source if with_program else None,
        )


def render_template(
    text: str,
    path: str = "template.sgtt",
    includes: Iterable[TemplateSource] = (),
    culture: Optional[str] = None,
    config: Optional[Altt4Config] = None,
) -> GeneratedSource:
    """
    Render template text held in memory.

    Args:
        text: Template text
        path: Path reported in positions and diagnostics
        includes: Files available to include directives
        culture: Locale name for the generated program, overrides the config
        config: Configuration, the global configuration if None

    Returns:
        GeneratedSource for the template
    """
    generator = TemplateGenerator(config, culture)

    include_lookup = build_include_lookup(includes, generator.config.template.include_extension)
    return generator.render_one(InMemorySource(path, text), include_lookup)
