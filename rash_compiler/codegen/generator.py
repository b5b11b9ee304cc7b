"""
Code generator: drives one language emitter and one framework adapter
across a project IR and assembles the generated project.
"""

from dataclasses import replace
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from ..ir.types import ProjectIR
from ..logging_config import get_logger
from ..spec.types import Framework, Language, Tier, is_compatible
from .core.config import GeneratorConfig, load_config
from .core.context import EmitContext
from .core.errors import (
    CodegenError,
    GeneratedProjectWriteError,
    IncompatibleTargetError,
    OutputPathConflictError,
    TierLimitError,
)
from .core.naming import normalize_filename
from .registry import BackendRegistry, get_registry

logger = get_logger(__name__)


def format_code(code: str, max_blank_lines: int = 2) -> str:
    """
    Apply basic formatting to generated code.

    Args:
        code: Raw generated code
        max_blank_lines: Longest run of blank lines kept

    Returns:
        Code without trailing whitespace, ending with a single newline
    """
    lines = code.split("\n")
    formatted_lines = []
    blank_count = 0

    for line in lines:
        stripped = line.rstrip()
        if not stripped:
            blank_count += 1
            if blank_count <= max_blank_lines:
                formatted_lines.append("")
        else:
            blank_count = 0
            formatted_lines.append(stripped)

    return "\n".join(formatted_lines).strip("\n") + "\n"


class GeneratedProject:
    """Generated files, by relative path, in generation order."""

    def __init__(self, files: Mapping[str, str], language: Language, framework: Framework):
        self._files: Dict[str, str] = dict(files)
        self.files: Mapping[str, str] = MappingProxyType(self._files)
        self.language = language
        self.framework = framework

    @property
    def file_count(self) -> int:
        return len(self._files)

    def paths(self) -> List[str]:
        return list(self._files)

    def get(self, path: str) -> Optional[str]:
        return self._files.get(path)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def write_to_disk(self, output_dir: Union[str, Path]) -> List[Path]:
        """
        Write every file below ``output_dir``, creating directories as needed.

        Files written before a failure are left in place.

        Args:
            output_dir: Root directory of the generated project

        Returns:
            Paths of the written files

        Raises:
            GeneratedProjectWriteError: If a file cannot be written
        """
        root = Path(output_dir)
        written = []
        for rel_path, content in self._files.items():
            target = root / rel_path
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(content, encoding="utf-8")
            except OSError as e:
                logger.error("Failed to write %s: %s", target, e)
                raise GeneratedProjectWriteError(rel_path, e, output_dir) from e
            written.append(target)
            logger.debug("Wrote %s", target)
        logger.info("Wrote %d files to %s", len(written), root)
        return written


def _coerce(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise CodegenError(f"Unknown {label} '{value}'") from None


class CodeGenerator:
    """Generates a backend project for one (language, framework) target."""

    def __init__(self, language: Union[Language, str], framework: Union[Framework, str],
                 config: Optional[GeneratorConfig] = None,
                 registry: Optional[BackendRegistry] = None):
        """
        Select the emitter and adapter for a target.

        Args:
            language: Target language, as enum member or value
            framework: Target framework, as enum member or value
            config: Generator settings; the framework's defaults when None
            registry: Backend registry; the global one when None

        Raises:
            IncompatibleTargetError: If the pair is outside the compatibility matrix
            UnsupportedLanguageError: If the language has no emitter
            UnsupportedFrameworkError: If the framework has no adapter
        """
        self.language = _coerce(Language, language, "language")
        self.framework = _coerce(Framework, framework, "framework")
        if not is_compatible(self.language, self.framework):
            logger.error("Incompatible target %s/%s", self.language.value, self.framework.value)
            raise IncompatibleTargetError(self.language, self.framework)

        registry = registry or get_registry()
        self.config = config or load_config(self.framework.value)
        self.emitter = registry.create_emitter(self.language)
        self.adapter = registry.create_adapter(self.framework, self.config)

    @property
    def file_extension(self) -> str:
        return self.emitter.file_extension

    def check_tiers(self, project: ProjectIR):
        """
        Check that every handler fits the target's tier limit.

        Raises:
            TierLimitError: For the first handler above the limit
        """
        limit = min(Tier(self.config.max_tier), self.emitter.max_supported_tier)
        for handler in project.handlers:
            if handler.max_tier > limit:
                logger.error("Handler %s needs tier %s", handler.name, handler.max_tier.name)
                raise TierLimitError(
                    f"Handler '{handler.name}' needs tier {handler.max_tier.name} "
                    f"but {self.language.value} generation is limited to {limit.name}"
                )

    def element_paths(self, project: ProjectIR) -> List[Tuple[str, str]]:
        """
        Output path of every per-element source file, in generation order.

        Returns:
            (relative path, element label) pairs
        """
        ext = self.emitter.file_extension
        paths = [(f"src/schemas/{s.name.lower()}.{ext}", f"schema '{s.name}'") for s in project.schemas]
        paths += [(f"src/models/{m.name.lower()}.{ext}", f"model '{m.name}'") for m in project.models]
        paths += [
            (f"src/middleware/{normalize_filename(m.name)}.{ext}", f"middleware '{m.name}'")
            for m in project.middleware
        ]
        paths += [
            (f"src/handlers/{normalize_filename(h.name)}.{ext}", f"handler '{h.name}'")
            for h in project.handlers
        ]
        return paths

    def check_output_paths(self, project: ProjectIR) -> Dict[str, str]:
        """
        Check that no two elements are generated into the same file.

        Names that differ only in ways the file name drops (``get.user`` and
        ``get_user``, ``User`` and ``user``) would otherwise overwrite each other.

        Returns:
            Element label by output path

        Raises:
            OutputPathConflictError: For the first path claimed twice
        """
        ext = self.emitter.file_extension
        owners: Dict[str, str] = {}
        fixed = [(f"src/routes/index.{ext}", "the routes index"), (f"src/index.{ext}", "the entrypoint")]
        for path, label in self.element_paths(project) + fixed:
            if path in owners:
                logger.error("Output path %s is claimed by %s and %s", path, owners[path], label)
                raise OutputPathConflictError(path, owners[path], label)
            owners[path] = label
        return owners

    def _new_context(self, project: ProjectIR) -> EmitContext:
        emitter, adapter = self.emitter, self.adapter
        return EmitContext(
            emitter.indent_style,
            domain_renderer=lambda expr, ctx: adapter.emit_domain_expr(expr, emitter, ctx),
            module_path=adapter.project_name(project),
        )

    def _source_file(self, section: str, ctx: EmitContext, code: str) -> str:
        parts = [
            self.emitter.package_declaration(section),
            self.emitter.emit_imports(ctx),
            code.strip("\n"),
        ]
        return "\n\n".join(part for part in parts if part) + "\n"

    def generate(self, project: ProjectIR) -> GeneratedProject:
        """
        Generate every file of the project.

        Args:
            project: Converted project

        Returns:
            GeneratedProject with schemas, models, middleware, handlers,
            the routes index, the entrypoint and the config files, in that order

        Raises:
            TierLimitError: If a handler exceeds the tier limit
            OutputPathConflictError: If two elements map to the same file
            CodegenError: If an element cannot be rendered
        """
        self.check_tiers(project)
        owners = self.check_output_paths(project)
        emitter, adapter = self.emitter, self.adapter
        ext = emitter.file_extension
        paths = iter(self.element_paths(project))
        files: Dict[str, str] = {}

        for schema in project.schemas:
            ctx = self._new_context(project)
            code = emitter.emit_schema(schema, ctx)
            files[next(paths)[0]] = self._source_file("schemas", ctx, code)

        for model in project.models:
            ctx = self._new_context(project)
            code = emitter.emit_model(model, ctx)
            files[next(paths)[0]] = self._source_file("models", ctx, code)

        for middleware in project.middleware:
            ctx = self._new_context(project)
            named = replace(middleware, name=emitter.identifier(middleware.name))
            code = adapter.emit_middleware_def(named, emitter, ctx)
            files[next(paths)[0]] = self._source_file("middleware", ctx, code)

        for handler in project.handlers:
            ctx = self._new_context(project)
            named = replace(handler, name=emitter.identifier(handler.name))
            code = adapter.emit_handler(named, emitter, ctx)
            files[next(paths)[0]] = self._source_file("handlers", ctx, code)

        ctx = self._new_context(project)
        blocks = [
            adapter.emit_route_registration(replace(route, path=adapter.normalize_path(route.path)), emitter, ctx)
            for route in project.routes
        ]
        files[f"src/routes/index.{ext}"] = adapter.wrap_route_file(
            emitter.emit_imports(ctx), "\n\n".join(block for block in blocks if block), ctx
        )

        ctx = self._new_context(project)
        files[f"src/index.{ext}"] = adapter.emit_entrypoint(project, emitter, ctx)

        for path, content in adapter.emit_project_config(project):
            if path in files:
                raise OutputPathConflictError(path, owners.get(path, "another project file"),
                                              f"{self.framework.value} project file")
            files[path] = content

        if self.config.format_output:
            files = {path: format_code(content, self.config.max_blank_lines) for path, content in files.items()}

        for path in files:
            logger.debug("Generated %s", path)
        logger.info("Generated %d files for %s/%s", len(files), self.language.value, self.framework.value)
        return GeneratedProject(files, self.language, self.framework)


def generate_code(project: ProjectIR, language: Union[Language, str], framework: Union[Framework, str],
                  config: Optional[GeneratorConfig] = None) -> GeneratedProject:
    """
    Generate a project for one target.

    Args:
        project: Converted project
        language: Target language
        framework: Target framework
        config: Generator settings

    Returns:
        GeneratedProject with every file
    """
    return CodeGenerator(language, framework, config).generate(project)
