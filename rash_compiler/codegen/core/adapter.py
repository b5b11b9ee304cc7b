"""
Base adapter interface for all target frameworks.

An adapter composes emitter output into one framework's idioms: route
registration, middleware, handler wrappers, the entrypoint and the
project configuration files.
"""

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple

from ...ir.nodes import Expression
from ...ir.types import HandlerIR, MiddlewareIR, ProjectIR, RouteIR
from ...spec.types import Framework, Language
from .config import GeneratorConfig, load_config
from .context import EmitContext
from .emitter import LanguageEmitter
from .naming import NameSanitizer, NamingCase, normalize_identifier
from .templates import TemplateEngine, create_template_engine


class CtxAccessPattern(Enum):
    """How handlers reach the request."""

    REQ_RES = "req_res"  # separate request and response objects
    SINGLE_CONTEXT = "single_context"  # one context object
    EXTRACTORS = "extractors"  # declarative extractor parameters
    PARAM_INJECTION = "param_injection"  # injected function parameters


class FrameworkAdapter(ABC):
    """Abstract base class for framework adapters."""

    # Keywords of the target language
    reserved_words: FrozenSet[str] = frozenset()
    # Case of middleware function names, None keeps the spec's casing
    function_case: Optional[NamingCase] = None

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """
        Initialize adapter with optional generator configuration.

        Args:
            config: Generator settings; the framework's defaults when None
        """
        self.config = config or load_config(self.framework.value)
        self.sanitizer = NameSanitizer(set(self.reserved_words))
        self._template_engine = None

    def function_name(self, ref: str) -> str:
        """Function name for a referenced middleware or handler."""
        return self.sanitizer.sanitize_name(normalize_identifier(ref), self.function_case)

    @property
    @abstractmethod
    def framework(self) -> Framework:
        """Return the framework this adapter targets."""
        pass

    @property
    @abstractmethod
    def compatible_language(self) -> Language:
        """Return the only language this adapter can be paired with."""
        pass

    @property
    @abstractmethod
    def ctx_access_pattern(self) -> CtxAccessPattern:
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this adapter.

        Returns:
            Path to template directory or None for in-memory templates only
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this adapter."""
        if self._template_engine is None:
            self._template_engine = create_template_engine(self.get_template_directory())
        return self._template_engine

    # Project-level settings shared by the entrypoint and config files

    def project_name(self, project: ProjectIR) -> str:
        return project.project_name or self.config.default_project_name

    def port(self, project: ProjectIR) -> int:
        return project.server_port or self.config.default_port

    # Framework capabilities

    @abstractmethod
    def emit_route_registration(self, route: RouteIR, emitter: LanguageEmitter,
                                ctx: EmitContext) -> str:
        """
        Render the registration of every method of one route.

        Args:
            route: Route whose path is already normalized for this framework
            emitter: Emitter of the paired language
            ctx: Context of the routes index file; imports are added to it

        Returns:
            Registration code for the route
        """
        pass

    @abstractmethod
    def emit_middleware_apply(self, middleware_ref: str, ctx: EmitContext) -> str:
        """Render the application of one middleware."""
        pass

    @abstractmethod
    def emit_handler(self, handler: HandlerIR, emitter: LanguageEmitter, ctx: EmitContext) -> str:
        """Render one handler as a framework request handler."""
        pass

    @abstractmethod
    def emit_middleware_def(self, middleware: MiddlewareIR, emitter: LanguageEmitter,
                            ctx: EmitContext) -> str:
        """Render the definition of one middleware."""
        pass

    @abstractmethod
    def emit_entrypoint(self, project: ProjectIR, emitter: LanguageEmitter, ctx: EmitContext) -> str:
        """
        Render the complete application entrypoint.

        The global middleware of the project is applied before the routes
        are registered.
        """
        pass

    @abstractmethod
    def emit_project_config(self, project: ProjectIR) -> List[Tuple[str, str]]:
        """Return the project configuration files as (relative path, content) pairs."""
        pass

    def emit_domain_expr(self, expr: Expression, emitter: LanguageEmitter,
                         ctx: EmitContext) -> Optional[str]:
        """
        Override how a domain expression renders for this framework.

        Returns:
            Rendered expression, or None to use the emitter's rendering
        """
        return None

    def emit_global_middleware(self, middleware_refs, ctx: EmitContext) -> List[str]:
        return [self.emit_middleware_apply(ref, ctx) for ref in middleware_refs]

    def wrap_route_file(self, imports: str, route_blocks: str, ctx: EmitContext) -> str:
        """Assemble the routes index file from its imports and registration blocks."""
        if not imports:
            return route_blocks
        return f"{imports}\n\n{route_blocks}"

    def normalize_path(self, path: str) -> str:
        """Translate a canonical ``:param`` path to the framework's convention."""
        return path
