"""
Backend registry for the available emitters and adapters.

Emitters are registered per language and adapters per framework. An
adapter is only accepted for a (language, framework) pair inside the
compatibility matrix.
"""

from typing import Dict, List, Optional, Tuple, Type

from ..logging_config import get_logger
from ..spec.types import Framework, Language, is_compatible
from .core.adapter import FrameworkAdapter
from .core.config import GeneratorConfig
from .core.emitter import LanguageEmitter
from .core.errors import UnsupportedFrameworkError, UnsupportedLanguageError

logger = get_logger(__name__)


class RegistryError(Exception):
    """Exception raised for registry-related errors."""

    pass


class BackendRegistry:
    """Registry of language emitters and framework adapters."""

    def __init__(self):
        """Initialize empty registry."""
        self._emitters: Dict[Language, Type[LanguageEmitter]] = {}
        self._adapters: Dict[Framework, Type[FrameworkAdapter]] = {}
        self._adapter_languages: Dict[Framework, Language] = {}

    def register_emitter(self, emitter_class: Type[LanguageEmitter], replace: bool = False):
        """
        Register the emitter of a language.

        Args:
            emitter_class: Class implementing LanguageEmitter
            replace: If True, replace an existing registration. If False, keep it.

        Raises:
            RegistryError: If the class is not a LanguageEmitter
        """
        if not (isinstance(emitter_class, type) and issubclass(emitter_class, LanguageEmitter)):
            raise RegistryError("Emitter class must inherit from LanguageEmitter")

        language = emitter_class().language
        if language in self._emitters and not replace:
            return
        self._emitters[language] = emitter_class
        logger.debug("Registered %s emitter for %s", emitter_class.__name__, language.value)

    def register_adapter(self, adapter_class: Type[FrameworkAdapter], replace: bool = False):
        """
        Register the adapter of a framework.

        Args:
            adapter_class: Class implementing FrameworkAdapter
            replace: If True, replace an existing registration. If False, keep it.

        Raises:
            RegistryError: If the class is not a FrameworkAdapter or its
                (language, framework) pair is outside the compatibility matrix
        """
        if not (isinstance(adapter_class, type) and issubclass(adapter_class, FrameworkAdapter)):
            raise RegistryError("Adapter class must inherit from FrameworkAdapter")

        adapter = adapter_class(GeneratorConfig())
        framework, language = adapter.framework, adapter.compatible_language
        if not is_compatible(language, framework):
            raise RegistryError(
                f"Adapter '{adapter_class.__name__}' pairs framework '{framework.value}' "
                f"with incompatible language '{language.value}'"
            )
        if framework in self._adapters and not replace:
            return
        self._adapters[framework] = adapter_class
        self._adapter_languages[framework] = language
        logger.debug("Registered %s adapter for %s", adapter_class.__name__, framework.value)

    def has_emitter(self, language: Language) -> bool:
        return language in self._emitters

    def has_adapter(self, framework: Framework) -> bool:
        return framework in self._adapters

    def create_emitter(self, language: Language) -> LanguageEmitter:
        """
        Create the emitter for a language.

        Raises:
            UnsupportedLanguageError: If no emitter is registered
        """
        if language not in self._emitters:
            raise UnsupportedLanguageError(language)
        return self._emitters[language]()

    def create_adapter(self, framework: Framework,
                       config: Optional[GeneratorConfig] = None) -> FrameworkAdapter:
        """
        Create the adapter for a framework.

        Args:
            framework: Target framework
            config: Generator configuration, or None for the framework defaults

        Raises:
            UnsupportedFrameworkError: If no adapter is registered
        """
        if framework not in self._adapters:
            raise UnsupportedFrameworkError(framework)
        return self._adapters[framework](config)

    def list_languages(self) -> List[Language]:
        return list(self._emitters)

    def list_frameworks(self) -> List[Framework]:
        return list(self._adapters)

    def implemented_pairs(self) -> List[Tuple[Language, Framework]]:
        """(language, framework) pairs with both an emitter and an adapter."""
        return [
            (language, framework)
            for framework, language in self._adapter_languages.items()
            if language in self._emitters
        ]


# Global registry instance - created once
_global_registry: Optional[BackendRegistry] = None


def get_registry() -> BackendRegistry:
    """Get the global backend registry, initializing if needed."""
    global _global_registry
    if _global_registry is None:
        _global_registry = BackendRegistry()
        _auto_register_backends(_global_registry)
    return _global_registry


def _auto_register_backends(registry: BackendRegistry):
    """Register the four implemented backends."""
    from .languages.go import GinAdapter, GoEmitter
    from .languages.python import FastAPIAdapter, PythonEmitter
    from .languages.rust import ActixAdapter, RustEmitter
    from .languages.typescript import ExpressAdapter, TypeScriptEmitter

    for emitter_class in (TypeScriptEmitter, RustEmitter, PythonEmitter, GoEmitter):
        registry.register_emitter(emitter_class)
    for adapter_class in (ExpressAdapter, ActixAdapter, FastAPIAdapter, GinAdapter):
        registry.register_adapter(adapter_class)


def implemented_pairs() -> List[Tuple[Language, Framework]]:
    """(language, framework) pairs the global registry can generate."""
    return get_registry().implemented_pairs()
