"""
Core code generation components.

Provides the emitter and adapter interfaces and the utilities shared by
all language backends.
"""

from .adapter import CtxAccessPattern, FrameworkAdapter
from .config import ConfigError, ConfigManager, GeneratorConfig, load_config
from .context import EmitContext, ImportIR, IndentStyle
from .emitter import LanguageEmitter
from .errors import (
    CodegenError,
    GeneratedProjectWriteError,
    IncompatibleTargetError,
    OutputPathConflictError,
    TierLimitError,
    UnsupportedBridgeError,
    UnsupportedFrameworkError,
    UnsupportedLanguageError,
)
from .naming import NameSanitizer, NamingCase, normalize_filename, normalize_identifier
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Interfaces
    "CtxAccessPattern",
    "FrameworkAdapter",
    "LanguageEmitter",
    # Emission state
    "EmitContext",
    "ImportIR",
    "IndentStyle",
    # Errors
    "CodegenError",
    "GeneratedProjectWriteError",
    "IncompatibleTargetError",
    "OutputPathConflictError",
    "TierLimitError",
    "UnsupportedBridgeError",
    "UnsupportedFrameworkError",
    "UnsupportedLanguageError",
    # Naming
    "NameSanitizer",
    "NamingCase",
    "normalize_filename",
    "normalize_identifier",
    # Configuration
    "ConfigError",
    "ConfigManager",
    "GeneratorConfig",
    "load_config",
    # Templates
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
