"""
Rash Code Generation Module

Generates backend projects in several languages from a converted project IR.
"""

from .core.config import ConfigManager, GeneratorConfig, load_config
from .core.errors import (
    CodegenError,
    GeneratedProjectWriteError,
    IncompatibleTargetError,
    OutputPathConflictError,
    TierLimitError,
    UnsupportedBridgeError,
    UnsupportedFrameworkError,
    UnsupportedLanguageError,
)
from .generator import CodeGenerator, GeneratedProject, format_code, generate_code
from .registry import BackendRegistry, RegistryError, get_registry, implemented_pairs

__all__ = [
    "BackendRegistry",
    "CodeGenerator",
    "CodegenError",
    "ConfigManager",
    "GeneratedProject",
    "GeneratedProjectWriteError",
    "GeneratorConfig",
    "IncompatibleTargetError",
    "OutputPathConflictError",
    "RegistryError",
    "TierLimitError",
    "UnsupportedBridgeError",
    "UnsupportedFrameworkError",
    "UnsupportedLanguageError",
    "format_code",
    "generate_code",
    "get_registry",
    "implemented_pairs",
    "load_config",
]
