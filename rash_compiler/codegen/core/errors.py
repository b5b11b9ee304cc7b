"""Code generation exceptions."""

from pathlib import Path
from typing import Union

from ...spec.types import Framework, Language


class CodegenError(Exception):
    """Base exception for code generation errors."""

    pass


class IncompatibleTargetError(CodegenError):
    """The framework does not belong to the language."""

    def __init__(self, language: Language, framework: Framework):
        super().__init__(
            f"Framework '{framework.value}' is not compatible with language '{language.value}'"
        )
        self.language = language
        self.framework = framework


class UnsupportedLanguageError(CodegenError):
    """The language is valid but has no emitter."""

    def __init__(self, language: Language):
        super().__init__(f"No emitter is implemented for language '{language.value}'")
        self.language = language


class UnsupportedFrameworkError(CodegenError):
    """The framework is valid but has no adapter."""

    def __init__(self, framework: Framework):
        super().__init__(f"No adapter is implemented for framework '{framework.value}'")
        self.framework = framework


class UnsupportedBridgeError(CodegenError):
    """A native bridge targets another language and has no fallback."""

    pass


class TierLimitError(CodegenError):
    """A handler needs a higher tier than the target allows."""

    pass


class GeneratedProjectWriteError(CodegenError):
    """Writing a generated file to disk failed."""

    def __init__(self, path: str, cause: Union[OSError, Exception], output_dir: Union[str, Path] = ""):
        super().__init__(f"Failed to write '{path}': {cause}")
        self.path = path
        self.cause = cause
        self.output_dir = output_dir


class OutputPathConflictError(CodegenError):
    """Two project elements would be generated into the same file."""

    def __init__(self, path: str, first: str, second: str):
        super().__init__(f"Generated file '{path}' is claimed by both {first} and {second}")
        self.path = path
        self.first = first
        self.second = second
