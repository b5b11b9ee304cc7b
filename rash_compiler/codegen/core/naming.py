"""
Naming utilities for safe code generation.

Handles dotted spec names (``users.getUser``), case conversions and
keyword conflicts for each target language.
"""

import re
from enum import Enum
from typing import Dict, Optional, Set


class NamingCase(Enum):
    """Different naming case styles."""
    SNAKE_CASE = "snake"      # user_name
    CAMEL_CASE = "camel"      # userName
    PASCAL_CASE = "pascal"    # UserName


def normalize_identifier(name: str) -> str:
    """
    Turn a dotted spec name into a single identifier.

    ``health.check`` -> ``healthCheck``; names without dots are unchanged.
    """
    if "." not in name:
        return name
    first, *rest = name.split(".")
    return first + "".join(part[:1].upper() + part[1:] for part in rest if part)


def normalize_filename(name: str) -> str:
    """``health.check`` -> ``health_check``."""
    return name.replace(".", "_")


def to_snake_case(name: str) -> str:
    """Convert to snake_case."""
    name = re.sub(r"[-.\s]+", "_", str(name))
    # Insert underscore before uppercase letters
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    name = re.sub(r"_+", "_", name.lower())
    return name.strip("_")


def to_camel_case(name: str) -> str:
    """Convert to camelCase."""
    parts = to_snake_case(name).split("_")
    if not parts:
        return name
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase."""
    return "".join(part.capitalize() for part in to_snake_case(name).split("_") if part)


class NameSanitizer:
    """Handles name sanitization and case conversion."""

    def __init__(self, reserved_words: Optional[Set[str]] = None):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Words that cannot be used as identifiers in the target language
        """
        self.reserved_words = reserved_words or set()
        self._name_cache: Dict[str, str] = {}

    def sanitize_name(self, name: str, target_case: Optional[NamingCase] = None,
                      suffix_on_conflict: str = "_") -> str:
        """
        Sanitize a name for safe use in target language.

        Args:
            name: Original name to sanitize
            target_case: Desired case style, or None to keep the original casing
            suffix_on_conflict: Suffix appended when the result is a reserved word

        Returns:
            Sanitized name safe for use
        """
        cache_key = f"{name}_{target_case.value if target_case else ''}_{suffix_on_conflict}"
        if cache_key in self._name_cache:
            return self._name_cache[cache_key]

        cleaned = self._clean_basic(name)
        converted = self._convert_case(cleaned, target_case)
        if converted in self.reserved_words:
            converted = f"{converted}{suffix_on_conflict}"

        self._name_cache[cache_key] = converted
        return converted

    def _clean_basic(self, name: str) -> str:
        """Basic name cleanup - remove invalid characters."""
        cleaned = re.sub(r"[^a-zA-Z0-9_-]", "_", name)
        cleaned = cleaned.strip("_-")

        # Ensure doesn't start with number
        if cleaned and cleaned[0].isdigit():
            cleaned = f"_{cleaned}"

        if not cleaned:
            cleaned = "field"

        return cleaned

    def _convert_case(self, name: str, target_case: Optional[NamingCase]) -> str:
        if target_case is None:
            return name.replace("-", "_")
        if target_case == NamingCase.SNAKE_CASE:
            return to_snake_case(name)
        elif target_case == NamingCase.CAMEL_CASE:
            return to_camel_case(name)
        elif target_case == NamingCase.PASCAL_CASE:
            return to_pascal_case(name)
        return name


# Reserved words of the target languages

GO_RESERVED = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer",
    "else", "fallthrough", "for", "func", "go", "goto", "if", "import",
    "interface", "map", "package", "range", "return", "select", "struct",
    "switch", "type", "var",
})

PYTHON_RESERVED = frozenset({
    "and", "as", "assert", "async", "await", "break", "class", "continue",
    "def", "del", "elif", "else", "except", "finally", "for", "from",
    "global", "if", "import", "in", "is", "lambda", "nonlocal", "not", "or",
    "pass", "raise", "return", "try", "while", "with", "yield",
    "True", "False", "None",
})

RUST_RESERVED = frozenset({
    "as", "async", "await", "break", "const", "continue", "crate", "dyn",
    "else", "enum", "extern", "false", "fn", "for", "if", "impl", "in",
    "let", "loop", "match", "mod", "move", "mut", "pub", "ref", "return",
    "self", "Self", "static", "struct", "super", "trait", "true", "type",
    "unsafe", "use", "where", "while",
})

TYPESCRIPT_RESERVED = frozenset({
    "break", "case", "catch", "class", "const", "continue", "debugger",
    "default", "delete", "do", "else", "enum", "export", "extends", "false",
    "finally", "for", "function", "if", "import", "in", "instanceof", "new",
    "null", "return", "super", "switch", "this", "throw", "true", "try",
    "typeof", "var", "void", "while", "with",
})
