"""
Shared enumerations and the language/framework compatibility matrix.

The matrix is static data consumed by both validation and generator
construction, so it is exposed only through pure lookup functions.
"""

from enum import Enum, IntEnum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Union


class Language(Enum):
    """Target languages."""

    TYPESCRIPT = "typescript"
    RUST = "rust"
    PYTHON = "python"
    GO = "go"


class Framework(Enum):
    """Target web frameworks."""

    EXPRESS = "express"
    FASTIFY = "fastify"
    HONO = "hono"
    ELYSIA = "elysia"
    NESTJS = "nestjs"
    ACTIX = "actix"
    AXUM = "axum"
    ROCKET = "rocket"
    FASTAPI = "fastapi"
    DJANGO = "django"
    FLASK = "flask"
    GIN = "gin"
    ECHO = "echo"
    FIBER = "fiber"


class Runtime(Enum):
    """Runtimes a generated server can be launched with."""

    BUN = "bun"
    NODE = "node"
    DENO = "deno"
    CARGO = "cargo"
    PYTHON = "python"
    GO = "go"


class HttpMethod(Enum):
    """HTTP methods a route may declare."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class Tier(IntEnum):
    """Minimum expressiveness a handler AST node needs from a backend."""

    UNIVERSAL = 0
    DOMAIN = 1
    UTILITY = 2
    BRIDGE = 3


class SymbolKind(Enum):
    """Disjoint namespaces that references resolve into."""

    ROUTE = "route"
    SCHEMA = "schema"
    MODEL = "model"
    MIDDLEWARE = "middleware"
    HANDLER = "handler"


COMPATIBILITY_MATRIX: Mapping[Language, FrozenSet[Framework]] = MappingProxyType(
    {
        Language.TYPESCRIPT: frozenset(
            {
                Framework.EXPRESS,
                Framework.FASTIFY,
                Framework.HONO,
                Framework.ELYSIA,
                Framework.NESTJS,
            }
        ),
        Language.RUST: frozenset({Framework.ACTIX, Framework.AXUM, Framework.ROCKET}),
        Language.PYTHON: frozenset(
            {Framework.FASTAPI, Framework.DJANGO, Framework.FLASK}
        ),
        Language.GO: frozenset({Framework.GIN, Framework.ECHO, Framework.FIBER}),
    }
)


def parse_language(value: Union[str, Language]) -> Language:
    """Coerce a language name (case-insensitive) to :class:`Language`.

    Raises:
        ValueError: If the name is not a known language
    """
    if isinstance(value, Language):
        return value
    return Language(str(value).strip().lower())


def parse_framework(value: Union[str, Framework]) -> Framework:
    """Coerce a framework name (case-insensitive) to :class:`Framework`.

    Raises:
        ValueError: If the name is not a known framework
    """
    if isinstance(value, Framework):
        return value
    return Framework(str(value).strip().lower())


def compatible_frameworks(language: Language) -> FrozenSet[Framework]:
    """Frameworks that may be paired with ``language``."""
    return COMPATIBILITY_MATRIX.get(language, frozenset())


def is_compatible(language: Language, framework: Framework) -> bool:
    """Check whether a (language, framework) pair is in the matrix."""
    return framework in compatible_frameworks(language)


def language_for_framework(framework: Framework) -> Language:
    """Return the single language a framework belongs to."""
    for language, frameworks in COMPATIBILITY_MATRIX.items():
        if framework in frameworks:
            return language
    raise ValueError(f"Framework '{framework.value}' has no language")
