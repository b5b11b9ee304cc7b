"""
Specification layer: enums, document model, symbol index and resolver.
"""

from .errors import ErrorCode, ErrorEntry, Severity, ValidationReport
from .index import SymbolEntry, SymbolIndex, build_index, canonical_key
from .model import (
    EndpointSpec,
    HandlerSpec,
    MiddlewareSpec,
    ModelSpec,
    ProjectModel,
    RashConfig,
    Ref,
    RouteSpec,
    SchemaSpec,
    SpecParseError,
    detect_spec_kind,
)
from .resolver import Resolution, Resolver
from .types import (
    COMPATIBILITY_MATRIX,
    Framework,
    HttpMethod,
    Language,
    Runtime,
    SymbolKind,
    Tier,
    compatible_frameworks,
    is_compatible,
)

__all__ = [
    "COMPATIBILITY_MATRIX",
    "EndpointSpec",
    "ErrorCode",
    "ErrorEntry",
    "Framework",
    "HandlerSpec",
    "HttpMethod",
    "Language",
    "MiddlewareSpec",
    "ModelSpec",
    "ProjectModel",
    "RashConfig",
    "Ref",
    "Resolution",
    "Resolver",
    "RouteSpec",
    "Runtime",
    "SchemaSpec",
    "Severity",
    "SpecParseError",
    "SymbolEntry",
    "SymbolIndex",
    "SymbolKind",
    "Tier",
    "ValidationReport",
    "build_index",
    "canonical_key",
    "compatible_frameworks",
    "detect_spec_kind",
    "is_compatible",
]
