"""
Intermediate representation: immutable, language-neutral project and handler trees.
"""

from . import nodes
from .types import (
    EndpointIR,
    HandlerIR,
    MiddlewareIR,
    ModelIR,
    ParamIR,
    ProjectIR,
    RequestIR,
    ResponseIR,
    RouteIR,
    SchemaIR,
)
from .paths import brace_to_colon, bracket_to_colon, canonicalize_path, colon_to_brace
from .convert import ConversionError, convert_project, convert_type_string
from .dep_graph import FileChangePlan, NodeId, SpecDependencyGraph, build_dependency_graph

__all__ = [
    "ConversionError",
    "EndpointIR",
    "FileChangePlan",
    "HandlerIR",
    "MiddlewareIR",
    "ModelIR",
    "NodeId",
    "ParamIR",
    "ProjectIR",
    "RequestIR",
    "ResponseIR",
    "RouteIR",
    "SchemaIR",
    "SpecDependencyGraph",
    "brace_to_colon",
    "bracket_to_colon",
    "build_dependency_graph",
    "canonicalize_path",
    "colon_to_brace",
    "convert_project",
    "convert_type_string",
    "nodes",
]
