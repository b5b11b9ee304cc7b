"""Project-level IR: the converted, immutable view the generator consumes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from ..spec.types import HttpMethod, Language, Tier
from .nodes import Statement, TypeIR


@dataclass(frozen=True)
class RequestIR:
    query_schema: Optional[str] = None
    body_schema: Optional[str] = None
    content_type: Optional[str] = None


@dataclass(frozen=True)
class ResponseIR:
    description: Optional[str] = None
    schema_ref: Optional[str] = None


@dataclass(frozen=True)
class EndpointIR:
    operation_id: str
    handler_ref: str
    summary: Optional[str] = None
    middleware: Tuple[str, ...] = ()
    request: RequestIR = field(default_factory=RequestIR)
    response: Tuple[Tuple[int, ResponseIR], ...] = ()


@dataclass(frozen=True)
class RouteIR:
    path: str
    methods: Tuple[Tuple[HttpMethod, EndpointIR], ...] = ()
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SchemaIR:
    name: str
    definitions: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelIR:
    name: str
    table_name: str
    columns: Tuple[Tuple[str, Dict[str, Any]], ...] = ()
    relations: Tuple[Tuple[str, Dict[str, Any]], ...] = ()
    indexes: Tuple[Dict[str, Any], ...] = ()


@dataclass(frozen=True)
class MiddlewareIR:
    name: str
    middleware_type: str = "request"
    handler_ref: Optional[str] = None
    compose: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParamIR:
    name: str
    type_ir: TypeIR


@dataclass(frozen=True)
class HandlerIR:
    name: str
    is_async: bool = False
    params: Tuple[ParamIR, ...] = ()
    return_type: TypeIR = field(default_factory=TypeIR.void)
    body: Tuple[Statement, ...] = ()
    max_tier: Tier = Tier.UNIVERSAL
    bridge_languages: Tuple[Language, ...] = ()


@dataclass(frozen=True)
class ProjectIR:
    """
    Converted project.

    ``config`` is the project's ``rash.config.json`` in its camelCase JSON
    shape, so adapters read e.g. ``config["server"]["port"]`` or
    ``config["middleware"]["global"]``.
    """

    config: Dict[str, Any] = field(default_factory=dict)
    routes: Tuple[RouteIR, ...] = ()
    schemas: Tuple[SchemaIR, ...] = ()
    models: Tuple[ModelIR, ...] = ()
    middleware: Tuple[MiddlewareIR, ...] = ()
    handlers: Tuple[HandlerIR, ...] = ()

    @property
    def project_name(self) -> Optional[str]:
        return self.config.get("name") or None

    @property
    def server_port(self) -> Optional[int]:
        server = self.config.get("server")
        if not server:
            return None
        return server.get("port")

    @property
    def global_middleware(self) -> Tuple[str, ...]:
        middleware = self.config.get("middleware") or {}
        return tuple(entry["ref"] for entry in middleware.get("global", []))

    def bridge_languages(self) -> FrozenSet[Language]:
        languages = set()
        for handler in self.handlers:
            languages.update(handler.bridge_languages)
        return frozenset(languages)
