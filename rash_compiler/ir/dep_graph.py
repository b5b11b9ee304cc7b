"""
Dependency graph between spec elements and the files generated from them.

Edges point from a dependency to its dependents, so the transitive closure
from a changed element is everything that must be regenerated.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from ..codegen.core.naming import normalize_filename
from .types import ProjectIR

NODE_KINDS = ("route", "schema", "model", "middleware", "handler", "file")


@dataclass(frozen=True, order=True)
class NodeId:
    kind: str
    id: str

    def __post_init__(self):
        if self.kind not in NODE_KINDS:
            raise ValueError(f"Unknown dependency node kind '{self.kind}'")

    @classmethod
    def route(cls, path: str) -> "NodeId":
        return cls("route", path)

    @classmethod
    def schema(cls, name: str) -> "NodeId":
        return cls("schema", name)

    @classmethod
    def model(cls, name: str) -> "NodeId":
        return cls("model", name)

    @classmethod
    def middleware(cls, name: str) -> "NodeId":
        return cls("middleware", name)

    @classmethod
    def handler(cls, name: str) -> "NodeId":
        return cls("handler", name)

    @classmethod
    def file(cls, path: str) -> "NodeId":
        return cls("file", path)

    @classmethod
    def parse(cls, text: str) -> "NodeId":
        """Parse ``kind:id`` (e.g. ``handler:users.getUser``)."""
        kind, sep, ident = text.partition(":")
        if not sep or not ident:
            raise ValueError(f"Expected KIND:NAME, got '{text}'")
        return cls(kind.strip().lower(), ident)

    def __str__(self) -> str:
        return f"{self.kind}:{self.id}"


@dataclass
class FileChangePlan:
    affected_specs: List[NodeId] = field(default_factory=list)
    affected_files: List[str] = field(default_factory=list)
    requires_full_regen: bool = False


class SpecDependencyGraph:
    """Directed graph of NodeId -> dependents."""

    def __init__(self):
        self._edges: Dict[NodeId, Set[NodeId]] = {}

    def add_edge(self, source: NodeId, dependent: NodeId):
        self._edges.setdefault(source, set()).add(dependent)

    def dependents(self, node: NodeId) -> Set[NodeId]:
        return set(self._edges.get(node, ()))

    def affected_nodes(self, changed: Iterable[NodeId]) -> Set[NodeId]:
        """Every node reachable from ``changed``, including the changed nodes themselves."""
        visited: Set[NodeId] = set()
        queue = deque(changed)
        while queue:
            node = queue.popleft()
            if node in visited:
                continue
            visited.add(node)
            queue.extend(dep for dep in self._edges.get(node, ()) if dep not in visited)
        return visited

    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._edges.values())

    def node_count(self) -> int:
        nodes = set(self._edges)
        for targets in self._edges.values():
            nodes.update(targets)
        return len(nodes)

    def plan(self, changed: Iterable[NodeId]) -> FileChangePlan:
        """
        Work out which generated files a set of changes touches.

        A changed file-level node that the graph has never seen (for example
        a brand new spec element) cannot be planned incrementally and asks
        for a full regeneration.
        """
        changed = list(changed)
        affected = self.affected_nodes(changed)
        known = set(self._edges)
        for targets in self._edges.values():
            known.update(targets)

        return FileChangePlan(
            affected_specs=sorted(node for node in affected if node.kind != "file"),
            affected_files=sorted(node.id for node in affected if node.kind == "file"),
            requires_full_regen=any(node not in known for node in changed),
        )


def build_dependency_graph(
    project: ProjectIR, file_extension: str, config_files: Optional[Iterable[str]] = None
) -> SpecDependencyGraph:
    """
    Derive the dependency graph of a converted project.

    Args:
        project: Converted project
        file_extension: Extension of generated source files (``ts``, ``py``...)
        config_files: Project-level files (``package.json`` ...) that depend on models

    Returns:
        SpecDependencyGraph
    """
    graph = SpecDependencyGraph()
    routes_file = NodeId.file(f"src/routes/index.{file_extension}")
    entry_file = NodeId.file(f"src/index.{file_extension}")

    for schema in project.schemas:
        graph.add_edge(
            NodeId.schema(schema.name),
            NodeId.file(f"src/schemas/{schema.name.lower()}.{file_extension}"),
        )
        for def_name in schema.definitions:
            if def_name != schema.name:
                graph.add_edge(NodeId.schema(def_name), NodeId.schema(schema.name))

    for model in project.models:
        node = NodeId.model(model.name)
        graph.add_edge(node, NodeId.file(f"src/models/{model.name.lower()}.{file_extension}"))
        for config_file in config_files or ():
            graph.add_edge(node, NodeId.file(config_file))

    for middleware in project.middleware:
        node = NodeId.middleware(middleware.name)
        graph.add_edge(
            node,
            NodeId.file(f"src/middleware/{normalize_filename(middleware.name)}.{file_extension}"),
        )
        if middleware.handler_ref:
            graph.add_edge(NodeId.handler(middleware.handler_ref), node)
        for composed in middleware.compose:
            graph.add_edge(NodeId.middleware(composed), node)

    for handler in project.handlers:
        graph.add_edge(
            NodeId.handler(handler.name),
            NodeId.file(f"src/handlers/{normalize_filename(handler.name)}.{file_extension}"),
        )

    for route in project.routes:
        route_node = NodeId.route(route.path)
        graph.add_edge(route_node, routes_file)
        for _, endpoint in route.methods:
            if endpoint.handler_ref:
                graph.add_edge(NodeId.handler(endpoint.handler_ref), route_node)
            for mw in endpoint.middleware:
                graph.add_edge(NodeId.middleware(mw), route_node)
            for schema_ref in (endpoint.request.query_schema, endpoint.request.body_schema):
                if schema_ref:
                    graph.add_edge(NodeId.schema(schema_ref), route_node)
            for _, response in endpoint.response:
                if response.schema_ref:
                    graph.add_edge(NodeId.schema(response.schema_ref), route_node)

    for mw in project.global_middleware:
        graph.add_edge(NodeId.middleware(mw), entry_file)

    return graph
