"""
Cycle detection over middleware composition, schema references and model
relations.

A composed middleware chain that loops back on itself can never finish
executing, and schema definitions that reference each other cannot be
declared in order, so those cycles are errors. Models that point at each
other (``User`` has many ``Post``, ``Post`` belongs to ``User``) are
ordinary bidirectional relations and only produce warnings.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from ...spec.errors import ErrorCode, ErrorEntry, ValidationReport
from ...spec.index import SymbolIndex
from ...spec.model import ProjectModel
from ...spec.types import SymbolKind

_REF_KEYS = ("$ref", "ref")


@dataclass(frozen=True)
class _Edge:
    target: str
    file: str
    path: str


def _find_cycles(graph: Dict[str, List[_Edge]]) -> List[Tuple[List[str], _Edge]]:
    """
    Enumerate the elementary cycles of a graph, each once.

    Every cycle is reported starting from its earliest declared node, so
    nodes are ranked by their position in ``graph``. From each start the
    search only walks through later nodes, which keeps rotations of the
    same cycle from being found twice.

    Returns:
        (cycle nodes, edge leaving the first node) pairs in discovery order
    """
    order: Dict[str, int] = {}
    for node, edges in graph.items():
        order.setdefault(node, len(order))
        for edge in edges:
            order.setdefault(edge.target, len(order))

    found: List[Tuple[List[str], _Edge]] = []
    seen: Set[Tuple[str, ...]] = set()

    def visit(start: str, node: str, stack: List[str], stack_edges: List[_Edge]):
        for edge in graph.get(node, []):
            if edge.target == start:
                cycle = list(stack)
                if tuple(cycle) not in seen:
                    seen.add(tuple(cycle))
                    found.append((cycle, (stack_edges + [edge])[0]))
            elif order[edge.target] > order[start] and edge.target not in stack:
                stack.append(edge.target)
                stack_edges.append(edge)
                visit(start, edge.target, stack, stack_edges)
                stack_edges.pop()
                stack.pop()

    for start in order:
        visit(start, start, [start], [])
    return found


def _report_cycles(
    graph: Dict[str, List[_Edge]],
    names: Dict[str, str],
    kind: SymbolKind,
    report: ValidationReport,
    as_error: bool,
):
    make = ErrorEntry.error if as_error else ErrorEntry.warning
    for cycle, edge in _find_cycles(graph):
        chain = " -> ".join(names[key] for key in cycle + [cycle[0]])
        report.push(
            make(
                ErrorCode.E_REF_CYCLE,
                f"Circular reference detected: {chain}",
                edge.file,
                edge.path,
            ).with_suggestion(
                f"Break the circular {kind.value} reference by removing or "
                "reorganizing one of the references"
            )
        )


def _ref_target(ref: str) -> Optional[str]:
    """
    Definition name a schema reference points at.

    ``#/definitions/Name`` and ``file.schema#Name`` name a definition
    explicitly. A bare string only counts when it looks like a type name.
    """
    if ref.startswith("#/definitions/"):
        return ref[len("#/definitions/"):] or None
    if "#" in ref:
        name = ref.split("#", 1)[1]
        return name or None
    if ref and ref[0].isupper() and "/" not in ref and "." not in ref:
        return ref
    return None


def _schema_refs(value: Any, path: str) -> Iterator[Tuple[str, str]]:
    """Yield (target name, JSON path) for every reference inside a schema fragment."""
    if isinstance(value, dict):
        for key in _REF_KEYS:
            ref = value.get(key)
            if isinstance(ref, str):
                target = _ref_target(ref)
                if target is not None:
                    yield target, f"{path}.{key}"
        for key, child in value.items():
            yield from _schema_refs(child, f"{path}.{key}")
    elif isinstance(value, list):
        for i, child in enumerate(value):
            yield from _schema_refs(child, f"{path}[{i}]")


def check(project: ProjectModel, index: SymbolIndex, report: ValidationReport):
    # Middleware composition
    graph: Dict[str, List[_Edge]] = {}
    names: Dict[str, str] = {}
    for file, middleware in project.middleware:
        source = index.get(SymbolKind.MIDDLEWARE, middleware.name)
        if source is None or source.file != file:
            continue
        names[source.canonical_key] = source.name
        edges = graph.setdefault(source.canonical_key, [])
        for i, composed in enumerate(middleware.compose):
            target = index.get(SymbolKind.MIDDLEWARE, composed.ref)
            if target is None:
                continue
            names[target.canonical_key] = target.name
            edges.append(_Edge(target.canonical_key, file, f"$.compose[{i}].ref"))
    _report_cycles(graph, names, SymbolKind.MIDDLEWARE, report, as_error=True)

    # Schema definitions
    graph = {}
    names = {}
    for file, schema in project.schemas:
        for def_name, definition in schema.definitions.items():
            source = index.get(SymbolKind.SCHEMA, def_name)
            if source is None or source.file != file:
                continue
            names[source.canonical_key] = source.name
            edges = graph.setdefault(source.canonical_key, [])
            for ref, path in _schema_refs(definition, f"$.definitions.{def_name}"):
                target = index.get(SymbolKind.SCHEMA, ref)
                if target is None:
                    continue
                names[target.canonical_key] = target.name
                edges.append(_Edge(target.canonical_key, file, path))
    _report_cycles(graph, names, SymbolKind.SCHEMA, report, as_error=True)

    # Model relations
    graph = {}
    names = {}
    for file, model in project.models:
        source = index.get(SymbolKind.MODEL, model.name)
        if source is None or source.file != file:
            continue
        names[source.canonical_key] = source.name
        edges = graph.setdefault(source.canonical_key, [])
        for rel_name, relation in model.relations.items():
            target = index.get(SymbolKind.MODEL, relation.target)
            if target is None:
                continue
            names[target.canonical_key] = target.name
            edges.append(_Edge(target.canonical_key, file, f"$.relations.{rel_name}.target"))
    _report_cycles(graph, names, SymbolKind.MODEL, report, as_error=False)
