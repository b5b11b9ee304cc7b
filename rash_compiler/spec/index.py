"""
Symbol index over a loaded project.

Names are compared through a canonical key so that ``getUser``,
``get_user`` and ``Get-User`` denote the same handler. Route paths are
only trimmed, because their case is significant.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from ..logging_config import get_logger
from .errors import ErrorCode, ErrorEntry
from .model import ProjectModel
from .types import SymbolKind

logger = get_logger(__name__)

_IGNORED_CHARS = frozenset("-_ \t\r\n")


def canonical_key(name: str, kind: SymbolKind) -> str:
    """Canonical form of ``name`` for lookups within ``kind``."""
    if kind is SymbolKind.ROUTE:
        return name.strip()
    return canonical_identifier(name)


def canonical_identifier(name: str) -> str:
    """Lowercase ``name`` and drop ``-``, ``_`` and whitespace. Dots are kept."""
    return "".join(ch for ch in name.strip().lower() if ch not in _IGNORED_CHARS)


@dataclass(frozen=True)
class SymbolEntry:
    """A registered definition."""

    canonical_key: str
    name: str
    kind: SymbolKind
    file: str
    path: str


class SymbolIndex:
    """Read-only mapping of (kind, canonical name) to symbol entries."""

    def __init__(self, by_kind: Dict[SymbolKind, Dict[str, SymbolEntry]]):
        self._by_kind: Mapping[SymbolKind, Mapping[str, SymbolEntry]] = MappingProxyType(
            {kind: MappingProxyType(dict(entries)) for kind, entries in by_kind.items()}
        )

    def get(self, kind: SymbolKind, name: str) -> Optional[SymbolEntry]:
        entries = self._by_kind.get(kind)
        if entries is None:
            return None
        return entries.get(canonical_key(name, kind))

    def contains(self, kind: SymbolKind, name: str) -> bool:
        return self.get(kind, name) is not None

    def kinds_for(self, name: str) -> List[SymbolKind]:
        """Every kind under which ``name`` is defined, in enum order."""
        return [kind for kind in SymbolKind if self.contains(kind, name)]

    def entries(self, kind: SymbolKind) -> List[SymbolEntry]:
        return list(self._by_kind.get(kind, {}).values())

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._by_kind.values())

    def __repr__(self) -> str:
        return f"SymbolIndex({len(self)} symbols)"


class _IndexBuilder:
    def __init__(self):
        self.by_kind: Dict[SymbolKind, Dict[str, SymbolEntry]] = {kind: {} for kind in SymbolKind}
        self.errors: List[ErrorEntry] = []

    def register(self, name: str, kind: SymbolKind, file: str, path: str):
        if not name or not name.strip():
            return
        key = canonical_key(name, kind)
        existing = self.by_kind[kind].get(key)
        if existing is not None:
            self.errors.append(
                ErrorEntry.error(
                    ErrorCode.E_DUPLICATE_SYMBOL,
                    f"Duplicate {kind.value} symbol '{name}' (also defined in {existing.file})",
                    file,
                    path,
                ).with_suggestion(
                    f"Rename one of the '{name}' definitions to avoid conflict"
                )
            )
            return
        self.by_kind[kind][key] = SymbolEntry(key, name, kind, file, path)


def build_index(project: ProjectModel) -> Tuple[SymbolIndex, List[ErrorEntry]]:
    """
    Register every named definition of a project.

    Args:
        project: Loaded project

    Returns:
        The index and the duplicate-symbol diagnostics found while building it
    """
    builder = _IndexBuilder()

    for file, schema in project.schemas:
        for def_name in schema.definitions:
            builder.register(def_name, SymbolKind.SCHEMA, file, f"$.definitions.{def_name}")
    for file, handler in project.handlers:
        builder.register(handler.name, SymbolKind.HANDLER, file, "$.name")
    for file, middleware in project.middleware:
        builder.register(middleware.name, SymbolKind.MIDDLEWARE, file, "$.name")
    for file, model in project.models:
        builder.register(model.name, SymbolKind.MODEL, file, "$.name")
    for file, route in project.routes:
        builder.register(route.path, SymbolKind.ROUTE, file, "$.path")

    index = SymbolIndex(builder.by_kind)
    logger.info("Indexed %d symbols (%d duplicates)", len(index), len(builder.errors))
    return index, builder.errors
