"""
Per-file emission state: indentation and collected imports.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from ...ir.nodes import Expression


@dataclass(frozen=True)
class IndentStyle:
    use_tabs: bool = False
    width: int = 2

    @classmethod
    def spaces(cls, width: int) -> "IndentStyle":
        return cls(use_tabs=False, width=width)

    @classmethod
    def tabs(cls) -> "IndentStyle":
        return cls(use_tabs=True, width=1)

    @property
    def unit(self) -> str:
        return "\t" if self.use_tabs else " " * self.width


@dataclass(frozen=True)
class ImportIR:
    """One import: ``names`` (rendered as written) pulled from ``from_``. Empty names means a bare import."""

    names: str
    from_: str


DomainRenderer = Callable[[Expression, "EmitContext"], Optional[str]]


class EmitContext:
    """
    Mutable state for emitting one file.

    A fresh context is created per generated file, so imports never leak
    between files. ``module_path`` is the import root of the generated
    project, for languages whose imports name it (Go module paths).
    """

    def __init__(self, indent_style: IndentStyle, domain_renderer: Optional[DomainRenderer] = None,
                 module_path: Optional[str] = None):
        self.indent_style = indent_style
        self.domain_renderer = domain_renderer
        self.module_path = module_path
        self._level = 0
        self._imports: List[ImportIR] = []

    @property
    def indent_level(self) -> int:
        return self._level

    def indent(self) -> str:
        return self.indent_style.unit * self._level

    def push_indent(self):
        self._level += 1

    def pop_indent(self):
        if self._level > 0:
            self._level -= 1

    def add_import(self, names: str, from_: str):
        """Record an import; repeated (names, from_) pairs are kept once, first-seen order."""
        entry = ImportIR(names, from_)
        if entry not in self._imports:
            self._imports.append(entry)

    @property
    def imports(self) -> List[ImportIR]:
        return list(self._imports)

    def take_imports(self) -> List[ImportIR]:
        """Return the collected imports and clear them."""
        imports, self._imports = self._imports, []
        return imports
