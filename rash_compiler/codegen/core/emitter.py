"""
Base emitter interface for all target languages.

Defines the contract that every language emitter implements and the
dispatch shared by all of them.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, FrozenSet, Iterable, Optional

from ...ir.nodes import Expression, NativeBridge, Statement, TypeIR
from ...ir.types import ModelIR, SchemaIR
from ...spec.types import Language, Tier
from .context import EmitContext, IndentStyle
from .errors import CodegenError, UnsupportedBridgeError
from .naming import NameSanitizer, normalize_identifier


class LanguageEmitter(ABC):
    """
    Abstract base class for language emitters.

    Statements and expressions are rendered by ``_stmt_<kind>`` and
    ``_expr_<kind>`` methods, looked up from the node's ``kind`` tag.
    Subclasses provide the methods for every kind their language supports.
    """

    # Expression rendered for an empty pipe
    empty_pipe = "null"

    # Keywords of the target language
    reserved_words: FrozenSet[str] = frozenset()

    def __init__(self):
        self.sanitizer = NameSanitizer(set(self.reserved_words))

    @property
    @abstractmethod
    def language(self) -> Language:
        """Return the target language."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the extension of generated files, without the dot (e.g. 'ts')."""
        pass

    @property
    @abstractmethod
    def indent_style(self) -> IndentStyle:
        """Return the indentation used in generated files."""
        pass

    @property
    def max_supported_tier(self) -> Tier:
        """Highest handler tier this emitter can render."""
        return Tier.BRIDGE

    def package_declaration(self, section: str) -> Optional[str]:
        """
        Get the package declaration for a file in ``section``.

        Args:
            section: Output section the file belongs to (e.g. 'handlers', 'models')

        Returns:
            Declaration line or None when the language has none
        """
        return None

    def identifier(self, name: str) -> str:
        """Identifier for a spec name: ``health.check`` -> ``healthCheck``, keywords suffixed."""
        return self.sanitizer.sanitize_name(normalize_identifier(name))

    # Dispatch

    def emit_statement(self, stmt: Statement, ctx: EmitContext) -> str:
        """
        Render one statement at the context's current indentation.

        Args:
            stmt: Statement node
            ctx: Emission context of the file being generated

        Returns:
            Rendered source, possibly spanning several lines
        """
        render = getattr(self, f"_stmt_{stmt.kind}", None)
        if render is None:
            raise CodegenError(
                f"{self.language.value} emitter cannot render statement '{stmt.kind}'"
            )
        return render(stmt, ctx)

    def emit_expression(self, expr: Expression, ctx: EmitContext) -> str:
        """
        Render one expression.

        Domain expressions are offered to the context's domain renderer first,
        so the framework adapter can replace the language's default rendering.
        """
        if expr.is_domain and ctx.domain_renderer is not None:
            rendered = ctx.domain_renderer(expr, ctx)
            if rendered is not None:
                return rendered

        if isinstance(expr, NativeBridge):
            return self._emit_bridge(expr, ctx)

        render = getattr(self, f"_expr_{expr.kind}", None)
        if render is None:
            raise CodegenError(
                f"{self.language.value} emitter cannot render expression '{expr.kind}'"
            )
        return render(expr, ctx)

    def emit_block(self, statements: Iterable[Statement], ctx: EmitContext) -> str:
        """Render statements one indentation level deeper than the context."""
        ctx.push_indent()
        try:
            lines = [self.emit_statement(stmt, ctx) for stmt in statements]
        finally:
            ctx.pop_indent()
        return "\n".join(lines)

    def emit_args(self, args: Iterable[Expression], ctx: EmitContext) -> str:
        return ", ".join(self.emit_expression(arg, ctx) for arg in args)

    def _emit_bridge(self, expr: NativeBridge, ctx: EmitContext) -> str:
        if expr.language is self.language:
            return self._expr_native_bridge(expr, ctx)
        if expr.fallback is not None:
            return self.emit_expression(expr.fallback, ctx)
        raise UnsupportedBridgeError(
            f"Native bridge to {expr.language.value} package '{expr.package}' "
            f"has no fallback for {self.language.value}"
        )

    # Rendering of whole elements

    @abstractmethod
    def emit_type(self, type_ir: TypeIR) -> str:
        """Render a type annotation."""
        pass

    @abstractmethod
    def emit_schema(self, schema: SchemaIR, ctx: EmitContext) -> str:
        """
        Render the validation types of one schema file.

        Args:
            schema: Schema with its named JSON Schema definitions
            ctx: Emission context; required imports are added to it

        Returns:
            Source code of the definitions
        """
        pass

    @abstractmethod
    def emit_model(self, model: ModelIR, ctx: EmitContext) -> str:
        """Render the data-model definition of one model."""
        pass

    @abstractmethod
    def emit_imports(self, ctx: EmitContext) -> str:
        """Render and clear the imports collected in ``ctx``."""
        pass

    # Expressions shared by most languages

    def _expr_literal(self, expr, ctx: EmitContext) -> str:
        return self.literal(expr.value)

    def _expr_identifier(self, expr, ctx: EmitContext) -> str:
        return expr.name

    def _expr_binary(self, expr, ctx: EmitContext) -> str:
        left = self.emit_expression(expr.left, ctx)
        right = self.emit_expression(expr.right, ctx)
        return f"{left} {self.binary_operator(expr.op)} {right}"

    def _expr_unary(self, expr, ctx: EmitContext) -> str:
        return f"{self.unary_operator(expr.op)}{self.emit_expression(expr.operand, ctx)}"

    def _expr_call(self, expr, ctx: EmitContext) -> str:
        return f"{self.emit_expression(expr.callee, ctx)}({self.emit_args(expr.args, ctx)})"

    def _expr_member(self, expr, ctx: EmitContext) -> str:
        return f"{self.emit_expression(expr.object, ctx)}.{expr.property}"

    def _expr_index(self, expr, ctx: EmitContext) -> str:
        return f"{self.emit_expression(expr.object, ctx)}[{self.emit_expression(expr.index, ctx)}]"

    def _expr_pipe(self, expr, ctx: EmitContext) -> str:
        if not expr.stages:
            return self.empty_pipe
        result = self.emit_expression(expr.stages[0], ctx)
        for stage in expr.stages[1:]:
            result = f"{self.emit_expression(stage, ctx)}({result})"
        return result

    def _expr_native_bridge(self, expr: NativeBridge, ctx: EmitContext) -> str:
        ctx.add_import(expr.import_name, expr.import_from)
        return f"{expr.method}({self.emit_args(expr.args, ctx)})"

    def binary_operator(self, op: str) -> str:
        return op

    def unary_operator(self, op: str) -> str:
        return op

    # Literals

    null_literal = "null"
    true_literal = "true"
    false_literal = "false"

    def literal(self, value: Any) -> str:
        """Render a JSON value as a literal of the target language."""
        if value is None:
            return self.null_literal
        if isinstance(value, bool):
            return self.true_literal if value else self.false_literal
        if isinstance(value, (int, float)):
            return self.number_literal(value)
        if isinstance(value, str):
            return self.string_literal(value)
        if isinstance(value, (list, tuple)):
            return self.array_literal([self.literal(item) for item in value])
        if isinstance(value, dict):
            return self.object_literal([(str(k), self.literal(v)) for k, v in value.items()])
        return self.string_literal(str(value))

    def number_literal(self, value) -> str:
        return repr(value)

    def string_literal(self, value: str) -> str:
        return json.dumps(value, ensure_ascii=False)

    def array_literal(self, items) -> str:
        return f"[{', '.join(items)}]"

    def object_literal(self, entries) -> str:
        if not entries:
            return "{}"
        return "{ " + ", ".join(f"{key}: {value}" for key, value in entries) + " }"
