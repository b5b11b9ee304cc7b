"""
TypeScript emitter.

Renders handler bodies as TypeScript, schemas as zod validators and
models as interfaces matching the Prisma client.
"""

import json
import re

from ....ir.nodes import TypeKind
from ....spec.types import Language
from ...core.context import EmitContext, IndentStyle
from ...core.emitter import LanguageEmitter
from ...core.naming import TYPESCRIPT_RESERVED
from .zod import json_schema_to_zod

_JS_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")

# Prisma column types to TypeScript types
_COLUMN_TYPES = {
    "string": "string",
    "text": "string",
    "varchar": "string",
    "uuid": "string",
    "integer": "number",
    "int": "number",
    "bigint": "number",
    "serial": "number",
    "float": "number",
    "double": "number",
    "decimal": "number",
    "numeric": "number",
    "boolean": "boolean",
    "bool": "boolean",
    "datetime": "Date",
    "timestamp": "Date",
    "date": "Date",
    "json": "unknown",
    "jsonb": "unknown",
}


def column_to_ts_type(column: dict) -> str:
    """TypeScript type of a model column definition."""
    col_type = column.get("type", "any")
    base = _COLUMN_TYPES.get(col_type, col_type)
    if column.get("nullable"):
        return f"{base} | null"
    return base


def _lower_first(name: str) -> str:
    # Prisma client accessor: UserProfile -> userProfile
    return name[:1].lower() + name[1:]


class TypeScriptEmitter(LanguageEmitter):
    """Emitter for TypeScript sources."""

    empty_pipe = "undefined"
    reserved_words = TYPESCRIPT_RESERVED

    @property
    def language(self) -> Language:
        return Language.TYPESCRIPT

    @property
    def file_extension(self) -> str:
        return "ts"

    @property
    def indent_style(self) -> IndentStyle:
        return IndentStyle.spaces(2)

    # Statements

    def _stmt_let(self, stmt, ctx: EmitContext) -> str:
        annotation = f": {self.emit_type(stmt.type_)}" if stmt.type_ is not None else ""
        return f"{ctx.indent()}const {stmt.name}{annotation} = {self.emit_expression(stmt.value, ctx)};"

    def _stmt_assign(self, stmt, ctx: EmitContext) -> str:
        target = self.emit_expression(stmt.target, ctx)
        return f"{ctx.indent()}{target} = {self.emit_expression(stmt.value, ctx)};"

    def _stmt_return(self, stmt, ctx: EmitContext) -> str:
        if stmt.value is None:
            return f"{ctx.indent()}return;"
        return f"{ctx.indent()}return {self.emit_expression(stmt.value, ctx)};"

    def _stmt_if(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        code = f"{ind}if ({self.emit_expression(stmt.condition, ctx)}) {{\n{self.emit_block(stmt.then, ctx)}\n{ind}}}"
        if stmt.else_ is not None:
            code += f" else {{\n{self.emit_block(stmt.else_, ctx)}\n{ind}}}"
        return code

    def _stmt_for(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        iterable = self.emit_expression(stmt.iterable, ctx)
        return f"{ind}for (const {stmt.binding} of {iterable}) {{\n{self.emit_block(stmt.body, ctx)}\n{ind}}}"

    def _stmt_while(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        condition = self.emit_expression(stmt.condition, ctx)
        return f"{ind}while ({condition}) {{\n{self.emit_block(stmt.body, ctx)}\n{ind}}}"

    def _stmt_match(self, stmt, ctx: EmitContext) -> str:
        # if / else-if chain on strict equality
        ind = ctx.indent()
        value = self.emit_expression(stmt.expr, ctx)
        branches = []
        for arm in stmt.arms:
            pattern = self.emit_expression(arm.pattern, ctx)
            branches.append(f"if ({value} === {pattern}) {{\n{self.emit_block(arm.body, ctx)}\n{ind}}}")
        return ind + " else ".join(branches)

    def _stmt_try_catch(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        code = (
            f"{ind}try {{\n{self.emit_block(stmt.try_, ctx)}\n{ind}}} "
            f"catch ({stmt.catch.binding}) {{\n{self.emit_block(stmt.catch.body, ctx)}\n{ind}}}"
        )
        if stmt.finally_ is not None:
            code += f" finally {{\n{self.emit_block(stmt.finally_, ctx)}\n{ind}}}"
        return code

    def _stmt_throw(self, stmt, ctx: EmitContext) -> str:
        return f"{ctx.indent()}throw {self.emit_expression(stmt.value, ctx)};"

    def _stmt_expression(self, stmt, ctx: EmitContext) -> str:
        return f"{ctx.indent()}{self.emit_expression(stmt.expr, ctx)};"

    # Expressions

    def _expr_object(self, expr, ctx: EmitContext) -> str:
        return self.object_literal(
            [(self._key(key), self.emit_expression(value, ctx)) for key, value in expr.properties]
        )

    def _expr_array(self, expr, ctx: EmitContext) -> str:
        return f"[{self.emit_args(expr.elements, ctx)}]"

    def _expr_arrow_fn(self, expr, ctx: EmitContext) -> str:
        params = ", ".join(expr.params)
        return f"({params}) => {{\n{self.emit_block(expr.body, ctx)}\n{ctx.indent()}}}"

    def _expr_await(self, expr, ctx: EmitContext) -> str:
        return f"await {self.emit_expression(expr.expr, ctx)}"

    def _expr_template(self, expr, ctx: EmitContext) -> str:
        out = []
        for part in expr.parts:
            if part.is_text:
                out.append(part.text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${"))
            else:
                out.append(f"${{{self.emit_expression(part.expr, ctx)}}}")
        return "`" + "".join(out) + "`"

    def _expr_db_query(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("{ prisma }", "../prisma")
        args = []
        if expr.where is not None:
            args.append(f"where: {self.literal(expr.where)}")
        if expr.order_by is not None:
            args.append(f"orderBy: {self.literal(expr.order_by)}")
        if expr.skip is not None:
            args.append(f"skip: {self.emit_expression(expr.skip, ctx)}")
        if expr.take is not None:
            args.append(f"take: {self.emit_expression(expr.take, ctx)}")
        if expr.select is not None:
            args.append(f"select: {self.object_literal([(field, 'true') for field in expr.select])}")
        if expr.include is not None:
            args.append(f"include: {self.literal(expr.include)}")
        call_args = "{ " + ", ".join(args) + " }" if args else ""
        return f"prisma.{_lower_first(expr.model)}.{expr.operation}({call_args})"

    def _expr_db_mutate(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("{ prisma }", "../prisma")
        args = []
        if expr.data is not None:
            args.append(f"data: {self.emit_expression(expr.data, ctx)}")
        if expr.where is not None:
            args.append(f"where: {self.literal(expr.where)}")
        call_args = "{ " + ", ".join(args) + " }" if args else ""
        return f"prisma.{_lower_first(expr.model)}.{expr.operation}({call_args})"

    def _expr_http_respond(self, expr, ctx: EmitContext) -> str:
        body = self.emit_expression(expr.body, ctx) if expr.body is not None else "undefined"
        return f"res.status({expr.status}).json({body})"

    def _expr_ctx_get(self, expr, ctx: EmitContext) -> str:
        section, _, rest = expr.path.partition(".")
        if section in ("params", "query") and rest:
            return f"req.{section}.{rest}"
        if section == "body":
            return f"req.body.{rest}" if rest else "req.body"
        if section == "headers" and rest:
            return f"req.headers[{json.dumps(rest)}]"
        return f"req.{expr.path}"

    def _expr_validate(self, expr, ctx: EmitContext) -> str:
        ctx.add_import(f"{{ {expr.schema} }}", f"../schemas/{expr.schema.lower()}")
        return f"{expr.schema}.parse({self.emit_expression(expr.data, ctx)})"

    def _expr_hash_password(self, expr, ctx: EmitContext) -> str:
        value = self.emit_expression(expr.input, ctx)
        if expr.algorithm == "bcrypt":
            ctx.add_import("bcrypt", "bcrypt")
            rounds = expr.rounds if expr.rounds is not None else 10
            return f"bcrypt.hash({value}, {rounds})"
        return f"hashPassword({value}, {json.dumps(expr.algorithm)})"

    def _expr_verify_password(self, expr, ctx: EmitContext) -> str:
        password = self.emit_expression(expr.password, ctx)
        hashed = self.emit_expression(expr.hash, ctx)
        if expr.algorithm == "bcrypt":
            ctx.add_import("bcrypt", "bcrypt")
            return f"bcrypt.compare({password}, {hashed})"
        return f"verifyPassword({password}, {hashed}, {json.dumps(expr.algorithm)})"

    def _secret(self, expr, ctx: EmitContext) -> str:
        if expr.secret is not None:
            return self.emit_expression(expr.secret, ctx)
        return "process.env.JWT_SECRET!"

    def _expr_sign_token(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("jwt", "jsonwebtoken")
        args = [self.emit_expression(expr.payload, ctx), self._secret(expr, ctx)]
        if expr.options is not None:
            args.append(self.literal(expr.options))
        return f"jwt.sign({', '.join(args)})"

    def _expr_verify_token(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("jwt", "jsonwebtoken")
        return f"jwt.verify({self.emit_expression(expr.token, ctx)}, {self._secret(expr, ctx)})"

    def _key(self, key: str) -> str:
        return key if _JS_IDENTIFIER.match(key) else json.dumps(key)

    def object_literal(self, entries) -> str:
        if not entries:
            return "{}"
        return "{ " + ", ".join(f"{self._key(k)}: {v}" for k, v in entries) + " }"

    # Types, schemas, models

    def emit_type(self, type_ir) -> str:
        kind = type_ir.kind
        if kind is TypeKind.ARRAY:
            return f"{self.emit_type(type_ir.inner)}[]"
        if kind is TypeKind.OPTIONAL:
            return f"{self.emit_type(type_ir.inner)} | null"
        if kind is TypeKind.REF:
            return type_ir.name
        if kind is TypeKind.OBJECT:
            fields = "; ".join(f"{name}: {self.emit_type(t)}" for name, t in type_ir.fields)
            return f"{{ {fields} }}"
        if kind is TypeKind.UNION:
            return " | ".join(self.emit_type(v) for v in type_ir.variants)
        return kind.value

    def emit_schema(self, schema, ctx: EmitContext) -> str:
        ctx.add_import("{ z }", "zod")
        lines = []
        for name, definition in schema.definitions.items():
            lines.append(f"export const {name} = {json_schema_to_zod(definition)};")
            lines.append(f"export type {name} = z.infer<typeof {name}>;")
            lines.append("")
        return "\n".join(lines)

    def emit_model(self, model, ctx: EmitContext) -> str:
        lines = [f"export interface {model.name} {{"]
        for name, column in model.columns:
            lines.append(f"  {name}: {column_to_ts_type(column)};")
        lines.append("}")
        return "\n".join(lines)

    def emit_imports(self, ctx: EmitContext) -> str:
        return "\n".join(f'import {imp.names} from "{imp.from_}";' for imp in ctx.take_imports())
