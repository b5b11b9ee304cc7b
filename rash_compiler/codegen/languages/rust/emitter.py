"""
Rust emitter.

Renders handler bodies as async Rust for actix-web, schemas and models as
serde structs, and persistence as SeaORM calls.
"""

import json

from ....ir.nodes import Literal, TypeKind
from ....spec.types import Language
from ...core.context import EmitContext, IndentStyle
from ...core.emitter import LanguageEmitter
from ...core.naming import RUST_RESERVED, NamingCase, normalize_identifier

_TYPE_NAMES = {
    TypeKind.STRING: "String",
    TypeKind.NUMBER: "f64",
    TypeKind.BOOLEAN: "bool",
    TypeKind.NULL: "()",
    TypeKind.VOID: "()",
    TypeKind.ANY: "serde_json::Value",
    TypeKind.OBJECT: "serde_json::Value",
}

_COLUMN_TYPES = {
    "string": "String",
    "varchar": "String",
    "text": "String",
    "uuid": "String",
    "number": "f64",
    "float": "f64",
    "double": "f64",
    "decimal": "f64",
    "numeric": "f64",
    "integer": "i64",
    "int": "i64",
    "bigint": "i64",
    "serial": "i64",
    "boolean": "bool",
    "bool": "bool",
    "datetime": "chrono::NaiveDateTime",
    "timestamp": "chrono::NaiveDateTime",
    "date": "chrono::NaiveDate",
}

# Status codes with a named HttpResponse builder
_STATUS_BUILDERS = {
    200: "Ok",
    201: "Created",
    202: "Accepted",
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    409: "Conflict",
    500: "InternalServerError",
}


def _schema_type(schema) -> str:
    if not isinstance(schema, dict):
        return "serde_json::Value"
    ref = schema.get("$ref") or schema.get("ref")
    if isinstance(ref, str):
        return ref.rsplit("/", 1)[-1]
    schema_type = schema.get("type")
    if schema_type == "array":
        return f"Vec<{_schema_type(schema.get('items'))}>"
    if schema_type == "integer":
        return "i64"
    return _COLUMN_TYPES.get(schema_type, "serde_json::Value")


class RustEmitter(LanguageEmitter):
    """Emitter for Rust sources."""

    empty_pipe = "()"
    null_literal = "None"
    reserved_words = RUST_RESERVED

    @property
    def language(self) -> Language:
        return Language.RUST

    @property
    def file_extension(self) -> str:
        return "rs"

    @property
    def indent_style(self) -> IndentStyle:
        return IndentStyle.spaces(4)

    def identifier(self, name: str) -> str:
        return self.sanitizer.sanitize_name(normalize_identifier(name), NamingCase.SNAKE_CASE)

    # Statements

    def _stmt_let(self, stmt, ctx: EmitContext) -> str:
        annotation = f": {self.emit_type(stmt.type_)}" if stmt.type_ is not None else ""
        return f"{ctx.indent()}let {stmt.name}{annotation} = {self.emit_expression(stmt.value, ctx)};"

    def _stmt_assign(self, stmt, ctx: EmitContext) -> str:
        target = self.emit_expression(stmt.target, ctx)
        return f"{ctx.indent()}{target} = {self.emit_expression(stmt.value, ctx)};"

    def _stmt_return(self, stmt, ctx: EmitContext) -> str:
        if stmt.value is None:
            return f"{ctx.indent()}return;"
        return f"{ctx.indent()}return {self.emit_expression(stmt.value, ctx)};"

    def _stmt_if(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        code = f"{ind}if {self.emit_expression(stmt.condition, ctx)} {{\n{self.emit_block(stmt.then, ctx)}\n{ind}}}"
        if stmt.else_ is not None:
            code += f" else {{\n{self.emit_block(stmt.else_, ctx)}\n{ind}}}"
        return code

    def _stmt_for(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        iterable = self.emit_expression(stmt.iterable, ctx)
        return f"{ind}for {stmt.binding} in {iterable} {{\n{self.emit_block(stmt.body, ctx)}\n{ind}}}"

    def _stmt_while(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        condition = self.emit_expression(stmt.condition, ctx)
        return f"{ind}while {condition} {{\n{self.emit_block(stmt.body, ctx)}\n{ind}}}"

    def _stmt_match(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        lines = [f"{ind}match {self.emit_expression(stmt.expr, ctx)} {{"]
        ctx.push_indent()
        arm_ind = ctx.indent()
        for arm in stmt.arms:
            pattern = self._pattern(arm.pattern, ctx)
            lines.append(f"{arm_ind}{pattern} => {{\n{self.emit_block(arm.body, ctx)}\n{arm_ind}}}")
        # match must be exhaustive
        lines.append(f"{arm_ind}_ => {{}}")
        ctx.pop_indent()
        lines.append(f"{ind}}}")
        return "\n".join(lines)

    def _pattern(self, expr, ctx: EmitContext) -> str:
        if isinstance(expr, Literal) and isinstance(expr.value, str):
            return json.dumps(expr.value, ensure_ascii=False)
        return self.emit_expression(expr, ctx)

    def _stmt_try_catch(self, stmt, ctx: EmitContext) -> str:
        # try/catch becomes a fallible closure whose error is matched
        ind = ctx.indent()
        inner = ind + self.indent_style.unit
        lines = [f"{ind}match (|| -> Result<(), Box<dyn std::error::Error>> {{"]
        if stmt.try_:
            lines.append(self.emit_block(stmt.try_, ctx))
        lines.append(f"{inner}Ok(())")
        lines.append(f"{ind}}})() {{")
        lines.append(f"{inner}Ok(_) => {{}}")
        lines.append(f"{inner}Err({stmt.catch.binding}) => {{")
        ctx.push_indent()
        try:
            if stmt.catch.body:
                lines.append(self.emit_block(stmt.catch.body, ctx))
        finally:
            ctx.pop_indent()
        lines.append(f"{inner}}}")
        lines.append(f"{ind}}}")
        for finally_stmt in stmt.finally_ or ():
            lines.append(self.emit_statement(finally_stmt, ctx))
        return "\n".join(lines)

    def _stmt_throw(self, stmt, ctx: EmitContext) -> str:
        return f"{ctx.indent()}return Err({self.emit_expression(stmt.value, ctx)}.into());"

    def _stmt_expression(self, stmt, ctx: EmitContext) -> str:
        return f"{ctx.indent()}{self.emit_expression(stmt.expr, ctx)};"

    # Expressions

    def _expr_object(self, expr, ctx: EmitContext) -> str:
        entries = ", ".join(
            f"{json.dumps(key)}: {self.emit_expression(value, ctx)}" for key, value in expr.properties
        )
        return f"serde_json::json!({{ {entries} }})" if entries else "serde_json::json!({})"

    def _expr_array(self, expr, ctx: EmitContext) -> str:
        return f"vec![{self.emit_args(expr.elements, ctx)}]"

    def _expr_arrow_fn(self, expr, ctx: EmitContext) -> str:
        params = ", ".join(expr.params)
        return f"|{params}| {{\n{self.emit_block(expr.body, ctx)}\n{ctx.indent()}}}"

    def _expr_await(self, expr, ctx: EmitContext) -> str:
        inner = self.emit_expression(expr.expr, ctx)
        # SeaORM calls are rendered already awaited
        if inner.endswith(".await?"):
            return inner
        return f"{inner}.await"

    def _expr_template(self, expr, ctx: EmitContext) -> str:
        fmt = []
        args = []
        for part in expr.parts:
            if part.is_text:
                fmt.append(part.text.replace("{", "{{").replace("}", "}}"))
            else:
                fmt.append("{}")
                args.append(self.emit_expression(part.expr, ctx))
        if not args:
            return self.string_literal("".join(part.text for part in expr.parts))
        fmt_string = json.dumps("".join(fmt), ensure_ascii=False)
        return f"format!({fmt_string}, {', '.join(args)})"

    def _expr_db_query(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "sea_orm::prelude::*")
        model = expr.model
        if expr.operation in ("findUnique", "findFirst"):
            return f"{model}::find_by_id(id).one(&db).await?"
        if expr.operation == "count":
            return f"{model}::find().count(&db).await?"
        if expr.operation == "findMany":
            chain = f"{model}::find()"
            if expr.skip is not None or expr.take is not None:
                ctx.add_import("", "sea_orm::QuerySelect")
            if expr.skip is not None:
                chain += f".offset({self.emit_expression(expr.skip, ctx)} as u64)"
            if expr.take is not None:
                chain += f".limit({self.emit_expression(expr.take, ctx)} as u64)"
            return f"{chain}.all(&db).await?"
        return f"{model}::{expr.operation}(&db).await?"

    def _expr_db_mutate(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "sea_orm::prelude::*")
        model = expr.model
        data = self.emit_expression(expr.data, ctx) if expr.data is not None else "model"
        if expr.operation == "create":
            return f"{model}::insert({data}).exec(&db).await?"
        if expr.operation == "update":
            return f"{model}::update({data}).exec(&db).await?"
        if expr.operation == "delete":
            return f"{model}::delete_by_id(id).exec(&db).await?"
        return f"{model}::{expr.operation}(&db).await?"

    def _expr_http_respond(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "actix_web::HttpResponse")
        if expr.status == 204:
            return "HttpResponse::NoContent().finish()"
        body = self.emit_expression(expr.body, ctx) if expr.body is not None else "()"
        builder = _STATUS_BUILDERS.get(expr.status)
        if builder is None:
            ctx.add_import("", "actix_web::http::StatusCode")
            return f"HttpResponse::build(StatusCode::from_u16({expr.status}).unwrap()).json({body})"
        return f"HttpResponse::{builder}().json({body})"

    def _expr_ctx_get(self, expr, ctx: EmitContext) -> str:
        section, _, rest = expr.path.partition(".")
        if section == "params" and rest:
            return f"req.match_info().get({json.dumps(rest)}).unwrap()"
        if section == "query" and rest:
            return f"query.{rest}"
        if section == "body":
            return f"body.{rest}" if rest else "body"
        if section == "headers" and rest:
            return f"req.headers().get({json.dumps(rest)})"
        return f"req.{expr.path}"

    def _expr_validate(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "validator::Validate")
        return f"{self.emit_expression(expr.data, ctx)}.validate()?"

    def _expr_hash_password(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "bcrypt::{hash, DEFAULT_COST}")
        cost = expr.rounds if expr.rounds is not None else "DEFAULT_COST"
        return f"hash({self.emit_expression(expr.input, ctx)}, {cost})?"

    def _expr_verify_password(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "bcrypt::verify")
        password = self.emit_expression(expr.password, ctx)
        return f"verify({password}, &{self.emit_expression(expr.hash, ctx)})?"

    def _secret(self, expr, ctx: EmitContext) -> str:
        if expr.secret is not None:
            return self.emit_expression(expr.secret, ctx)
        return 'std::env::var("JWT_SECRET")?'

    def _expr_sign_token(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "jsonwebtoken::{encode, EncodingKey, Header}")
        payload = self.emit_expression(expr.payload, ctx)
        return f"encode(&Header::default(), &{payload}, &EncodingKey::from_secret({self._secret(expr, ctx)}.as_bytes()))?"

    def _expr_verify_token(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "jsonwebtoken::{decode, DecodingKey, Validation}")
        token = self.emit_expression(expr.token, ctx)
        return (
            f"decode::<Claims>(&{token}, &DecodingKey::from_secret({self._secret(expr, ctx)}.as_bytes()), "
            f"&Validation::default())?"
        )

    # Literals

    def number_literal(self, value) -> str:
        if isinstance(value, float):
            return f"{value!r}_f64"
        return str(value)

    def string_literal(self, value: str) -> str:
        return f"{json.dumps(value, ensure_ascii=False)}.to_string()"

    def array_literal(self, items) -> str:
        return f"vec![{', '.join(items)}]"

    def literal(self, value) -> str:
        if isinstance(value, dict):
            return f"serde_json::json!({json.dumps(value, ensure_ascii=False)})"
        return super().literal(value)

    # Types, schemas, models

    def emit_type(self, type_ir) -> str:
        kind = type_ir.kind
        if kind is TypeKind.ARRAY:
            return f"Vec<{self.emit_type(type_ir.inner)}>"
        if kind is TypeKind.OPTIONAL:
            return f"Option<{self.emit_type(type_ir.inner)}>"
        if kind is TypeKind.REF:
            return type_ir.name
        if kind is TypeKind.UNION:
            if len(type_ir.variants) == 1:
                return self.emit_type(type_ir.variants[0])
            return "serde_json::Value"
        return _TYPE_NAMES[kind]

    def _field_lines(self, name: str, rust_type: str):
        field = self.sanitizer.sanitize_name(name, NamingCase.SNAKE_CASE)
        lines = []
        if field != name:
            lines.append(f"    #[serde(rename = {json.dumps(name)})]")
        lines.append(f"    pub {field}: {rust_type},")
        return lines

    def emit_schema(self, schema, ctx: EmitContext) -> str:
        ctx.add_import("", "serde::{Deserialize, Serialize}")
        blocks = []
        for name, definition in schema.definitions.items():
            lines = ["#[derive(Debug, Clone, Serialize, Deserialize)]", f"pub struct {name} {{"]
            properties = definition.get("properties") if isinstance(definition, dict) else None
            required = set(definition.get("required") or []) if isinstance(definition, dict) else set()
            for field, field_schema in (properties or {}).items():
                rust_type = _schema_type(field_schema)
                if field not in required:
                    rust_type = f"Option<{rust_type}>"
                lines.extend(self._field_lines(field, rust_type))
            lines.append("}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks) + "\n"

    def emit_model(self, model, ctx: EmitContext) -> str:
        ctx.add_import("", "serde::{Deserialize, Serialize}")
        lines = ["#[derive(Debug, Clone, Serialize, Deserialize)]", f"pub struct {model.name} {{"]
        for name, column in model.columns:
            rust_type = _COLUMN_TYPES.get(column.get("type", "string"), "serde_json::Value")
            if column.get("nullable"):
                rust_type = f"Option<{rust_type}>"
            lines.extend(self._field_lines(name, rust_type))
        lines.append("}")
        return "\n".join(lines) + "\n"

    def emit_imports(self, ctx: EmitContext) -> str:
        return "\n".join(f"use {imp.from_};" for imp in ctx.take_imports())
