"""
Go emitter.

Renders handler bodies for gin, schemas as validated structs and models
as GORM structs. Generated files live in one Go package per section.
"""

import json
from typing import List, Optional

from ....ir.nodes import TypeKind
from ....spec.types import Language
from ...core.context import EmitContext, IndentStyle
from ...core.emitter import LanguageEmitter
from ...core.naming import GO_RESERVED, NamingCase, normalize_identifier, to_pascal_case, to_snake_case

_TYPE_NAMES = {
    TypeKind.STRING: "string",
    TypeKind.NUMBER: "float64",
    TypeKind.BOOLEAN: "bool",
    TypeKind.NULL: "interface{}",
    TypeKind.VOID: "",
    TypeKind.ANY: "interface{}",
    TypeKind.OBJECT: "map[string]interface{}",
    TypeKind.UNION: "interface{}",
}

_COLUMN_TYPES = {
    "string": "string",
    "varchar": "string",
    "text": "string",
    "uuid": "string",
    "integer": "int",
    "int": "int",
    "bigint": "int64",
    "serial": "int64",
    "float": "float64",
    "double": "float64",
    "decimal": "float64",
    "numeric": "float64",
    "number": "float64",
    "boolean": "bool",
    "bool": "bool",
    "datetime": "time.Time",
    "timestamp": "time.Time",
    "date": "time.Time",
    "json": "json.RawMessage",
    "jsonb": "json.RawMessage",
}

_SCHEMA_TYPES = {
    "string": "string",
    "number": "float64",
    "integer": "int",
    "boolean": "bool",
    "object": "map[string]interface{}",
}

_OPERATORS = {"===": "==", "!==": "!=", "and": "&&", "or": "||"}

BCRYPT_IMPORT = "golang.org/x/crypto/bcrypt"
JWT_IMPORT = "github.com/golang-jwt/jwt/v5"


def package_path(ctx: EmitContext, section: str) -> str:
    """Import path of a generated section package."""
    if ctx.module_path:
        return f"{ctx.module_path}/src/{section}"
    return section


def go_field_name(name: str) -> str:
    return to_pascal_case(name) or "Field"


def schema_to_go_type(schema) -> str:
    if not isinstance(schema, dict):
        return "interface{}"
    ref = schema.get("$ref") or schema.get("ref")
    if isinstance(ref, str):
        return ref.rsplit("/", 1)[-1]
    schema_type = schema.get("type")
    if schema_type == "array":
        return f"[]{schema_to_go_type(schema.get('items'))}"
    return _SCHEMA_TYPES.get(schema_type, "interface{}")


def gorm_tag(name: str, column: dict) -> str:
    parts = [f"column:{to_snake_case(name)}"]
    if column.get("primaryKey"):
        parts.append("primaryKey")
    if column.get("unique"):
        parts.append("unique")
    if not column.get("nullable"):
        parts.append("not null")
    return ";".join(parts)


class GoEmitter(LanguageEmitter):
    """Emitter for Go sources."""

    empty_pipe = "nil"
    null_literal = "nil"
    reserved_words = GO_RESERVED

    @property
    def language(self) -> Language:
        return Language.GO

    @property
    def file_extension(self) -> str:
        return "go"

    @property
    def indent_style(self) -> IndentStyle:
        return IndentStyle.tabs()

    def identifier(self, name: str) -> str:
        return self.sanitizer.sanitize_name(normalize_identifier(name), NamingCase.PASCAL_CASE)

    def package_declaration(self, section: str) -> Optional[str]:
        return f"package {section}"

    # Statements

    def _stmt_let(self, stmt, ctx: EmitContext) -> str:
        value = self.emit_expression(stmt.value, ctx)
        if stmt.type_ is not None and self.emit_type(stmt.type_):
            return f"{ctx.indent()}var {stmt.name} {self.emit_type(stmt.type_)} = {value}"
        return f"{ctx.indent()}{stmt.name} := {value}"

    def _stmt_assign(self, stmt, ctx: EmitContext) -> str:
        target = self.emit_expression(stmt.target, ctx)
        return f"{ctx.indent()}{target} = {self.emit_expression(stmt.value, ctx)}"

    def _stmt_return(self, stmt, ctx: EmitContext) -> str:
        if stmt.value is None:
            return f"{ctx.indent()}return"
        return f"{ctx.indent()}return {self.emit_expression(stmt.value, ctx)}"

    def _stmt_if(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        code = f"{ind}if {self.emit_expression(stmt.condition, ctx)} {{\n{self.emit_block(stmt.then, ctx)}\n{ind}}}"
        if stmt.else_ is not None:
            code += f" else {{\n{self.emit_block(stmt.else_, ctx)}\n{ind}}}"
        return code

    def _stmt_for(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        iterable = self.emit_expression(stmt.iterable, ctx)
        return f"{ind}for _, {stmt.binding} := range {iterable} {{\n{self.emit_block(stmt.body, ctx)}\n{ind}}}"

    def _stmt_while(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        condition = self.emit_expression(stmt.condition, ctx)
        return f"{ind}for {condition} {{\n{self.emit_block(stmt.body, ctx)}\n{ind}}}"

    def _stmt_match(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        lines = [f"{ind}switch {self.emit_expression(stmt.expr, ctx)} {{"]
        for arm in stmt.arms:
            lines.append(f"{ind}case {self.emit_expression(arm.pattern, ctx)}:")
            if arm.body:
                lines.append(self.emit_block(arm.body, ctx))
        lines.append(f"{ind}}}")
        return "\n".join(lines)

    def _stmt_try_catch(self, stmt, ctx: EmitContext) -> str:
        # a closure whose deferred recover plays the catch clause
        ind = ctx.indent()
        lines = [f"{ind}func() {{"]
        ctx.push_indent()
        try:
            inner = ctx.indent()
            if stmt.finally_ is not None:
                lines.append(f"{inner}defer func() {{")
                lines.append(self.emit_block(stmt.finally_, ctx))
                lines.append(f"{inner}}}()")
            lines.append(f"{inner}defer func() {{")
            ctx.push_indent()
            try:
                lines.append(f"{ctx.indent()}if {stmt.catch.binding} := recover(); {stmt.catch.binding} != nil {{")
                lines.append(self.emit_block(stmt.catch.body, ctx))
                lines.append(f"{ctx.indent()}}}")
            finally:
                ctx.pop_indent()
            lines.append(f"{inner}}}()")
        finally:
            ctx.pop_indent()
        lines.append(self.emit_block(stmt.try_, ctx))
        lines.append(f"{ind}}}()")
        return "\n".join(line for line in lines if line)

    def _stmt_throw(self, stmt, ctx: EmitContext) -> str:
        return f"{ctx.indent()}panic({self.emit_expression(stmt.value, ctx)})"

    def _stmt_expression(self, stmt, ctx: EmitContext) -> str:
        return f"{ctx.indent()}{self.emit_expression(stmt.expr, ctx)}"

    # Expressions

    def binary_operator(self, op: str) -> str:
        return _OPERATORS.get(op, op)

    def unary_operator(self, op: str) -> str:
        return "!" if op == "not" else op

    def _expr_object(self, expr, ctx: EmitContext) -> str:
        return self.object_literal(
            [(json.dumps(key), self.emit_expression(value, ctx)) for key, value in expr.properties]
        )

    def _expr_array(self, expr, ctx: EmitContext) -> str:
        return f"[]interface{{}}{{{self.emit_args(expr.elements, ctx)}}}"

    def _expr_arrow_fn(self, expr, ctx: EmitContext) -> str:
        params = ", ".join(f"{param} interface{{}}" for param in expr.params)
        return f"func({params}) interface{{}} {{\n{self.emit_block(expr.body, ctx)}\n{ctx.indent()}}}"

    def _expr_await(self, expr, ctx: EmitContext) -> str:
        # calls are synchronous in Go
        return self.emit_expression(expr.expr, ctx)

    def _expr_template(self, expr, ctx: EmitContext) -> str:
        fmt_parts = []
        args = []
        for part in expr.parts:
            if part.is_text:
                fmt_parts.append(part.text.replace("%", "%%"))
            else:
                fmt_parts.append("%v")
                args.append(self.emit_expression(part.expr, ctx))
        if not args:
            return self.string_literal("".join(part.text for part in expr.parts))
        ctx.add_import("", "fmt")
        return f"fmt.Sprintf({self.string_literal(''.join(fmt_parts))}, {', '.join(args)})"

    def _model(self, model: str, ctx: EmitContext) -> str:
        ctx.add_import("", package_path(ctx, "models"))
        return f"models.{model}"

    def _where(self, where) -> str:
        return f".Where({self.literal(where)})" if where else ""

    def _expr_db_query(self, expr, ctx: EmitContext) -> str:
        model = self._model(expr.model, ctx)
        chain = f"models.DB.Model(&{model}{{}}){self._where(expr.where)}"
        if isinstance(expr.include, dict):
            for relation in expr.include:
                chain += f".Preload({json.dumps(to_pascal_case(relation))})"
        if expr.operation in ("findUnique", "findFirst"):
            return f"{chain}.First(&record)"
        if expr.operation == "count":
            return f"{chain}.Count(&count)"
        if expr.operation == "findMany":
            if isinstance(expr.order_by, dict):
                for field, direction in expr.order_by.items():
                    chain += f".Order({json.dumps(f'{to_snake_case(field)} {direction}')})"
            if expr.skip is not None:
                chain += f".Offset({self.emit_expression(expr.skip, ctx)})"
            if expr.take is not None:
                chain += f".Limit({self.emit_expression(expr.take, ctx)})"
            if expr.select:
                chain += f".Select({self._literal_args(expr.select)})"
            return f"{chain}.Find(&records)"
        return f"{chain}.{to_pascal_case(expr.operation)}()"

    def _literal_args(self, values) -> str:
        return ", ".join(self.literal(value) for value in values)

    def _expr_db_mutate(self, expr, ctx: EmitContext) -> str:
        model = self._model(expr.model, ctx)
        data = self.emit_expression(expr.data, ctx) if expr.data is not None else f"&{model}{{}}"
        where = self._where(expr.where)
        if expr.operation == "create":
            return f"models.DB.Model(&{model}{{}}).Create({data})"
        if expr.operation == "update":
            return f"models.DB.Model(&{model}{{}}){where}.Updates({data})"
        if expr.operation == "delete":
            return f"models.DB{where}.Delete(&{model}{{}})"
        if expr.operation == "upsert":
            return f"models.DB.Model(&{model}{{}}){where}.Assign({data}).FirstOrCreate(&{model}{{}})"
        return f"models.DB.{to_pascal_case(expr.operation)}({data})"

    def _expr_http_respond(self, expr, ctx: EmitContext) -> str:
        if expr.body is None:
            return f"c.Status({expr.status})"
        return f"c.JSON({expr.status}, {self.emit_expression(expr.body, ctx)})"

    def _expr_ctx_get(self, expr, ctx: EmitContext) -> str:
        section, _, rest = expr.path.partition(".")
        if section == "params" and rest:
            return f"c.Param({json.dumps(rest)})"
        if section == "query" and rest:
            return f"c.Query({json.dumps(rest)})"
        if section == "body":
            return f"body[{json.dumps(rest)}]" if rest else "c.ShouldBindJSON(&body)"
        if section == "headers" and rest:
            return f"c.GetHeader({json.dumps(rest)})"
        return f"c.MustGet({json.dumps(expr.path)})"

    def _expr_validate(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", package_path(ctx, "schemas"))
        return f"schemas.Validate{expr.schema}({self.emit_expression(expr.data, ctx)})"

    def _expr_hash_password(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", BCRYPT_IMPORT)
        cost = expr.rounds if expr.rounds is not None else "bcrypt.DefaultCost"
        return f"bcrypt.GenerateFromPassword([]byte({self.emit_expression(expr.input, ctx)}), {cost})"

    def _expr_verify_password(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", BCRYPT_IMPORT)
        hashed = self.emit_expression(expr.hash, ctx)
        password = self.emit_expression(expr.password, ctx)
        return f"bcrypt.CompareHashAndPassword([]byte({hashed}), []byte({password}))"

    def _secret(self, expr, ctx: EmitContext) -> str:
        if expr.secret is not None:
            return f"[]byte({self.emit_expression(expr.secret, ctx)})"
        ctx.add_import("", "os")
        return '[]byte(os.Getenv("JWT_SECRET"))'

    def _expr_sign_token(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", JWT_IMPORT)
        payload = self.emit_expression(expr.payload, ctx)
        return f"jwt.NewWithClaims(jwt.SigningMethodHS256, jwt.MapClaims({payload})).SignedString({self._secret(expr, ctx)})"

    def _expr_verify_token(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", JWT_IMPORT)
        token = self.emit_expression(expr.token, ctx)
        secret = self._secret(expr, ctx)
        return f"jwt.Parse({token}, func(t *jwt.Token) (interface{{}}, error) {{ return {secret}, nil }})"

    def _expr_native_bridge(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", expr.import_from)
        return f"{expr.method}({self.emit_args(expr.args, ctx)})"

    # Literals

    def array_literal(self, items) -> str:
        return f"[]interface{{}}{{{', '.join(items)}}}"

    def object_literal(self, entries) -> str:
        return "map[string]interface{}{" + ", ".join(f"{key}: {value}" for key, value in entries) + "}"

    def literal(self, value) -> str:
        if isinstance(value, dict):
            return self.object_literal([(json.dumps(str(k)), self.literal(v)) for k, v in value.items()])
        return super().literal(value)

    # Types, schemas, models

    def emit_type(self, type_ir) -> str:
        kind = type_ir.kind
        if kind is TypeKind.ARRAY:
            return f"[]{self.emit_type(type_ir.inner)}"
        if kind is TypeKind.OPTIONAL:
            return f"*{self.emit_type(type_ir.inner)}"
        if kind is TypeKind.REF:
            return type_ir.name
        return _TYPE_NAMES[kind]

    def emit_schema(self, schema, ctx: EmitContext) -> str:
        ctx.add_import("", "encoding/json")
        ctx.add_import("", "github.com/gin-gonic/gin/binding")
        blocks = []
        for name, definition in schema.definitions.items():
            lines = [f"type {name} struct {{"]
            properties = definition.get("properties") if isinstance(definition, dict) else None
            required = set(definition.get("required") or []) if isinstance(definition, dict) else set()
            for field, field_schema in (properties or {}).items():
                go_type = schema_to_go_type(field_schema)
                if field in required:
                    tag = f'json:"{field}" binding:"required"'
                else:
                    tag = f'json:"{field},omitempty"'
                lines.append(f"\t{go_field_name(field)} {go_type} `{tag}`")
            lines.append("}")
            blocks.append("\n".join(lines))
            blocks.append(self._validate_func(name))
        return "\n\n".join(blocks) + "\n"

    def _validate_func(self, name: str) -> str:
        return "\n".join([
            f"func Validate{name}(data interface{{}}) (*{name}, error) {{",
            "\traw, err := json.Marshal(data)",
            "\tif err != nil {",
            "\t\treturn nil, err",
            "\t}",
            f"\tvar value {name}",
            "\tif err := json.Unmarshal(raw, &value); err != nil {",
            "\t\treturn nil, err",
            "\t}",
            "\tif err := binding.Validator.ValidateStruct(&value); err != nil {",
            "\t\treturn nil, err",
            "\t}",
            "\treturn &value, nil",
            "}",
        ])

    def _relation_line(self, name: str, relation: dict) -> str:
        target = relation.get("target", "Unknown")
        rel_type = relation.get("type")
        field = go_field_name(name)
        if rel_type == "belongsTo":
            foreign_key = go_field_name(relation.get("foreignKey") or f"{name}Id")
            return f'\t{field} {target} `gorm:"foreignKey:{foreign_key}" json:"{name},omitempty"`'
        if rel_type == "hasOne":
            return f'\t{field} *{target} `json:"{name},omitempty"`'
        if rel_type == "manyToMany":
            join_table = f"{to_snake_case(name)}_{to_snake_case(target)}"
            return f'\t{field} []{target} `gorm:"many2many:{join_table}" json:"{name},omitempty"`'
        return f'\t{field} []{target} `json:"{name},omitempty"`'

    def emit_model(self, model, ctx: EmitContext) -> str:
        lines = [f"type {model.name} struct {{"]
        for name, column in model.columns:
            go_type = _COLUMN_TYPES.get(column.get("type", "string"), "interface{}")
            if go_type == "time.Time":
                ctx.add_import("", "time")
            elif go_type == "json.RawMessage":
                ctx.add_import("", "encoding/json")
            if column.get("nullable") and not go_type.startswith("json."):
                go_type = f"*{go_type}"
            lines.append(f'\t{go_field_name(name)} {go_type} `gorm:"{gorm_tag(name, column)}" json:"{name}"`')
        for name, relation in model.relations:
            lines.append(self._relation_line(name, relation))
        lines.append("}")
        code = "\n".join(lines)
        if model.table_name:
            code += f"\n\nfunc ({model.name}) TableName() string {{\n\treturn {json.dumps(model.table_name)}\n}}"
        return code + "\n"

    def emit_imports(self, ctx: EmitContext) -> str:
        imports = ctx.take_imports()
        if not imports:
            return ""
        lines: List[str] = ["import ("]
        for imp in imports:
            alias = f"{imp.names} " if imp.names else ""
            lines.append(f'\t{alias}"{imp.from_}"')
        lines.append(")")
        return "\n".join(lines)
