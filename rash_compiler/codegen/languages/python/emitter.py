"""
Python emitter.

Renders handler bodies as async Python for FastAPI, schemas as pydantic
models and persistence as Tortoise ORM calls.
"""

import json
import re
from typing import Dict, List, Tuple

from ....ir.nodes import ExprStmt, ReturnStmt, TypeKind
from ....spec.types import Language
from ...core.context import EmitContext, IndentStyle
from ...core.emitter import LanguageEmitter
from ...core.errors import CodegenError
from ...core.naming import PYTHON_RESERVED, NamingCase, normalize_identifier

_PY_IDENTIFIER = re.compile(r"^[A-Za-z_]\w*$")

_TYPE_NAMES = {
    TypeKind.STRING: "str",
    TypeKind.NUMBER: "float",
    TypeKind.BOOLEAN: "bool",
    TypeKind.NULL: "None",
    TypeKind.VOID: "None",
    TypeKind.ANY: "Any",
    TypeKind.OBJECT: "dict",
}

_SCHEMA_TYPES = {
    "string": "str",
    "number": "float",
    "integer": "int",
    "boolean": "bool",
    "object": "dict",
    "null": "None",
}

# Tortoise field class and default keyword arguments per column type
_TORTOISE_FIELDS = {
    "string": ("CharField", {"max_length": "255"}),
    "varchar": ("CharField", {"max_length": "255"}),
    "text": ("TextField", {}),
    "uuid": ("UUIDField", {}),
    "integer": ("IntField", {}),
    "int": ("IntField", {}),
    "serial": ("IntField", {}),
    "bigint": ("BigIntField", {}),
    "float": ("FloatField", {}),
    "double": ("FloatField", {}),
    "number": ("FloatField", {}),
    "decimal": ("DecimalField", {"max_digits": "18", "decimal_places": "6"}),
    "numeric": ("DecimalField", {"max_digits": "18", "decimal_places": "6"}),
    "boolean": ("BooleanField", {}),
    "bool": ("BooleanField", {}),
    "datetime": ("DatetimeField", {}),
    "timestamp": ("DatetimeField", {}),
    "date": ("DateField", {}),
    "json": ("JSONField", {}),
    "jsonb": ("JSONField", {}),
}

_OPERATORS = {"&&": "and", "||": "or", "===": "==", "!==": "!="}


def schema_to_python_type(schema) -> str:
    """Python annotation for a JSON Schema fragment."""
    if not isinstance(schema, dict):
        return "Any"
    ref = schema.get("$ref") or schema.get("ref")
    if isinstance(ref, str):
        return ref.rsplit("/", 1)[-1]
    if "enum" in schema:
        values = ", ".join(json.dumps(v) for v in schema["enum"])
        return f"Literal[{values}]"
    schema_type = schema.get("type")
    if schema_type == "array":
        return f"list[{schema_to_python_type(schema.get('items'))}]"
    return _SCHEMA_TYPES.get(schema_type, "Any")


def tortoise_column(name: str, column: dict) -> str:
    """Render one model column as a Tortoise field assignment."""
    col_type = column.get("type", "string")
    field_class, kwargs = _TORTOISE_FIELDS.get(col_type, ("JSONField", {}))
    kwargs = dict(kwargs)
    if column.get("primaryKey"):
        kwargs["pk"] = "True"
    if column.get("unique"):
        kwargs["unique"] = "True"
    if column.get("nullable"):
        kwargs["null"] = "True"
    default = column.get("default")
    if default == "now":
        kwargs["auto_now_add"] = "True"
    elif default == "uuid":
        kwargs["default"] = "uuid.uuid4"
    elif default is not None and default not in ("autoincrement", "cuid"):
        kwargs["default"] = python_literal(default)
    args = ", ".join(f"{key}={value}" for key, value in kwargs.items())
    return f"{name} = fields.{field_class}({args})"


def tortoise_relation(name: str, relation: dict) -> str:
    target = relation.get("target", "Unknown")
    rel_type = relation.get("type")
    if rel_type == "belongsTo":
        return f'{name} = fields.ForeignKeyField("models.{target}")'
    if rel_type == "manyToMany":
        return f'{name} = fields.ManyToManyField("models.{target}")'
    if rel_type == "hasOne":
        return f'{name}: fields.BackwardOneToOneRelation["{target}"]'
    return f'{name}: fields.ReverseRelation["{target}"]'


def python_literal(value) -> str:
    """Python source for a JSON value."""
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(python_literal(item) for item in value) + "]"
    if isinstance(value, dict):
        entries = ", ".join(f"{json.dumps(str(k))}: {python_literal(v)}" for k, v in value.items())
        return "{" + entries + "}"
    return json.dumps(str(value))


def _order_fields(order_by) -> List[str]:
    """Tortoise ``order_by`` arguments for a Prisma-style orderBy value."""
    if isinstance(order_by, str):
        return [order_by]
    if isinstance(order_by, dict):
        return [f"-{field}" if direction == "desc" else field for field, direction in order_by.items()]
    if isinstance(order_by, list):
        return [field for entry in order_by for field in _order_fields(entry)]
    return []


class PythonEmitter(LanguageEmitter):
    """Emitter for Python sources."""

    empty_pipe = "None"
    null_literal = "None"
    true_literal = "True"
    false_literal = "False"
    reserved_words = PYTHON_RESERVED

    @property
    def language(self) -> Language:
        return Language.PYTHON

    @property
    def file_extension(self) -> str:
        return "py"

    @property
    def indent_style(self) -> IndentStyle:
        return IndentStyle.spaces(4)

    def identifier(self, name: str) -> str:
        return self.sanitizer.sanitize_name(normalize_identifier(name), NamingCase.SNAKE_CASE)

    def emit_block(self, statements, ctx: EmitContext) -> str:
        statements = list(statements)
        if statements:
            return super().emit_block(statements, ctx)
        ctx.push_indent()
        try:
            return f"{ctx.indent()}pass"
        finally:
            ctx.pop_indent()

    # Statements

    def _stmt_let(self, stmt, ctx: EmitContext) -> str:
        annotation = f": {self.emit_type(stmt.type_)}" if stmt.type_ is not None else ""
        return f"{ctx.indent()}{stmt.name}{annotation} = {self.emit_expression(stmt.value, ctx)}"

    def _stmt_assign(self, stmt, ctx: EmitContext) -> str:
        target = self.emit_expression(stmt.target, ctx)
        return f"{ctx.indent()}{target} = {self.emit_expression(stmt.value, ctx)}"

    def _stmt_return(self, stmt, ctx: EmitContext) -> str:
        if stmt.value is None:
            return f"{ctx.indent()}return"
        return f"{ctx.indent()}return {self.emit_expression(stmt.value, ctx)}"

    def _stmt_if(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        code = f"{ind}if {self.emit_expression(stmt.condition, ctx)}:\n{self.emit_block(stmt.then, ctx)}"
        if stmt.else_ is not None:
            code += f"\n{ind}else:\n{self.emit_block(stmt.else_, ctx)}"
        return code

    def _stmt_for(self, stmt, ctx: EmitContext) -> str:
        iterable = self.emit_expression(stmt.iterable, ctx)
        return f"{ctx.indent()}for {stmt.binding} in {iterable}:\n{self.emit_block(stmt.body, ctx)}"

    def _stmt_while(self, stmt, ctx: EmitContext) -> str:
        condition = self.emit_expression(stmt.condition, ctx)
        return f"{ctx.indent()}while {condition}:\n{self.emit_block(stmt.body, ctx)}"

    def _stmt_match(self, stmt, ctx: EmitContext) -> str:
        lines = [f"{ctx.indent()}match {self.emit_expression(stmt.expr, ctx)}:"]
        ctx.push_indent()
        try:
            for arm in stmt.arms:
                pattern = self.emit_expression(arm.pattern, ctx)
                lines.append(f"{ctx.indent()}case {pattern}:")
                lines.append(self.emit_block(arm.body, ctx))
        finally:
            ctx.pop_indent()
        return "\n".join(lines)

    def _stmt_try_catch(self, stmt, ctx: EmitContext) -> str:
        ind = ctx.indent()
        code = (
            f"{ind}try:\n{self.emit_block(stmt.try_, ctx)}\n"
            f"{ind}except Exception as {stmt.catch.binding}:\n{self.emit_block(stmt.catch.body, ctx)}"
        )
        if stmt.finally_ is not None:
            code += f"\n{ind}finally:\n{self.emit_block(stmt.finally_, ctx)}"
        return code

    def _stmt_throw(self, stmt, ctx: EmitContext) -> str:
        return f"{ctx.indent()}raise Exception({self.emit_expression(stmt.value, ctx)})"

    def _stmt_expression(self, stmt, ctx: EmitContext) -> str:
        return f"{ctx.indent()}{self.emit_expression(stmt.expr, ctx)}"

    # Expressions

    def binary_operator(self, op: str) -> str:
        return _OPERATORS.get(op, op)

    def unary_operator(self, op: str) -> str:
        return "not " if op == "!" else op

    def _expr_object(self, expr, ctx: EmitContext) -> str:
        return self.object_literal(
            [(json.dumps(key), self.emit_expression(value, ctx)) for key, value in expr.properties]
        )

    def _expr_array(self, expr, ctx: EmitContext) -> str:
        return f"[{self.emit_args(expr.elements, ctx)}]"

    def _expr_arrow_fn(self, expr, ctx: EmitContext) -> str:
        params = ", ".join(expr.params)
        prefix = f"lambda {params}:" if params else "lambda:"
        if not expr.body:
            return f"{prefix} None"
        if len(expr.body) == 1:
            stmt = expr.body[0]
            if isinstance(stmt, ReturnStmt):
                value = self.emit_expression(stmt.value, ctx) if stmt.value is not None else "None"
                return f"{prefix} {value}"
            if isinstance(stmt, ExprStmt):
                return f"{prefix} {self.emit_expression(stmt.expr, ctx)}"
        raise CodegenError("python lambdas hold a single expression; arrow function body has statements")

    def _expr_await(self, expr, ctx: EmitContext) -> str:
        inner = self.emit_expression(expr.expr, ctx)
        # ORM calls are rendered already awaited
        if inner.startswith("await "):
            return inner
        return f"await {inner}"

    def _expr_template(self, expr, ctx: EmitContext) -> str:
        texts = []
        values = []
        for part in expr.parts:
            if part.is_text:
                texts.append(part.text)
            else:
                texts.append(None)
                values.append(self.emit_expression(part.expr, ctx))

        # f-strings may not reuse their own quote inside an interpolation
        for quote in ('"', "'"):
            if not any(quote in value for value in values):
                break
        else:
            fmt = "".join("{}" if text is None else text.replace("{", "{{").replace("}", "}}") for text in texts)
            return f"{json.dumps(fmt, ensure_ascii=False)}.format({', '.join(values)})"

        out = []
        remaining = iter(values)
        for text in texts:
            if text is None:
                out.append("{" + next(remaining) + "}")
                continue
            escaped = json.dumps(text, ensure_ascii=False)[1:-1]
            if quote == "'":
                escaped = escaped.replace('\\"', '"').replace("'", "\\'")
            out.append(escaped.replace("{", "{{").replace("}", "}}"))
        return "f" + quote + "".join(out) + quote

    def _filter_args(self, where) -> str:
        if not where:
            return ""
        if isinstance(where, dict) and all(_PY_IDENTIFIER.match(str(key)) for key in where):
            return ", ".join(f"{key}={python_literal(value)}" for key, value in where.items())
        return f"**{python_literal(where)}"

    def _model_import(self, model: str, ctx: EmitContext):
        ctx.add_import(model, f"models.{model.lower()}")

    def _expr_db_query(self, expr, ctx: EmitContext) -> str:
        self._model_import(expr.model, ctx)
        model = expr.model
        where = self._filter_args(expr.where)
        if expr.operation == "findUnique":
            return f"await {model}.get_or_none({where or 'id=id'})"

        chain = f"{model}.filter({where})"
        if expr.include:
            related = expr.include if isinstance(expr.include, (list, tuple)) else list(expr.include)
            chain += f".prefetch_related({', '.join(json.dumps(r) for r in related)})"
        if expr.operation == "findFirst":
            return f"await {chain}.first()"
        if expr.operation == "count":
            return f"await {chain}.count()"
        if expr.operation == "findMany":
            order = _order_fields(expr.order_by)
            if order:
                chain += f".order_by({', '.join(json.dumps(o) for o in order)})"
            if expr.skip is not None:
                chain += f".offset({self.emit_expression(expr.skip, ctx)})"
            if expr.take is not None:
                chain += f".limit({self.emit_expression(expr.take, ctx)})"
            if expr.select:
                return f"await {chain}.values({', '.join(json.dumps(f) for f in expr.select)})"
            return f"await {chain}.all()"
        return f"await {model}.{self.identifier(expr.operation)}()"

    def _expr_db_mutate(self, expr, ctx: EmitContext) -> str:
        self._model_import(expr.model, ctx)
        model = expr.model
        data = self.emit_expression(expr.data, ctx) if expr.data is not None else "data"
        where = self._filter_args(expr.where)
        if expr.operation == "create":
            return f"await {model}.create(**{data})"
        if expr.operation == "update":
            return f"await {model}.filter({where}).update(**{data})"
        if expr.operation == "delete":
            return f"await {model}.filter({where}).delete()"
        if expr.operation == "upsert":
            lookup = f", {where}" if where else ""
            return f"await {model}.update_or_create(defaults={data}{lookup})"
        return f"await {model}.{self.identifier(expr.operation)}(**{data})"

    def _expr_http_respond(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("JSONResponse", "fastapi.responses")
        body = self.emit_expression(expr.body, ctx) if expr.body is not None else "None"
        return f"JSONResponse(status_code={expr.status}, content={body})"

    def _expr_ctx_get(self, expr, ctx: EmitContext) -> str:
        section, _, rest = expr.path.partition(".")
        if section == "params" and rest:
            return f"request.path_params[{json.dumps(rest)}]"
        if section == "query" and rest:
            return f"request.query_params.get({json.dumps(rest)})"
        if section == "body":
            return f"(await request.json())[{json.dumps(rest)}]" if rest else "await request.json()"
        if section == "headers" and rest:
            return f"request.headers.get({json.dumps(rest)})"
        return f"request.{expr.path}"

    def _expr_validate(self, expr, ctx: EmitContext) -> str:
        ctx.add_import(expr.schema, f"schemas.{expr.schema.lower()}")
        return f"{expr.schema}.model_validate({self.emit_expression(expr.data, ctx)})"

    def _expr_hash_password(self, expr, ctx: EmitContext) -> str:
        value = self.emit_expression(expr.input, ctx)
        if expr.algorithm == "bcrypt":
            ctx.add_import("", "bcrypt")
            salt = f"bcrypt.gensalt({expr.rounds})" if expr.rounds is not None else "bcrypt.gensalt()"
            return f"bcrypt.hashpw({value}.encode(), {salt})"
        return f"hash_password({value}, {json.dumps(expr.algorithm)})"

    def _expr_verify_password(self, expr, ctx: EmitContext) -> str:
        password = self.emit_expression(expr.password, ctx)
        hashed = self.emit_expression(expr.hash, ctx)
        if expr.algorithm == "bcrypt":
            ctx.add_import("", "bcrypt")
            return f"bcrypt.checkpw({password}.encode(), {hashed})"
        return f"verify_password({password}, {hashed}, {json.dumps(expr.algorithm)})"

    def _secret(self, expr, ctx: EmitContext) -> str:
        if expr.secret is not None:
            return self.emit_expression(expr.secret, ctx)
        ctx.add_import("", "os")
        return 'os.environ["JWT_SECRET"]'

    def _expr_sign_token(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "jwt")
        payload = self.emit_expression(expr.payload, ctx)
        return f'jwt.encode({payload}, {self._secret(expr, ctx)}, algorithm="HS256")'

    def _expr_verify_token(self, expr, ctx: EmitContext) -> str:
        ctx.add_import("", "jwt")
        token = self.emit_expression(expr.token, ctx)
        return f'jwt.decode({token}, {self._secret(expr, ctx)}, algorithms=["HS256"])'

    # Literals

    def literal(self, value) -> str:
        return python_literal(value)

    def object_literal(self, entries) -> str:
        return "{" + ", ".join(f"{key}: {value}" for key, value in entries) + "}"

    # Types, schemas, models

    def emit_type(self, type_ir) -> str:
        kind = type_ir.kind
        if kind is TypeKind.ARRAY:
            return f"list[{self.emit_type(type_ir.inner)}]"
        if kind is TypeKind.OPTIONAL:
            return f"Optional[{self.emit_type(type_ir.inner)}]"
        if kind is TypeKind.REF:
            return type_ir.name
        if kind is TypeKind.UNION:
            return f"Union[{', '.join(self.emit_type(v) for v in type_ir.variants)}]"
        return _TYPE_NAMES[kind]

    def emit_schema(self, schema, ctx: EmitContext) -> str:
        ctx.add_import("BaseModel", "pydantic")
        ctx.add_import("Any, Literal, Optional", "typing")
        blocks = []
        for name, definition in schema.definitions.items():
            lines = [f"class {name}(BaseModel):"]
            properties = definition.get("properties") if isinstance(definition, dict) else None
            required = set(definition.get("required") or []) if isinstance(definition, dict) else set()
            for field, field_schema in (properties or {}).items():
                py_type = schema_to_python_type(field_schema)
                if field in required:
                    lines.append(f"    {field}: {py_type}")
                else:
                    lines.append(f"    {field}: Optional[{py_type}] = None")
            if len(lines) == 1:
                lines.append("    pass")
            blocks.append("\n".join(lines))
        return "\n\n\n".join(blocks) + "\n"

    def emit_model(self, model, ctx: EmitContext) -> str:
        ctx.add_import("fields", "tortoise")
        ctx.add_import("Model", "tortoise.models")
        lines = [f"class {model.name}(Model):"]
        for name, column in model.columns:
            if column.get("default") == "uuid":
                ctx.add_import("", "uuid")
            lines.append(f"    {tortoise_column(name, column)}")
        for name, relation in model.relations:
            lines.append(f"    {tortoise_relation(name, relation)}")

        meta = []
        if model.table_name:
            meta.append(f"        table = {json.dumps(model.table_name)}")
        unique = [tuple(i.get("fields", [])) for i in model.indexes if i.get("unique")]
        plain = [tuple(i.get("fields", [])) for i in model.indexes if not i.get("unique")]
        if unique:
            meta.append(f"        unique_together = {unique!r}")
        if plain:
            meta.append(f"        indexes = {plain!r}")
        if meta:
            lines.append("")
            lines.append("    class Meta:")
            lines.extend(meta)
        if len(lines) == 1:
            lines.append("    pass")
        return "\n".join(lines) + "\n"

    def emit_imports(self, ctx: EmitContext) -> str:
        # one line per module in first-seen order; names from the same module are merged
        modules: Dict[Tuple[bool, str], List[str]] = {}
        for imp in ctx.take_imports():
            names = modules.setdefault((bool(imp.names), imp.from_), [])
            for name in imp.names.split(","):
                name = name.strip()
                if name and name not in names:
                    names.append(name)
        lines = []
        for (is_from, module), names in modules.items():
            if is_from:
                lines.append(f"from {module} import {', '.join(names)}")
            else:
                lines.append(f"import {module}")
        return "\n".join(lines)
