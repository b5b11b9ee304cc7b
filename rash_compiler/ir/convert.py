"""
Spec -> IR conversion.

Conversion is all-or-nothing: the first handler-body node that cannot be
lowered raises :class:`ConversionError` and no partial IR is returned.
"""

from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..logging_config import get_logger
from ..spec.model import (
    EndpointSpec,
    HandlerSpec,
    MiddlewareSpec,
    ModelSpec,
    ProjectModel,
    RouteSpec,
    SchemaSpec,
)
from ..spec.types import Language, Tier
from . import nodes as n
from .paths import canonicalize_path
from .types import (
    EndpointIR,
    HandlerIR,
    MiddlewareIR,
    ModelIR,
    ParamIR,
    ProjectIR,
    RequestIR,
    ResponseIR,
    RouteIR,
    SchemaIR,
)

logger = get_logger(__name__)


class ConversionError(Exception):
    """Raised when a handler body node cannot be lowered to IR."""

    def __init__(self, message: str, handler: Optional[str] = None, path: str = "$"):
        location = f"handler '{handler}' at {path}" if handler else path
        super().__init__(f"{location}: {message}")
        self.message = message
        self.handler = handler
        self.path = path


# Types

_SIMPLE_TYPES: Dict[str, Callable[[], n.TypeIR]] = {}
for _names, _factory in (
    (("string", "String"), n.TypeIR.string),
    (("number", "Number", "int", "float", "i32", "i64", "f32", "f64"), n.TypeIR.number),
    (("boolean", "Boolean", "bool"), n.TypeIR.boolean),
    (("null", "None", "nil"), n.TypeIR.null),
    (("void", "unit", "()"), n.TypeIR.void),
    (("any", "Any"), n.TypeIR.any),
):
    for _name in _names:
        _SIMPLE_TYPES[_name] = _factory


def convert_type_string(type_name: str) -> n.TypeIR:
    """
    Map a type name as written in a spec to :class:`TypeIR`.

    ``T?`` becomes Optional, ``T[]`` becomes Array and unknown names are
    references to schemas or models.
    """
    type_name = type_name.strip()
    if type_name.endswith("?") and len(type_name) > 1:
        return n.TypeIR.optional(convert_type_string(type_name[:-1]))
    if type_name.endswith("[]") and len(type_name) > 2:
        return n.TypeIR.array(convert_type_string(type_name[:-2]))
    factory = _SIMPLE_TYPES.get(type_name)
    if factory is not None:
        return factory()
    return n.TypeIR.ref(type_name)


def convert_type_ref(type_ref: Any) -> n.TypeIR:
    """Convert a ``TypeRef``: a bare type name, ``{"ref": ...}`` or ``{"type": ...}``."""
    if isinstance(type_ref, str):
        return convert_type_string(type_ref)
    if isinstance(type_ref, dict):
        if isinstance(type_ref.get("ref"), str):
            return n.TypeIR.ref(type_ref["ref"])
        if isinstance(type_ref.get("type"), str):
            return convert_type_string(type_ref["type"])
    return n.TypeIR.any()


# Handler bodies

_STATEMENT_TYPES = frozenset(
    {
        "LetStatement",
        "AssignStatement",
        "ReturnStatement",
        "IfStatement",
        "ForStatement",
        "WhileStatement",
        "MatchStatement",
        "TryCatchStatement",
        "ThrowStatement",
        "ExpressionStatement",
    }
)

_DOMAIN_TYPES = frozenset(
    {
        "DbQuery",
        "DbMutate",
        "HttpRespond",
        "CtxGet",
        "Validate",
        "HashPassword",
        "VerifyPassword",
        "SignToken",
        "VerifyToken",
    }
)

_UTILITY_TYPES = frozenset({"SendEmail", "EmitEvent", "LogMessage"})


def intrinsic_tier(node_type: str) -> Tier:
    """Minimum tier a node type needs regardless of what the spec declares."""
    if node_type == "NativeBridge":
        return Tier.BRIDGE
    if node_type in _UTILITY_TYPES:
        return Tier.UTILITY
    if node_type in _DOMAIN_TYPES:
        return Tier.DOMAIN
    return Tier.UNIVERSAL


class _BodyConverter:
    """Lowers one handler's body, tracking the highest tier and bridge languages seen."""

    def __init__(self, handler_name: str):
        self.handler_name = handler_name
        self.max_tier = Tier.UNIVERSAL
        self.bridge_languages: Set[Language] = set()

    # helpers

    def fail(self, message: str, path: str):
        raise ConversionError(message, handler=self.handler_name, path=path)

    def node_type(self, node: Any, path: str) -> str:
        if not isinstance(node, dict):
            self.fail(f"expected an AST node object, got {type(node).__name__}", path)
        node_type = node.get("type")
        if not isinstance(node_type, str):
            self.fail("AST node has no 'type'", path)
        return node_type

    def tier_of(self, node: Dict[str, Any], node_type: str, path: str) -> Tier:
        declared = node.get("tier", 0)
        try:
            declared = Tier(declared)
        except ValueError:
            self.fail(f"invalid tier {declared!r}", f"{path}.tier")
        tier = max(declared, intrinsic_tier(node_type))
        if tier > self.max_tier:
            self.max_tier = tier
        return tier

    def field(self, node: Dict[str, Any], key: str, path: str) -> Any:
        if node.get(key) is None:
            owner = node.get("type", "node")
            self.fail(f"{owner} is missing required field '{key}'", f"{path}.{key}")
        return node[key]

    def string_field(self, node: Dict[str, Any], key: str, path: str) -> str:
        value = self.field(node, key, path)
        if not isinstance(value, str):
            self.fail(f"field '{key}' must be a string", f"{path}.{key}")
        return value

    def list_field(self, node: Dict[str, Any], key: str, path: str, required: bool = True) -> List[Any]:
        value = self.field(node, key, path) if required else node.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            self.fail(f"field '{key}' must be an array", f"{path}.{key}")
        return value

    def block(self, items: List[Any], path: str) -> Tuple[n.Statement, ...]:
        return tuple(self.statement(item, f"{path}[{i}]") for i, item in enumerate(items))

    def sub_expr(self, node: Dict[str, Any], key: str, path: str) -> n.Expression:
        return self.expression(self.field(node, key, path), f"{path}.{key}")

    def opt_expr(self, node: Dict[str, Any], key: str, path: str) -> Optional[n.Expression]:
        if node.get(key) is None:
            return None
        return self.expression(node[key], f"{path}.{key}")

    def expr_list(self, items: List[Any], path: str) -> Tuple[n.Expression, ...]:
        return tuple(self.expression(item, f"{path}[{i}]") for i, item in enumerate(items))

    def expr_map(self, mapping: Any, path: str) -> Tuple[Tuple[str, n.Expression], ...]:
        if not isinstance(mapping, dict):
            self.fail("expected an object of expressions", path)
        return tuple(
            (key, self.expression(value, f"{path}.{key}")) for key, value in mapping.items()
        )

    # statements

    def statement(self, node: Any, path: str) -> n.Statement:
        node_type = self.node_type(node, path)
        if node_type not in _STATEMENT_TYPES:
            expr = self.expression(node, path)
            return n.ExprStmt(expr=expr, tier=expr.tier)

        tier = self.tier_of(node, node_type, path)

        if node_type == "LetStatement":
            value_type = node.get("valueType")
            return n.LetStmt(
                name=self.string_field(node, "name", path),
                value=self.sub_expr(node, "value", path),
                type_=convert_type_ref(value_type) if value_type is not None else None,
                tier=tier,
            )
        if node_type == "AssignStatement":
            return n.AssignStmt(
                target=self.sub_expr(node, "target", path),
                value=self.sub_expr(node, "value", path),
                tier=tier,
            )
        if node_type == "ReturnStatement":
            return n.ReturnStmt(value=self.opt_expr(node, "value", path), tier=tier)
        if node_type == "IfStatement":
            else_items = node.get("else")
            return n.IfStmt(
                condition=self.sub_expr(node, "condition", path),
                then=self.block(self.list_field(node, "then", path), f"{path}.then"),
                else_=(
                    self.block(self.list_field(node, "else", path), f"{path}.else")
                    if else_items is not None
                    else None
                ),
                tier=tier,
            )
        if node_type == "ForStatement":
            return n.ForStmt(
                binding=self.string_field(node, "binding", path),
                iterable=self.sub_expr(node, "iterable", path),
                body=self.block(self.list_field(node, "body", path), f"{path}.body"),
                tier=tier,
            )
        if node_type == "WhileStatement":
            return n.WhileStmt(
                condition=self.sub_expr(node, "condition", path),
                body=self.block(self.list_field(node, "body", path), f"{path}.body"),
                tier=tier,
            )
        if node_type == "MatchStatement":
            arms = []
            for i, arm in enumerate(self.list_field(node, "arms", path)):
                arm_path = f"{path}.arms[{i}]"
                if not isinstance(arm, dict):
                    self.fail("match arm must be an object", arm_path)
                arms.append(
                    n.MatchArm(
                        pattern=self.expression(arm.get("pattern"), f"{arm_path}.pattern"),
                        body=self.block(arm.get("body") or [], f"{arm_path}.body"),
                    )
                )
            return n.MatchStmt(
                expr=self.sub_expr(node, "expr", path), arms=tuple(arms), tier=tier
            )
        if node_type == "TryCatchStatement":
            catch = self.field(node, "catch", path)
            if not isinstance(catch, dict):
                self.fail("catch clause must be an object", f"{path}.catch")
            finally_items = node.get("finally")
            return n.TryCatchStmt(
                try_=self.block(self.list_field(node, "try", path), f"{path}.try"),
                catch=n.CatchClause(
                    binding=self.string_field(catch, "binding", f"{path}.catch"),
                    body=self.block(catch.get("body") or [], f"{path}.catch.body"),
                ),
                finally_=(
                    self.block(self.list_field(node, "finally", path), f"{path}.finally")
                    if finally_items is not None
                    else None
                ),
                tier=tier,
            )
        if node_type == "ThrowStatement":
            return n.ThrowStmt(value=self.sub_expr(node, "value", path), tier=tier)
        # ExpressionStatement
        return n.ExprStmt(expr=self.sub_expr(node, "expr", path), tier=tier)

    # expressions

    def expression(self, node: Any, path: str) -> n.Expression:
        node_type = self.node_type(node, path)
        if node_type in _STATEMENT_TYPES:
            self.fail(f"statement node {node_type} cannot be used as an expression", path)
        handler = getattr(self, f"_expr_{node_type}", None)
        if handler is None:
            self.fail(f"unknown AST node type '{node_type}'", f"{path}.type")
        tier = self.tier_of(node, node_type, path)
        return handler(node, path, tier)

    def _expr_Literal(self, node, path, tier):
        return n.Literal(value=node.get("value"), tier=tier)

    def _expr_Identifier(self, node, path, tier):
        return n.Identifier(name=self.string_field(node, "name", path), tier=tier)

    def _expr_BinaryExpr(self, node, path, tier):
        return n.Binary(
            op=self.string_field(node, "operator", path),
            left=self.sub_expr(node, "left", path),
            right=self.sub_expr(node, "right", path),
            tier=tier,
        )

    def _expr_UnaryExpr(self, node, path, tier):
        return n.Unary(
            op=self.string_field(node, "operator", path),
            operand=self.sub_expr(node, "operand", path),
            tier=tier,
        )

    def _expr_CallExpr(self, node, path, tier):
        return n.Call(
            callee=self.sub_expr(node, "callee", path),
            args=self.expr_list(self.list_field(node, "args", path, required=False), f"{path}.args"),
            tier=tier,
        )

    def _expr_MemberExpr(self, node, path, tier):
        return n.Member(
            object=self.sub_expr(node, "object", path),
            property=self.string_field(node, "property", path),
            tier=tier,
        )

    def _expr_IndexExpr(self, node, path, tier):
        return n.Index(
            object=self.sub_expr(node, "object", path),
            index=self.sub_expr(node, "index", path),
            tier=tier,
        )

    def _expr_ObjectExpr(self, node, path, tier):
        return n.ObjectExpr(
            properties=self.expr_map(node.get("properties") or {}, f"{path}.properties"),
            tier=tier,
        )

    def _expr_ArrayExpr(self, node, path, tier):
        return n.ArrayExpr(
            elements=self.expr_list(
                self.list_field(node, "elements", path, required=False), f"{path}.elements"
            ),
            tier=tier,
        )

    def _expr_ArrowFn(self, node, path, tier):
        return n.ArrowFn(
            params=tuple(str(p) for p in self.list_field(node, "params", path, required=False)),
            body=self.block(self.list_field(node, "body", path), f"{path}.body"),
            tier=tier,
        )

    def _expr_AwaitExpr(self, node, path, tier):
        return n.Await(expr=self.sub_expr(node, "expr", path), tier=tier)

    def _expr_PipeExpr(self, node, path, tier):
        return n.Pipe(
            stages=self.expr_list(self.list_field(node, "stages", path), f"{path}.stages"),
            tier=tier,
        )

    def _expr_TemplateString(self, node, path, tier):
        parts = []
        for i, part in enumerate(self.list_field(node, "parts", path)):
            part_path = f"{path}.parts[{i}]"
            if not isinstance(part, dict):
                self.fail("template part must be an object", part_path)
            part_kind = part.get("kind")
            if part_kind == "text":
                parts.append(n.TemplatePart(text=str(part.get("value", ""))))
            elif part_kind == "expr":
                parts.append(
                    n.TemplatePart(expr=self.expression(part.get("value"), f"{part_path}.value"))
                )
            else:
                self.fail(f"unknown template part kind {part_kind!r}", f"{part_path}.kind")
        return n.Template(parts=tuple(parts), tier=tier)

    def _expr_DbQuery(self, node, path, tier):
        select = node.get("select")
        return n.DbQuery(
            model=self.string_field(node, "model", path),
            operation=self.string_field(node, "operation", path),
            where=node.get("where"),
            order_by=node.get("orderBy"),
            skip=self.opt_expr(node, "skip", path),
            take=self.opt_expr(node, "take", path),
            select=tuple(select) if select is not None else None,
            include=node.get("include"),
            tier=tier,
        )

    def _expr_DbMutate(self, node, path, tier):
        return n.DbMutate(
            model=self.string_field(node, "model", path),
            operation=self.string_field(node, "operation", path),
            data=self.opt_expr(node, "data", path),
            where=node.get("where"),
            tier=tier,
        )

    def _expr_HttpRespond(self, node, path, tier):
        status = self.field(node, "status", path)
        if isinstance(status, bool) or not isinstance(status, int):
            self.fail("status must be an integer", f"{path}.status")
        headers = node.get("headers")
        return n.HttpRespond(
            status=status,
            headers=self.expr_map(headers, f"{path}.headers") if headers is not None else None,
            body=self.opt_expr(node, "body", path),
            tier=tier,
        )

    def _expr_CtxGet(self, node, path, tier):
        return n.CtxGet(path=self.string_field(node, "path", path), tier=tier)

    def _expr_Validate(self, node, path, tier):
        return n.Validate(
            schema=self.string_field(node, "schema", path),
            data=self.sub_expr(node, "data", path),
            tier=tier,
        )

    def _expr_HashPassword(self, node, path, tier):
        return n.HashPassword(
            input=self.sub_expr(node, "input", path),
            algorithm=str(node.get("algorithm") or "bcrypt"),
            rounds=node.get("rounds"),
            tier=tier,
        )

    def _expr_VerifyPassword(self, node, path, tier):
        return n.VerifyPassword(
            password=self.sub_expr(node, "password", path),
            hash=self.sub_expr(node, "hash", path),
            algorithm=str(node.get("algorithm") or "bcrypt"),
            tier=tier,
        )

    def _expr_SignToken(self, node, path, tier):
        return n.SignToken(
            payload=self.sub_expr(node, "payload", path),
            secret=self.opt_expr(node, "secret", path),
            options=node.get("options"),
            tier=tier,
        )

    def _expr_VerifyToken(self, node, path, tier):
        return n.VerifyToken(
            token=self.sub_expr(node, "token", path),
            secret=self.opt_expr(node, "secret", path),
            tier=tier,
        )

    # Utility sugar lowers to plain calls

    def _expr_SendEmail(self, node, path, tier):
        return n.Call(
            callee=n.Identifier(name="sendEmail"),
            args=(
                self.sub_expr(node, "to", path),
                self.sub_expr(node, "subject", path),
                self.sub_expr(node, "body", path),
            ),
            tier=tier,
        )

    def _expr_EmitEvent(self, node, path, tier):
        args = [n.Literal(value=self.string_field(node, "event", path))]
        data = self.opt_expr(node, "data", path)
        if data is not None:
            args.append(data)
        return n.Call(callee=n.Identifier(name="emitEvent"), args=tuple(args), tier=tier)

    def _expr_LogMessage(self, node, path, tier):
        return n.Call(
            callee=n.Member(
                object=n.Identifier(name="logger"),
                property=self.string_field(node, "level", path),
            ),
            args=(self.sub_expr(node, "message", path),),
            tier=tier,
        )

    def _expr_NativeBridge(self, node, path, tier):
        try:
            language = Language(self.field(node, "language", path))
        except ValueError:
            self.fail(f"unknown bridge language {node['language']!r}", f"{path}.language")
        import_spec = self.field(node, "import", path)
        call = self.field(node, "call", path)
        if not isinstance(import_spec, dict) or not isinstance(call, dict):
            self.fail("bridge 'import' and 'call' must be objects", path)
        self.bridge_languages.add(language)

        fallback = None
        description = None
        fallback_spec = node.get("fallback")
        if fallback_spec is not None:
            if not isinstance(fallback_spec, dict):
                self.fail("bridge fallback must be an object", f"{path}.fallback")
            fallback = self.expression(fallback_spec.get("node"), f"{path}.fallback.node")
            description = fallback_spec.get("description")

        return n.NativeBridge(
            language=language,
            package=self.string_field(node, "package", path),
            import_name=self.string_field(import_spec, "name", f"{path}.import"),
            import_from=self.string_field(import_spec, "from", f"{path}.import"),
            method=self.string_field(call, "method", f"{path}.call"),
            args=self.expr_list(call.get("args") or [], f"{path}.call.args"),
            return_type=node.get("returnType"),
            fallback=fallback,
            fallback_description=description,
            tier=tier,
        )


# Project elements


def _convert_endpoint(endpoint: EndpointSpec, route_path: str, method: str) -> EndpointIR:
    handler_ref = endpoint.handler.ref if endpoint.handler is not None else ""

    request = RequestIR()
    if endpoint.request is not None:
        body = endpoint.request.body
        request = RequestIR(
            query_schema=endpoint.request.query.ref if endpoint.request.query else None,
            body_schema=body.ref.ref if body is not None else None,
            content_type=body.content_type if body is not None else None,
        )

    responses = []
    for status, response in endpoint.response.items():
        if not str(status).isdigit():
            logger.warning(
                "Skipping non-numeric response status '%s' on %s %s", status, method, route_path
            )
            continue
        responses.append(
            (
                int(status),
                ResponseIR(
                    description=response.description,
                    schema_ref=response.schema.ref if response.schema else None,
                ),
            )
        )

    return EndpointIR(
        operation_id=endpoint.operation_id or handler_ref,
        handler_ref=handler_ref,
        summary=endpoint.summary,
        middleware=tuple(ref.ref for ref in endpoint.middleware),
        request=request,
        response=tuple(responses),
    )


def convert_route(route: RouteSpec) -> RouteIR:
    path = canonicalize_path(route.path)
    return RouteIR(
        path=path,
        methods=tuple(
            (method, _convert_endpoint(endpoint, path, method.value))
            for method, endpoint in route.methods.items()
        ),
        tags=tuple(route.tags),
    )


def convert_schema(schema: SchemaSpec) -> SchemaIR:
    return SchemaIR(name=schema.name, definitions=dict(schema.definitions))


def convert_model(model: ModelSpec) -> ModelIR:
    return ModelIR(
        name=model.name,
        table_name=model.table_name or f"{model.name.lower()}s",
        columns=tuple((name, dict(column)) for name, column in model.columns.items()),
        relations=tuple(
            (name, relation.to_dict()) for name, relation in model.relations.items()
        ),
        indexes=tuple(dict(index) for index in model.indexes),
    )


def convert_middleware(middleware: MiddlewareSpec) -> MiddlewareIR:
    return MiddlewareIR(
        name=middleware.name,
        middleware_type=middleware.type,
        handler_ref=middleware.handler.ref if middleware.handler else None,
        compose=tuple(ref.ref for ref in middleware.compose),
    )


def convert_handler(handler: HandlerSpec) -> HandlerIR:
    """
    Lower one handler.

    Raises:
        ConversionError: On the first node that cannot be lowered
    """
    converter = _BodyConverter(handler.name)
    body = converter.block(handler.body, "$.body")

    params = tuple(
        ParamIR(name=name, type_ir=convert_type_ref(param.get("type", "any")))
        for name, param in handler.params.items()
    )
    return_type = (
        convert_type_ref(handler.return_type)
        if handler.return_type is not None
        else n.TypeIR.void()
    )

    max_tier = converter.max_tier
    declared = handler.meta.max_tier if handler.meta is not None else None
    if declared is not None and declared >= max_tier:
        max_tier = Tier(min(declared, Tier.BRIDGE))

    return HandlerIR(
        name=handler.name,
        is_async=handler.is_async,
        params=params,
        return_type=return_type,
        body=body,
        max_tier=max_tier,
        bridge_languages=tuple(
            sorted(converter.bridge_languages, key=lambda language: language.value)
        ),
    )


def convert_project(project: ProjectModel) -> ProjectIR:
    """
    Convert a loaded project into IR.

    Args:
        project: Loaded project model (validation is the caller's concern)

    Returns:
        Immutable ProjectIR

    Raises:
        ConversionError: If any handler body contains a node that cannot be lowered
    """
    handlers = []
    for file, handler in project.handlers:
        try:
            handlers.append(convert_handler(handler))
        except ConversionError as e:
            logger.error("IR conversion failed in %s: %s", file, e)
            raise

    project_ir = ProjectIR(
        config=project.config.to_dict(),
        routes=tuple(convert_route(route) for _, route in project.routes),
        schemas=tuple(convert_schema(schema) for _, schema in project.schemas),
        models=tuple(convert_model(model) for _, model in project.models),
        middleware=tuple(convert_middleware(mw) for _, mw in project.middleware),
        handlers=tuple(handlers),
    )
    logger.info(
        "Converted project to IR: %d routes, %d handlers",
        len(project_ir.routes),
        len(project_ir.handlers),
    )
    return project_ir
