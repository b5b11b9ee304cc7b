"""
Handler-body IR nodes.

Every node is an immutable dataclass with a ``kind`` tag (used by the
emitters to dispatch) and the ``tier`` it requires from a backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Tuple

from ..spec.types import Language, Tier


class TypeKind(Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    VOID = "void"
    ANY = "any"
    ARRAY = "array"
    OPTIONAL = "optional"
    REF = "ref"
    OBJECT = "object"
    UNION = "union"


@dataclass(frozen=True)
class TypeIR:
    """A language-neutral type."""

    kind: TypeKind
    inner: Optional[TypeIR] = None
    name: Optional[str] = None
    fields: Tuple[Tuple[str, TypeIR], ...] = ()
    variants: Tuple[TypeIR, ...] = ()

    @classmethod
    def string(cls) -> TypeIR:
        return cls(TypeKind.STRING)

    @classmethod
    def number(cls) -> TypeIR:
        return cls(TypeKind.NUMBER)

    @classmethod
    def boolean(cls) -> TypeIR:
        return cls(TypeKind.BOOLEAN)

    @classmethod
    def null(cls) -> TypeIR:
        return cls(TypeKind.NULL)

    @classmethod
    def void(cls) -> TypeIR:
        return cls(TypeKind.VOID)

    @classmethod
    def any(cls) -> TypeIR:
        return cls(TypeKind.ANY)

    @classmethod
    def array(cls, inner: TypeIR) -> TypeIR:
        return cls(TypeKind.ARRAY, inner=inner)

    @classmethod
    def optional(cls, inner: TypeIR) -> TypeIR:
        return cls(TypeKind.OPTIONAL, inner=inner)

    @classmethod
    def ref(cls, name: str) -> TypeIR:
        return cls(TypeKind.REF, name=name)

    @classmethod
    def object(cls, fields: Tuple[Tuple[str, TypeIR], ...]) -> TypeIR:
        return cls(TypeKind.OBJECT, fields=tuple(fields))

    @classmethod
    def union(cls, variants: Tuple[TypeIR, ...]) -> TypeIR:
        return cls(TypeKind.UNION, variants=tuple(variants))


@dataclass(frozen=True, kw_only=True)
class Node:
    kind: ClassVar[str] = ""
    tier: Tier = Tier.UNIVERSAL


class Statement(Node):
    pass


class Expression(Node):
    is_domain: ClassVar[bool] = False


# Statements


@dataclass(frozen=True, kw_only=True)
class LetStmt(Statement):
    kind: ClassVar[str] = "let"
    name: str
    value: Expression
    type_: Optional[TypeIR] = None


@dataclass(frozen=True, kw_only=True)
class AssignStmt(Statement):
    kind: ClassVar[str] = "assign"
    target: Expression
    value: Expression


@dataclass(frozen=True, kw_only=True)
class ReturnStmt(Statement):
    kind: ClassVar[str] = "return"
    value: Optional[Expression] = None


@dataclass(frozen=True, kw_only=True)
class IfStmt(Statement):
    kind: ClassVar[str] = "if"
    condition: Expression
    then: Tuple[Statement, ...]
    else_: Optional[Tuple[Statement, ...]] = None


@dataclass(frozen=True, kw_only=True)
class ForStmt(Statement):
    kind: ClassVar[str] = "for"
    binding: str
    iterable: Expression
    body: Tuple[Statement, ...]


@dataclass(frozen=True, kw_only=True)
class WhileStmt(Statement):
    kind: ClassVar[str] = "while"
    condition: Expression
    body: Tuple[Statement, ...]


@dataclass(frozen=True)
class MatchArm:
    pattern: Expression
    body: Tuple[Statement, ...]


@dataclass(frozen=True, kw_only=True)
class MatchStmt(Statement):
    kind: ClassVar[str] = "match"
    expr: Expression
    arms: Tuple[MatchArm, ...]


@dataclass(frozen=True)
class CatchClause:
    binding: str
    body: Tuple[Statement, ...]


@dataclass(frozen=True, kw_only=True)
class TryCatchStmt(Statement):
    kind: ClassVar[str] = "try_catch"
    try_: Tuple[Statement, ...]
    catch: CatchClause
    finally_: Optional[Tuple[Statement, ...]] = None


@dataclass(frozen=True, kw_only=True)
class ThrowStmt(Statement):
    kind: ClassVar[str] = "throw"
    value: Expression


@dataclass(frozen=True, kw_only=True)
class ExprStmt(Statement):
    kind: ClassVar[str] = "expression"
    expr: Expression


# Expressions


@dataclass(frozen=True, kw_only=True)
class Literal(Expression):
    kind: ClassVar[str] = "literal"
    value: Any = None


@dataclass(frozen=True, kw_only=True)
class Identifier(Expression):
    kind: ClassVar[str] = "identifier"
    name: str


@dataclass(frozen=True, kw_only=True)
class Binary(Expression):
    kind: ClassVar[str] = "binary"
    op: str
    left: Expression
    right: Expression


@dataclass(frozen=True, kw_only=True)
class Unary(Expression):
    kind: ClassVar[str] = "unary"
    op: str
    operand: Expression


@dataclass(frozen=True, kw_only=True)
class Call(Expression):
    kind: ClassVar[str] = "call"
    callee: Expression
    args: Tuple[Expression, ...] = ()


@dataclass(frozen=True, kw_only=True)
class Member(Expression):
    kind: ClassVar[str] = "member"
    object: Expression
    property: str


@dataclass(frozen=True, kw_only=True)
class Index(Expression):
    kind: ClassVar[str] = "index"
    object: Expression
    index: Expression


@dataclass(frozen=True, kw_only=True)
class ObjectExpr(Expression):
    kind: ClassVar[str] = "object"
    properties: Tuple[Tuple[str, Expression], ...] = ()


@dataclass(frozen=True, kw_only=True)
class ArrayExpr(Expression):
    kind: ClassVar[str] = "array"
    elements: Tuple[Expression, ...] = ()


@dataclass(frozen=True, kw_only=True)
class ArrowFn(Expression):
    kind: ClassVar[str] = "arrow_fn"
    params: Tuple[str, ...] = ()
    body: Tuple[Statement, ...] = ()


@dataclass(frozen=True, kw_only=True)
class Await(Expression):
    kind: ClassVar[str] = "await"
    expr: Expression


@dataclass(frozen=True, kw_only=True)
class Pipe(Expression):
    kind: ClassVar[str] = "pipe"
    stages: Tuple[Expression, ...] = ()


@dataclass(frozen=True)
class TemplatePart:
    """Either literal ``text`` or an interpolated ``expr``."""

    text: Optional[str] = None
    expr: Optional[Expression] = None

    @property
    def is_text(self) -> bool:
        return self.expr is None


@dataclass(frozen=True, kw_only=True)
class Template(Expression):
    kind: ClassVar[str] = "template"
    parts: Tuple[TemplatePart, ...] = ()


# Domain expressions


@dataclass(frozen=True, kw_only=True)
class DbQuery(Expression):
    kind: ClassVar[str] = "db_query"
    is_domain: ClassVar[bool] = True
    model: str
    operation: str
    where: Optional[Any] = None
    order_by: Optional[Any] = None
    skip: Optional[Expression] = None
    take: Optional[Expression] = None
    select: Optional[Tuple[str, ...]] = None
    include: Optional[Any] = None


@dataclass(frozen=True, kw_only=True)
class DbMutate(Expression):
    kind: ClassVar[str] = "db_mutate"
    is_domain: ClassVar[bool] = True
    model: str
    operation: str
    data: Optional[Expression] = None
    where: Optional[Any] = None


@dataclass(frozen=True, kw_only=True)
class HttpRespond(Expression):
    kind: ClassVar[str] = "http_respond"
    is_domain: ClassVar[bool] = True
    status: int
    headers: Optional[Tuple[Tuple[str, Expression], ...]] = None
    body: Optional[Expression] = None


@dataclass(frozen=True, kw_only=True)
class CtxGet(Expression):
    kind: ClassVar[str] = "ctx_get"
    is_domain: ClassVar[bool] = True
    path: str


@dataclass(frozen=True, kw_only=True)
class Validate(Expression):
    kind: ClassVar[str] = "validate"
    is_domain: ClassVar[bool] = True
    schema: str
    data: Expression


@dataclass(frozen=True, kw_only=True)
class HashPassword(Expression):
    kind: ClassVar[str] = "hash_password"
    is_domain: ClassVar[bool] = True
    input: Expression
    algorithm: str = "bcrypt"
    rounds: Optional[int] = None


@dataclass(frozen=True, kw_only=True)
class VerifyPassword(Expression):
    kind: ClassVar[str] = "verify_password"
    is_domain: ClassVar[bool] = True
    password: Expression
    hash: Expression
    algorithm: str = "bcrypt"


@dataclass(frozen=True, kw_only=True)
class SignToken(Expression):
    kind: ClassVar[str] = "sign_token"
    is_domain: ClassVar[bool] = True
    payload: Expression
    secret: Optional[Expression] = None
    options: Optional[Any] = None


@dataclass(frozen=True, kw_only=True)
class VerifyToken(Expression):
    kind: ClassVar[str] = "verify_token"
    is_domain: ClassVar[bool] = True
    token: Expression
    secret: Optional[Expression] = None


@dataclass(frozen=True, kw_only=True)
class NativeBridge(Expression):
    """A call into a language-specific package, with an optional portable fallback."""

    kind: ClassVar[str] = "native_bridge"
    language: Language
    package: str
    import_name: str
    import_from: str
    method: str
    args: Tuple[Expression, ...] = ()
    return_type: Optional[str] = None
    fallback: Optional[Expression] = None
    fallback_description: Optional[str] = field(default=None, compare=False)
