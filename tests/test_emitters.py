"""
Tests for the four language emitters.
"""

import pytest

from conftest import make_context
from rash_compiler.codegen.core.context import EmitContext, ImportIR
from rash_compiler.codegen.core.errors import CodegenError, UnsupportedBridgeError
from rash_compiler.codegen.languages.go import GoEmitter
from rash_compiler.codegen.languages.python import PythonEmitter
from rash_compiler.codegen.languages.rust import RustEmitter
from rash_compiler.codegen.languages.typescript import TypeScriptEmitter, json_schema_to_zod
from rash_compiler.ir import nodes as n
from rash_compiler.spec.types import Language


def find_user(**extra):
    return n.DbQuery(model="User", operation="findUnique", where={"id": "id"}, **extra)


def template(*parts):
    return n.Template(
        parts=tuple(n.TemplatePart(text=p) if isinstance(p, str) else n.TemplatePart(expr=p) for p in parts)
    )


def bridge(language, fallback=None):
    return n.NativeBridge(
        language=language,
        package="numpy",
        import_name="np",
        import_from="numpy",
        method="np.mean",
        args=(n.Identifier(name="values"),),
        fallback=fallback,
    )


# =============================================================================
# Shared dispatch
# =============================================================================


class TestIdentifiers:
    @pytest.mark.parametrize(
        "emitter,expected",
        [
            (TypeScriptEmitter(), "usersGetUser"),
            (RustEmitter(), "users_get_user"),
            (PythonEmitter(), "users_get_user"),
            (GoEmitter(), "UsersGetUser"),
        ],
    )
    def test_dotted_names(self, emitter, expected):
        assert emitter.identifier("users.getUser") == expected

    def test_keywords_are_suffixed(self):
        assert TypeScriptEmitter().identifier("delete") == "delete_"
        assert PythonEmitter().identifier("import") == "import_"


class TestDomainRenderer:
    def test_renderer_overrides_domain_expressions(self):
        emitter = TypeScriptEmitter()
        ctx = EmitContext(emitter.indent_style, domain_renderer=lambda expr, ctx: "custom()")
        assert emitter.emit_expression(n.HttpRespond(status=200), ctx) == "custom()"
        # non-domain expressions never reach the renderer
        assert emitter.emit_expression(n.Identifier(name="x"), ctx) == "x"

    def test_renderer_returning_none_falls_back(self):
        emitter = TypeScriptEmitter()
        ctx = EmitContext(emitter.indent_style, domain_renderer=lambda expr, ctx: None)
        assert emitter.emit_expression(n.HttpRespond(status=204), ctx) == "res.status(204).json(undefined)"


class TestNativeBridge:
    def test_same_language_calls_the_package(self):
        emitter = PythonEmitter()
        ctx = make_context(emitter)
        assert emitter.emit_expression(bridge(Language.PYTHON), ctx) == "np.mean(values)"
        assert ctx.imports == [ImportIR("np", "numpy")]

    def test_other_language_uses_the_fallback(self):
        emitter = TypeScriptEmitter()
        ctx = make_context(emitter)
        expr = bridge(Language.PYTHON, fallback=n.Identifier(name="values"))
        assert emitter.emit_expression(expr, ctx) == "values"
        assert ctx.imports == []

    def test_missing_fallback(self):
        emitter = GoEmitter()
        with pytest.raises(UnsupportedBridgeError):
            emitter.emit_expression(bridge(Language.PYTHON), make_context(emitter))


# =============================================================================
# TypeScript
# =============================================================================


class TestTypeScriptEmitter:
    @pytest.fixture
    def emitter(self):
        return TypeScriptEmitter()

    def test_let_with_type(self, emitter):
        stmt = n.LetStmt(name="count", value=n.Literal(value=1), type_=n.TypeIR.number())
        assert emitter.emit_statement(stmt, make_context(emitter)) == "const count: number = 1;"

    def test_if_else(self, emitter):
        stmt = n.IfStmt(
            condition=n.Identifier(name="ok"),
            then=(n.ReturnStmt(value=n.Literal(value=1)),),
            else_=(n.ReturnStmt(),),
        )
        assert emitter.emit_statement(stmt, make_context(emitter)) == (
            "if (ok) {\n  return 1;\n} else {\n  return;\n}"
        )

    def test_db_query_uses_prisma(self, emitter):
        ctx = make_context(emitter)
        code = emitter.emit_expression(n.Await(expr=find_user()), ctx)
        assert code == 'await prisma.user.findUnique({ where: { id: "id" } })'
        assert ctx.imports == [ImportIR("{ prisma }", "../prisma")]

    def test_ctx_get(self, emitter):
        ctx = make_context(emitter)
        assert emitter.emit_expression(n.CtxGet(path="params.id"), ctx) == "req.params.id"
        assert emitter.emit_expression(n.CtxGet(path="body"), ctx) == "req.body"
        assert emitter.emit_expression(n.CtxGet(path="headers.authorization"), ctx) == (
            'req.headers["authorization"]'
        )

    def test_template_literal(self, emitter):
        code = emitter.emit_expression(template("Hi `", n.Identifier(name="name")), make_context(emitter))
        assert code == "`Hi \\`${name}`"

    def test_object_keys_are_quoted_when_needed(self, emitter):
        expr = n.ObjectExpr(properties=(("content-type", n.Literal(value="x")), ("ok", n.Literal(value=True))))
        assert emitter.emit_expression(expr, make_context(emitter)) == '{ "content-type": "x", ok: true }'

    def test_sign_token_defaults_to_env_secret(self, emitter):
        ctx = make_context(emitter)
        code = emitter.emit_expression(n.SignToken(payload=n.Identifier(name="claims")), ctx)
        assert code == "jwt.sign(claims, process.env.JWT_SECRET!)"
        assert emitter.emit_imports(ctx) == 'import jwt from "jsonwebtoken";'

    def test_schema_renders_zod(self, emitter, sample_ir):
        ctx = make_context(emitter)
        code = emitter.emit_schema(sample_ir.schemas[0], ctx)
        assert "export const User = z.object({" in code
        assert "  email: z.string().email()," in code
        assert "  age: z.number().int().optional()" in code
        assert "export type User = z.infer<typeof User>;" in code
        assert ctx.imports == [ImportIR("{ z }", "zod")]

    def test_model_interface(self, emitter, sample_ir):
        code = emitter.emit_model(sample_ir.models[0], make_context(emitter))
        assert code == "export interface User {\n  id: string;\n  email: string;\n  name: string | null;\n}"


class TestZod:
    def test_enums_and_refs(self):
        assert json_schema_to_zod({"enum": ["a", "b"]}) == 'z.union([z.literal("a"), z.literal("b")])'
        assert json_schema_to_zod({"enum": [1]}) == "z.literal(1)"
        assert json_schema_to_zod({"$ref": "#/definitions/User"}) == "z.lazy(() => User)"

    def test_bounds(self):
        assert json_schema_to_zod({"type": "number", "minimum": 0.0, "maximum": 10}) == "z.number().min(0).max(10)"
        assert json_schema_to_zod({"type": "string", "minLength": 3}) == "z.string().min(3)"

    def test_arrays_and_unknowns(self):
        assert json_schema_to_zod({"type": "array", "items": {"type": "boolean"}}) == "z.array(z.boolean())"
        assert json_schema_to_zod({"type": "array"}) == "z.array(z.any())"
        assert json_schema_to_zod("nonsense") == "z.any()"


# =============================================================================
# Python
# =============================================================================


class TestPythonEmitter:
    @pytest.fixture
    def emitter(self):
        return PythonEmitter()

    def test_operators(self, emitter):
        ctx = make_context(emitter)
        assert emitter.emit_expression(n.Unary(op="!", operand=n.Identifier(name="user")), ctx) == "not user"
        expr = n.Binary(op="&&", left=n.Identifier(name="a"), right=n.Identifier(name="b"))
        assert emitter.emit_expression(expr, ctx) == "a and b"

    def test_empty_block_renders_pass(self, emitter):
        stmt = n.IfStmt(condition=n.Identifier(name="ok"), then=())
        assert emitter.emit_statement(stmt, make_context(emitter)) == "if ok:\n    pass"

    def test_try_catch(self, emitter):
        stmt = n.TryCatchStmt(
            try_=(n.ExprStmt(expr=n.Call(callee=n.Identifier(name="risky"))),),
            catch=n.CatchClause(binding="e", body=(n.ReturnStmt(),)),
        )
        assert emitter.emit_statement(stmt, make_context(emitter)) == (
            "try:\n    risky()\nexcept Exception as e:\n    return"
        )

    def test_f_string(self, emitter):
        code = emitter.emit_expression(template("Hi {", n.Identifier(name="name")), make_context(emitter))
        assert code == 'f"Hi {{{name}"'

    def test_f_string_switches_quotes(self, emitter):
        expr = template("Token ", n.CtxGet(path="headers.authorization"))
        code = emitter.emit_expression(expr, make_context(emitter))
        assert code == "f'Token {request.headers.get(\"authorization\")}'"

    def test_lambda(self, emitter):
        expr = n.ArrowFn(params=("x",), body=(n.ReturnStmt(value=n.Identifier(name="x")),))
        assert emitter.emit_expression(expr, make_context(emitter)) == "lambda x: x"
        assert emitter.emit_expression(n.ArrowFn(), make_context(emitter)) == "lambda: None"

    def test_multi_statement_lambda(self, emitter):
        expr = n.ArrowFn(params=("x",), body=(n.ReturnStmt(), n.ReturnStmt()))
        with pytest.raises(CodegenError):
            emitter.emit_expression(expr, make_context(emitter))

    def test_awaited_orm_call_is_not_awaited_twice(self, emitter):
        ctx = make_context(emitter)
        assert emitter.emit_expression(n.Await(expr=find_user()), ctx) == 'await User.get_or_none(id="id")'
        assert ctx.imports == [ImportIR("User", "models.user")]

    def test_find_many_chain(self, emitter):
        expr = n.DbQuery(
            model="Post", operation="findMany", order_by={"createdAt": "desc"}, take=n.Literal(value=10)
        )
        code = emitter.emit_expression(expr, make_context(emitter))
        assert code == 'await Post.filter().order_by("-createdAt").limit(10).all()'

    def test_imports_are_grouped(self, emitter):
        ctx = make_context(emitter)
        ctx.add_import("Any", "typing")
        ctx.add_import("", "jwt")
        ctx.add_import("Any, Optional", "typing")
        assert emitter.emit_imports(ctx) == "from typing import Any, Optional\nimport jwt"

    def test_literals(self, emitter):
        assert emitter.literal({"a": None, "b": [True, 1.5]}) == '{"a": None, "b": [True, 1.5]}'

    def test_tortoise_model(self, emitter, sample_ir):
        ctx = make_context(emitter)
        code = emitter.emit_model(sample_ir.models[0], ctx)
        assert "class User(Model):" in code
        assert "    id = fields.UUIDField(pk=True, default=uuid.uuid4)" in code
        assert "    email = fields.CharField(max_length=255, unique=True)" in code
        assert "    name = fields.CharField(max_length=255, null=True)" in code
        assert '    posts: fields.ReverseRelation["Post"]' in code
        assert '        table = "users"' in code
        assert ImportIR("", "uuid") in ctx.imports

    def test_pydantic_schema(self, emitter, sample_ir):
        code = emitter.emit_schema(sample_ir.schemas[0], make_context(emitter))
        assert code == (
            "class User(BaseModel):\n"
            "    id: str\n"
            "    email: str\n"
            "    age: Optional[int] = None\n"
        )


# =============================================================================
# Rust
# =============================================================================


class TestRustEmitter:
    @pytest.fixture
    def emitter(self):
        return RustEmitter()

    def test_awaited_orm_call_is_not_awaited_twice(self, emitter):
        ctx = make_context(emitter)
        assert emitter.emit_expression(n.Await(expr=find_user()), ctx) == "User::find_by_id(id).one(&db).await?"
        call = n.Await(expr=n.Call(callee=n.Identifier(name="fetch")))
        assert emitter.emit_expression(call, ctx) == "fetch().await"

    def test_responses(self, emitter):
        ctx = make_context(emitter)
        not_found = n.HttpRespond(
            status=404, body=n.ObjectExpr(properties=(("error", n.Literal(value="Not found")),))
        )
        assert emitter.emit_expression(not_found, ctx) == (
            'HttpResponse::NotFound().json(serde_json::json!({ "error": "Not found".to_string() }))'
        )
        assert emitter.emit_expression(n.HttpRespond(status=204), ctx) == "HttpResponse::NoContent().finish()"
        assert emitter.emit_expression(n.HttpRespond(status=418), ctx) == (
            "HttpResponse::build(StatusCode::from_u16(418).unwrap()).json(())"
        )
        assert emitter.emit_imports(ctx) == "use actix_web::HttpResponse;\nuse actix_web::http::StatusCode;"

    def test_format_macro(self, emitter):
        ctx = make_context(emitter)
        assert emitter.emit_expression(template("Hi ", n.Identifier(name="name")), ctx) == 'format!("Hi {}", name)'
        assert emitter.emit_expression(template("plain"), ctx) == '"plain".to_string()'

    def test_number_literals(self, emitter):
        assert emitter.literal(1.5) == "1.5_f64"
        assert emitter.literal(3) == "3"

    def test_match_is_exhaustive(self, emitter):
        stmt = n.MatchStmt(
            expr=n.Identifier(name="role"),
            arms=(n.MatchArm(pattern=n.Literal(value="admin"), body=(n.ReturnStmt(),)),),
        )
        assert emitter.emit_statement(stmt, make_context(emitter)) == (
            'match role {\n    "admin" => {\n        return;\n    }\n    _ => {}\n}'
        )

    def test_camel_case_fields_are_renamed(self, emitter, sample_ir):
        code = emitter.emit_model(sample_ir.models[1], make_context(emitter))
        assert '    #[serde(rename = "authorId")]\n    pub author_id: String,' in code
        assert "    pub id: String," in code

    def test_optional_schema_fields(self, emitter, sample_ir):
        code = emitter.emit_schema(sample_ir.schemas[0], make_context(emitter))
        assert "pub struct User {" in code
        assert "    pub age: Option<i64>," in code
        assert "    pub email: String," in code


# =============================================================================
# Go
# =============================================================================


class TestGoEmitter:
    @pytest.fixture
    def emitter(self):
        return GoEmitter()

    def test_let_and_await(self, emitter):
        stmt = n.LetStmt(name="user", value=n.Await(expr=n.CtxGet(path="params.id")))
        assert emitter.emit_statement(stmt, make_context(emitter)) == 'user := c.Param("id")'

    def test_db_query_imports_models_package(self, emitter):
        ctx = EmitContext(emitter.indent_style, module_path="demo-api")
        code = emitter.emit_expression(find_user(), ctx)
        assert code == 'models.DB.Model(&models.User{}).Where(map[string]interface{}{"id": "id"}).First(&record)'
        assert ctx.imports == [ImportIR("", "demo-api/src/models")]

    def test_try_catch_uses_recover(self, emitter):
        stmt = n.TryCatchStmt(
            try_=(n.ExprStmt(expr=n.Call(callee=n.Identifier(name="risky"))),),
            catch=n.CatchClause(binding="err", body=(n.ReturnStmt(),)),
        )
        assert emitter.emit_statement(stmt, make_context(emitter)) == (
            "func() {\n"
            "\tdefer func() {\n"
            "\t\tif err := recover(); err != nil {\n"
            "\t\t\treturn\n"
            "\t\t}\n"
            "\t}()\n"
            "\trisky()\n"
            "}()"
        )

    def test_imports_block(self, emitter):
        ctx = make_context(emitter)
        assert emitter.emit_imports(ctx) == ""
        ctx.add_import("", "fmt")
        ctx.add_import("jwt", "github.com/golang-jwt/jwt/v5")
        assert emitter.emit_imports(ctx) == 'import (\n\t"fmt"\n\tjwt "github.com/golang-jwt/jwt/v5"\n)'

    def test_package_declaration(self, emitter):
        assert emitter.package_declaration("handlers") == "package handlers"
        assert TypeScriptEmitter().package_declaration("handlers") is None

    def test_gorm_model(self, emitter, sample_ir):
        code = emitter.emit_model(sample_ir.models[1], make_context(emitter))
        assert '\tId string `gorm:"column:id;primaryKey;not null" json:"id"`' in code
        assert '\tAuthorId string `gorm:"column:author_id;not null" json:"authorId"`' in code
        assert '\tAuthor User `gorm:"foreignKey:AuthorId" json:"author,omitempty"`' in code
        assert 'func (Post) TableName() string {\n\treturn "posts"\n}' in code

    def test_schema_validation_function(self, emitter, sample_ir):
        code = emitter.emit_schema(sample_ir.schemas[0], make_context(emitter))
        assert '\tEmail string `json:"email" binding:"required"`' in code
        assert '\tAge int `json:"age,omitempty"`' in code
        assert "func ValidateUser(data interface{}) (*User, error) {" in code
