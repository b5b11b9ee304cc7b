"""
Tests for the spec enums, the compatibility matrix and the document model.
"""

import pytest

from rash_compiler.spec.model import (
    MiddlewareSpec,
    ModelSpec,
    ProjectModel,
    RashConfig,
    Ref,
    RouteSpec,
    SpecParseError,
    detect_spec_kind,
)
from rash_compiler.spec.types import (
    Framework,
    HttpMethod,
    Language,
    Tier,
    compatible_frameworks,
    is_compatible,
    language_for_framework,
    parse_framework,
    parse_language,
)

# =============================================================================
# Compatibility matrix
# =============================================================================


class TestCompatibility:
    @pytest.mark.parametrize(
        "language,framework",
        [
            (Language.TYPESCRIPT, Framework.EXPRESS),
            (Language.TYPESCRIPT, Framework.HONO),
            (Language.RUST, Framework.ACTIX),
            (Language.PYTHON, Framework.FASTAPI),
            (Language.GO, Framework.GIN),
        ],
    )
    def test_compatible_pairs(self, language, framework):
        assert is_compatible(language, framework)

    @pytest.mark.parametrize(
        "language,framework",
        [
            (Language.TYPESCRIPT, Framework.ACTIX),
            (Language.PYTHON, Framework.EXPRESS),
            (Language.GO, Framework.FASTAPI),
        ],
    )
    def test_incompatible_pairs(self, language, framework):
        assert not is_compatible(language, framework)

    def test_every_framework_belongs_to_exactly_one_language(self):
        for framework in Framework:
            owners = [lang for lang in Language if framework in compatible_frameworks(lang)]
            assert len(owners) == 1
            assert language_for_framework(framework) is owners[0]

    def test_parse_is_case_insensitive(self):
        assert parse_language("TypeScript") is Language.TYPESCRIPT
        assert parse_framework(" GIN ") is Framework.GIN
        assert parse_language(Language.GO) is Language.GO

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError):
            parse_language("cobol")

    def test_tiers_are_ordered(self):
        assert Tier.UNIVERSAL < Tier.DOMAIN < Tier.UTILITY < Tier.BRIDGE


# =============================================================================
# Document model
# =============================================================================


class TestRashConfig:
    def test_defaults_target_to_typescript_express(self):
        config = RashConfig.from_dict({"name": "app", "version": "1.0.0"})
        assert config.target.language is Language.TYPESCRIPT
        assert config.target.framework is Framework.EXPRESS
        assert config.codegen.out_dir == "./dist"
        assert config.server is None

    def test_missing_fields_default_to_empty(self):
        config = RashConfig.from_dict({})
        assert config.name == ""
        assert config.version == ""

    def test_invalid_language_raises_with_path(self):
        with pytest.raises(SpecParseError) as exc_info:
            RashConfig.from_dict({"target": {"language": "cobol"}})
        assert exc_info.value.path == "$.target.language"
        assert "cobol" in exc_info.value.message

    def test_non_integer_port_raises(self):
        with pytest.raises(SpecParseError) as exc_info:
            RashConfig.from_dict({"server": {"port": "80"}})
        assert exc_info.value.path == "$.server.port"

    def test_global_middleware_accepts_strings_and_objects(self):
        config = RashConfig.from_dict(
            {"middleware": {"global": ["cors", {"ref": "logger", "config": {"level": "info"}}]}}
        )
        assert [ref.ref for ref in config.global_middleware] == ["cors", "logger"]
        assert config.global_middleware[1].config == {"level": "info"}

    def test_to_dict_uses_camel_case(self):
        config = RashConfig.from_dict(
            {
                "name": "app",
                "version": "1.0.0",
                "server": {"port": 8080, "basePath": "/api"},
                "codegen": {"outDir": "./out", "sourceMap": True},
                "middleware": {"global": [{"ref": "cors"}]},
            }
        )
        data = config.to_dict()
        assert data["server"] == {"port": 8080, "host": "0.0.0.0", "basePath": "/api"}
        assert data["codegen"] == {"outDir": "./out", "sourceMap": True, "strict": False}
        assert data["middleware"] == {"global": [{"ref": "cors"}]}
        assert data["target"] == {"language": "typescript", "framework": "express"}


class TestRouteSpec:
    def test_methods_are_parsed_case_insensitively(self):
        route = RouteSpec.from_dict(
            {"path": "/users", "methods": {"get": {"handler": "users.list"}}}
        )
        assert list(route.methods) == [HttpMethod.GET]
        assert route.methods[HttpMethod.GET].handler == Ref("users.list")

    def test_unknown_method_raises(self):
        with pytest.raises(SpecParseError) as exc_info:
            RouteSpec.from_dict({"path": "/", "methods": {"FETCH": {}}})
        assert exc_info.value.path == "$.methods.FETCH"

    def test_request_and_response(self):
        route = RouteSpec.from_dict(
            {
                "path": "/users",
                "methods": {
                    "POST": {
                        "handler": {"ref": "users.create"},
                        "request": {
                            "body": {"ref": "CreateUser", "contentType": "application/json"},
                            "query": "Paging",
                        },
                        "response": {"201": {"description": "Created", "schema": {"ref": "User"}}},
                    }
                },
            }
        )
        endpoint = route.methods[HttpMethod.POST]
        assert endpoint.request.body.ref.ref == "CreateUser"
        assert endpoint.request.body.content_type == "application/json"
        assert endpoint.request.query.ref == "Paging"
        assert endpoint.response["201"].schema.ref == "User"

    def test_wrong_json_type_raises(self):
        with pytest.raises(SpecParseError) as exc_info:
            RouteSpec.from_dict({"path": "/", "methods": []})
        assert exc_info.value.path == "$.methods"


class TestModelAndMiddleware:
    def test_invalid_relation_type(self):
        with pytest.raises(SpecParseError) as exc_info:
            ModelSpec.from_dict(
                {"name": "User", "relations": {"posts": {"type": "owns", "target": "Post"}}}
            )
        assert exc_info.value.path == "$.relations.posts.type"

    def test_relation_defaults_to_has_many(self):
        model = ModelSpec.from_dict({"name": "User", "relations": {"posts": {"target": "Post"}}})
        assert model.relations["posts"].type == "hasMany"

    def test_invalid_middleware_type(self):
        with pytest.raises(SpecParseError):
            MiddlewareSpec.from_dict({"name": "auth", "type": "sideways"})

    def test_composed_middleware(self):
        middleware = MiddlewareSpec.from_dict(
            {"name": "secure", "type": "composed", "compose": ["cors", {"ref": "auth"}]}
        )
        assert [ref.ref for ref in middleware.compose] == ["cors", "auth"]


class TestProjectModel:
    @pytest.mark.parametrize(
        "file_name,kind",
        [
            ("routes/users.route.json", "route"),
            ("User.Schema.JSON", "schema"),
            ("models/user.model.json", "model"),
            ("auth.middleware.json", "middleware"),
            ("users.getUser.handler.json", "handler"),
            ("package.json", None),
            ("rash.config.json", None),
        ],
    )
    def test_detect_spec_kind(self, file_name, kind):
        assert detect_spec_kind(file_name) == kind

    def test_from_documents_buckets_by_kind(self, sample_project):
        assert len(sample_project.routes) == 1
        assert len(sample_project.schemas) == 1
        assert [m.name for _, m in sample_project.models] == ["User", "Post"]
        assert [m.name for _, m in sample_project.middleware] == ["logger", "auth"]
        assert [h.name for _, h in sample_project.handlers] == ["users.getUser", "auth.verify"]
        file, _ = sample_project.routes[0]
        assert file == "routes/users.route.json"

    def test_from_documents_rejects_unknown_file(self):
        with pytest.raises(SpecParseError):
            ProjectModel.from_documents({}, {"notes.json": {}})
