"""
Tests for the validation engine and its rules.
"""

import pytest

from rash_compiler.spec.errors import ErrorCode, ErrorEntry, Severity, ValidationReport
from rash_compiler.spec.model import ProjectModel
from rash_compiler.validation import validate


def make_project(config=None, **documents):
    base = {"name": "app", "version": "1.0.0"}
    base.update(config or {})
    return ProjectModel.from_documents(base, documents)


def route(path="/users", handler="users.list", **endpoint):
    method = {"handler": {"ref": handler}} if handler else {}
    method.update(endpoint)
    return {"path": path, "methods": {"GET": method}}


HANDLER = {"users.handler.json": {"name": "users.list"}}


class TestValidationReport:
    def test_ok_turns_false_only_on_errors(self):
        report = ValidationReport()
        report.push(ErrorEntry.warning("W", "careful", "f", "$"))
        assert report.ok
        report.push(ErrorEntry.error("E", "broken", "f", "$"))
        assert not report.ok
        report.push(ErrorEntry.info("I", "note", "f", "$"))
        assert not report.ok
        assert report.error_count == 1
        assert report.warning_count == 1

    def test_to_dict(self):
        report = ValidationReport.from_errors(
            [ErrorEntry.error("E_X", "msg", "a.json", "$.name").with_suggestion("fix it")]
        )
        assert report.to_dict() == {
            "ok": False,
            "errors": [
                {
                    "code": "E_X",
                    "severity": "error",
                    "message": "msg",
                    "file": "a.json",
                    "path": "$.name",
                    "suggestion": "fix it",
                }
            ],
        }


class TestSampleProject:
    def test_sample_is_valid_with_one_cycle_warning(self, sample_project):
        report = validate(sample_project)
        assert report.ok
        assert report.error_count == 0
        [warning] = report.errors
        assert warning.severity is Severity.WARNING
        assert warning.code == ErrorCode.E_REF_CYCLE
        assert warning.message == "Circular reference detected: User -> Post -> User"
        assert warning.file == "models/user.model.json"
        assert warning.path == "$.relations.posts.target"


class TestRequiredFields:
    def test_config_name_and_version(self):
        report = validate(ProjectModel.from_documents({}, {}))
        missing = report.by_code(ErrorCode.E_MISSING_FIELD)
        assert [(e.file, e.path) for e in missing] == [
            ("rash.config.json", "$.name"),
            ("rash.config.json", "$.version"),
        ]
        # an empty version is not also reported as invalid semver
        assert report.by_code(ErrorCode.E_VERSION_MISMATCH) == []

    def test_route_path_must_start_with_slash(self):
        report = validate(make_project(**{"r.route.json": route(path="users")}, **HANDLER))
        [error] = report.by_code(ErrorCode.E_INVALID_PATH)
        assert error.path == "$.path"
        assert error.suggestion == "Use '/users'"

    def test_route_without_path_or_methods(self):
        report = validate(make_project(**{"r.route.json": {}}))
        paths = [e.path for e in report.by_code(ErrorCode.E_MISSING_FIELD)]
        assert paths == ["$.path", "$.methods"]

    def test_endpoint_without_handler(self):
        report = validate(make_project(**{"r.route.json": route(handler=None)}))
        [error] = report.by_code(ErrorCode.E_MISSING_FIELD)
        assert error.path == "$.methods.GET.handler"
        assert report.by_code(ErrorCode.E_REF_NOT_FOUND) == []

    def test_definitions_need_names(self):
        report = validate(
            make_project(
                **{
                    "a.schema.json": {},
                    "b.model.json": {"columns": {"id": {"type": "int"}}},
                    "c.middleware.json": {},
                    "d.handler.json": {},
                }
            )
        )
        errors = [(e.file, e.path) for e in report.by_code(ErrorCode.E_MISSING_FIELD)]
        assert errors == [
            ("a.schema.json", "$.name"),
            ("b.model.json", "$.name"),
            ("c.middleware.json", "$.name"),
            ("d.handler.json", "$.name"),
        ]

    def test_model_needs_columns(self):
        report = validate(make_project(**{"m.model.json": {"name": "User"}}))
        [error] = report.by_code(ErrorCode.E_MISSING_FIELD)
        assert error.path == "$.columns"


class TestReferenceIntegrity:
    def test_missing_handler(self):
        report = validate(make_project(**{"r.route.json": route(handler="users.missing")}))
        [error] = report.by_code(ErrorCode.E_REF_NOT_FOUND)
        assert error.file == "r.route.json"
        assert error.path == "$.methods.GET.handler.ref"

    def test_endpoint_refs_have_precise_paths(self):
        doc = route(
            middleware=[{"ref": "auth"}],
            request={"query": {"ref": "Paging"}, "body": {"ref": "Body"}},
            response={"200": {"schema": {"ref": "UserList"}}},
        )
        report = validate(make_project(**{"r.route.json": doc}, **HANDLER))
        paths = [e.path for e in report.by_code(ErrorCode.E_REF_NOT_FOUND)]
        assert paths == [
            "$.methods.GET.middleware[0].ref",
            "$.methods.GET.request.query.ref",
            "$.methods.GET.request.body.ref",
            "$.methods.GET.response.200.schema.ref",
        ]

    def test_global_middleware_is_reported_in_config(self):
        report = validate(make_project({"middleware": {"global": ["cors"]}}))
        [error] = report.by_code(ErrorCode.E_REF_NOT_FOUND)
        assert error.file == "rash.config.json"
        assert error.path == "$.middleware.global[0].ref"

    def test_middleware_and_model_refs(self):
        report = validate(
            make_project(
                **{
                    "m.middleware.json": {
                        "name": "secure",
                        "handler": "auth.check",
                        "compose": ["cors"],
                    },
                    "u.model.json": {
                        "name": "User",
                        "columns": {"id": {"type": "int"}},
                        "relations": {"profile": {"type": "hasOne", "target": "Profile"}},
                    },
                }
            )
        )
        paths = [(e.file, e.path) for e in report.by_code(ErrorCode.E_REF_NOT_FOUND)]
        assert paths == [
            ("m.middleware.json", "$.handler.ref"),
            ("m.middleware.json", "$.compose[0].ref"),
            ("u.model.json", "$.relations.profile.target"),
        ]

    def test_external_ref(self):
        doc = route(response={"200": {"schema": {"ref": "common.json#/User"}}})
        report = validate(make_project(**{"r.route.json": doc}, **HANDLER))
        [error] = report.by_code(ErrorCode.E_REF_EXTERNAL_UNSUPPORTED)
        assert error.path == "$.methods.GET.response.200.schema.ref"


class TestTargetCompatibility:
    def test_incompatible_target(self):
        report = validate(make_project({"target": {"language": "python", "framework": "express"}}))
        [error] = report.by_code(ErrorCode.E_INCOMPATIBLE_TARGET)
        assert error.path == "$.target"
        assert error.suggestion.endswith("django, fastapi, flask")


class TestCycles:
    def test_middleware_cycle_is_an_error(self):
        report = validate(
            make_project(
                **{
                    "a.middleware.json": {"name": "a", "type": "composed", "compose": ["b"]},
                    "b.middleware.json": {"name": "b", "type": "composed", "compose": ["a"]},
                }
            )
        )
        [error] = report.by_code(ErrorCode.E_REF_CYCLE)
        assert error.severity is Severity.ERROR
        assert error.message == "Circular reference detected: a -> b -> a"
        assert error.file == "a.middleware.json"
        assert error.path == "$.compose[0].ref"
        assert not report.ok

    def test_self_composition(self):
        report = validate(
            make_project(**{"a.middleware.json": {"name": "a", "compose": ["a"]}})
        )
        [error] = report.by_code(ErrorCode.E_REF_CYCLE)
        assert error.message == "Circular reference detected: a -> a"

    def test_acyclic_composition(self):
        report = validate(
            make_project(
                **{
                    "a.middleware.json": {"name": "a", "compose": ["b", "c"]},
                    "b.middleware.json": {"name": "b", "compose": ["c"]},
                    "c.middleware.json": {"name": "c"},
                }
            )
        )
        assert report.by_code(ErrorCode.E_REF_CYCLE) == []

    def test_cycles_sharing_nodes_are_all_reported(self):
        report = validate(
            make_project(
                **{
                    "a.middleware.json": {"name": "a", "compose": ["b", "c"]},
                    "b.middleware.json": {"name": "b", "compose": ["c"]},
                    "c.middleware.json": {"name": "c", "compose": ["a"]},
                }
            )
        )
        errors = report.by_code(ErrorCode.E_REF_CYCLE)
        assert [e.message for e in errors] == [
            "Circular reference detected: a -> b -> c -> a",
            "Circular reference detected: a -> c -> a",
        ]
        assert [(e.file, e.path) for e in errors] == [
            ("a.middleware.json", "$.compose[0].ref"),
            ("a.middleware.json", "$.compose[1].ref"),
        ]

    def test_schema_definitions_referencing_each_other(self):
        report = validate(
            make_project(
                **{
                    "graph.schema.json": {
                        "name": "graph",
                        "definitions": {
                            "Node": {
                                "type": "object",
                                "properties": {"edge": {"$ref": "#/definitions/Edge"}},
                            },
                            "Edge": {
                                "type": "object",
                                "properties": {"from": {"ref": "Node"}},
                            },
                        },
                    }
                }
            )
        )
        [error] = report.by_code(ErrorCode.E_REF_CYCLE)
        assert error.severity is Severity.ERROR
        assert error.message == "Circular reference detected: Node -> Edge -> Node"
        assert error.file == "graph.schema.json"
        assert error.path == "$.definitions.Node.properties.edge.$ref"
        assert not report.ok

    def test_schema_cycle_across_files(self):
        report = validate(
            make_project(
                **{
                    "order.schema.json": {
                        "name": "order",
                        "definitions": {
                            "Order": {
                                "type": "object",
                                "properties": {
                                    "lines": {"type": "array", "items": {"$ref": "line.schema#Line"}}
                                },
                            }
                        },
                    },
                    "line.schema.json": {
                        "name": "line",
                        "definitions": {
                            "Line": {"type": "object", "properties": {"order": {"$ref": "Order"}}}
                        },
                    },
                }
            )
        )
        [error] = report.by_code(ErrorCode.E_REF_CYCLE)
        assert error.message == "Circular reference detected: Order -> Line -> Order"
        assert error.path == "$.definitions.Order.properties.lines.items.$ref"

    def test_recursive_schema(self):
        report = validate(
            make_project(
                **{
                    "tree.schema.json": {
                        "name": "tree",
                        "definitions": {
                            "Tree": {
                                "type": "object",
                                "properties": {
                                    "children": {"type": "array", "items": {"$ref": "#/definitions/Tree"}}
                                },
                            }
                        },
                    }
                }
            )
        )
        [error] = report.by_code(ErrorCode.E_REF_CYCLE)
        assert error.message == "Circular reference detected: Tree -> Tree"
        assert error.path == "$.definitions.Tree.properties.children.items.$ref"

    def test_acyclic_schema_refs(self):
        report = validate(
            make_project(
                **{
                    "post.schema.json": {
                        "name": "post",
                        "definitions": {
                            "Post": {
                                "type": "object",
                                "properties": {
                                    "tags": {"type": "array", "items": {"$ref": "#/definitions/Tag"}},
                                    "author": {"$ref": "#/definitions/Missing"},
                                    "ref": {"type": "string"},
                                },
                            },
                            "Tag": {"type": "object", "properties": {"meta": {"ref": "common.types"}}},
                        },
                    }
                }
            )
        )
        assert report.by_code(ErrorCode.E_REF_CYCLE) == []


class TestVersion:
    @pytest.mark.parametrize("version", ["1.0.0", "1.0.7", "1.0.0rc1"])
    def test_supported(self, version):
        report = validate(make_project({"version": version}))
        assert report.by_code(ErrorCode.E_VERSION_MISMATCH) == []

    @pytest.mark.parametrize("version", ["1", "1.0", "abc", "1.0.0.0", "1.0.0+local"])
    def test_invalid(self, version):
        report = validate(make_project({"version": version}))
        [error] = report.by_code(ErrorCode.E_VERSION_MISMATCH)
        assert error.message == f"Invalid semver version: '{version}'"

    @pytest.mark.parametrize("version", ["2.0.0", "1.1.0", "0.9.0"])
    def test_unsupported(self, version):
        report = validate(make_project({"version": version}))
        [error] = report.by_code(ErrorCode.E_VERSION_MISMATCH)
        assert error.message.startswith(f"Unsupported spec version '{version}'")


class TestRuleOrder:
    def test_index_errors_come_first(self):
        report = validate(
            make_project(
                {"version": "2.0.0"},
                **{
                    "a.handler.json": {"name": "dup"},
                    "b.handler.json": {"name": "dup"},
                    "r.route.json": route(handler="nope"),
                },
            )
        )
        codes = [e.code for e in report.errors]
        assert codes == [
            ErrorCode.E_DUPLICATE_SYMBOL,
            ErrorCode.E_REF_NOT_FOUND,
            ErrorCode.E_VERSION_MISMATCH,
        ]
