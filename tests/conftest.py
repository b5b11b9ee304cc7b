"""
Shared fixtures: a small but complete project exercising every spec kind.
"""

import json

import pytest

from rash_compiler.codegen.core.context import EmitContext
from rash_compiler.ir.convert import convert_project
from rash_compiler.spec.model import ProjectModel


def ident(name):
    return {"type": "Identifier", "name": name}


def lit(value):
    return {"type": "Literal", "value": value}


def respond(status, body=None, **extra):
    node = {"type": "HttpRespond", "status": status}
    if body is not None:
        node["body"] = body
    node.update(extra)
    return node


def handler_doc(name, body, is_async=True, **extra):
    doc = {"name": name, "async": is_async, "body": body}
    doc.update(extra)
    return doc


SAMPLE_CONFIG = {
    "version": "1.0.0",
    "name": "demo-api",
    "target": {"language": "typescript", "framework": "express"},
    "server": {"port": 4000},
    "middleware": {"global": [{"ref": "logger"}]},
}

GET_USER_BODY = [
    {
        "type": "LetStatement",
        "name": "id",
        "value": {"type": "CtxGet", "path": "params.id"},
    },
    {
        "type": "LetStatement",
        "name": "user",
        "value": {
            "type": "AwaitExpr",
            "expr": {
                "type": "DbQuery",
                "model": "User",
                "operation": "findUnique",
                "where": {"id": "id"},
            },
        },
    },
    {
        "type": "IfStatement",
        "condition": {"type": "UnaryExpr", "operator": "!", "operand": ident("user")},
        "then": [
            {
                "type": "ReturnStatement",
                "value": respond(
                    404,
                    {"type": "ObjectExpr", "properties": {"error": lit("Not found")}},
                ),
            }
        ],
    },
    {"type": "ReturnStatement", "value": respond(200, ident("user"))},
]

VERIFY_BODY = [
    {
        "type": "LetStatement",
        "name": "token",
        "value": {"type": "CtxGet", "path": "headers.authorization"},
    },
    {
        "type": "ExpressionStatement",
        "expr": {"type": "VerifyToken", "token": ident("token")},
    },
]


def sample_documents():
    return {
        "schemas/user.schema.json": {
            "name": "User",
            "definitions": {
                "User": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                        "email": {"type": "string", "format": "email"},
                        "age": {"type": "integer"},
                    },
                    "required": ["id", "email"],
                },
            },
        },
        "models/user.model.json": {
            "name": "User",
            "tableName": "users",
            "columns": {
                "id": {"type": "uuid", "primaryKey": True, "default": "uuid"},
                "email": {"type": "string", "unique": True},
                "name": {"type": "string", "nullable": True},
            },
            "relations": {"posts": {"type": "hasMany", "target": "Post"}},
        },
        "models/post.model.json": {
            "name": "Post",
            "columns": {
                "id": {"type": "uuid", "primaryKey": True},
                "authorId": {"type": "uuid"},
            },
            "relations": {
                "author": {"type": "belongsTo", "target": "User", "foreignKey": "authorId"}
            },
        },
        "middleware/logger.middleware.json": {"name": "logger", "type": "request"},
        "middleware/auth.middleware.json": {
            "name": "auth",
            "type": "request",
            "handler": {"ref": "auth.verify"},
        },
        "handlers/users.getUser.handler.json": handler_doc("users.getUser", GET_USER_BODY),
        "handlers/auth.verify.handler.json": handler_doc("auth.verify", VERIFY_BODY),
        "routes/users.route.json": {
            "path": "/users/:id",
            "methods": {
                "GET": {
                    "handler": {"ref": "users.getUser"},
                    "middleware": [{"ref": "auth"}],
                    "response": {"200": {"schema": {"ref": "User"}}},
                }
            },
            "tags": ["users"],
        },
    }


@pytest.fixture
def sample_config():
    return json.loads(json.dumps(SAMPLE_CONFIG))


@pytest.fixture
def sample_documents_dict():
    return sample_documents()


@pytest.fixture
def sample_project(sample_config):
    return ProjectModel.from_documents(sample_config, sample_documents())


@pytest.fixture
def sample_ir(sample_project):
    return convert_project(sample_project)


@pytest.fixture
def project_dir(tmp_path, sample_config):
    """The sample project written to disk."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "rash.config.json").write_text(json.dumps(sample_config), encoding="utf-8")
    for rel_path, document in sample_documents().items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document), encoding="utf-8")
    return root


def make_context(emitter):
    return EmitContext(emitter.indent_style)
