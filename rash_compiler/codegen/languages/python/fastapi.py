"""
FastAPI adapter for Python.

Routes are added to an ``APIRouter`` with ``add_api_route``, middleware runs
as route dependencies and models are Tortoise ORM models registered on the
application.
"""

import json
from pathlib import Path
from typing import List, Optional, Tuple

from ....ir.nodes import HttpRespond, TypeKind
from ....ir.paths import colon_to_brace
from ....spec.types import Framework, Language
from ...core.adapter import CtxAccessPattern, FrameworkAdapter
from ...core.context import EmitContext
from ...core.naming import PYTHON_RESERVED, NamingCase, normalize_filename

REQUIREMENTS = [
    "fastapi>=0.110.0",
    "uvicorn[standard]>=0.27.0",
    "pydantic>=2.5.0",
    "tortoise-orm>=0.21.0",
    "bcrypt>=4.1.0",
    "PyJWT>=2.8.0",
]


def _type_refs(type_ir):
    """Names referenced anywhere inside a type."""
    if type_ir is None:
        return
    if type_ir.kind is TypeKind.REF:
        yield type_ir.name
    yield from _type_refs(type_ir.inner)
    for _, field_type in type_ir.fields:
        yield from _type_refs(field_type)
    for variant in type_ir.variants:
        yield from _type_refs(variant)


class FastAPIAdapter(FrameworkAdapter):
    """Adapter for FastAPI applications."""

    reserved_words = PYTHON_RESERVED
    function_case = NamingCase.SNAKE_CASE

    @property
    def framework(self) -> Framework:
        return Framework.FASTAPI

    @property
    def compatible_language(self) -> Language:
        return Language.PYTHON

    @property
    def ctx_access_pattern(self) -> CtxAccessPattern:
        return CtxAccessPattern.PARAM_INJECTION

    def get_template_directory(self) -> Optional[Path]:
        """Return the Python templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    def normalize_path(self, path: str) -> str:
        return colon_to_brace(path)

    def emit_route_registration(self, route, emitter, ctx: EmitContext) -> str:
        lines = []
        for method, endpoint in route.methods:
            handler_id = emitter.identifier(endpoint.handler_ref)
            ctx.add_import(handler_id, f"handlers.{normalize_filename(endpoint.handler_ref)}")
            args = [json.dumps(route.path), handler_id, f'methods=["{method.value}"]']
            if endpoint.middleware:
                dependencies = [self._dependency(ref, "middleware", ctx) for ref in endpoint.middleware]
                args.append(f"dependencies=[{', '.join(dependencies)}]")
            if endpoint.summary:
                args.append(f"summary={json.dumps(endpoint.summary)}")
            if route.tags:
                args.append(f"tags={json.dumps(list(route.tags))}")
            lines.append(f"router.add_api_route({', '.join(args)})")
        return "\n".join(lines)

    def _dependency(self, middleware_ref: str, package: str, ctx: EmitContext) -> str:
        middleware_id = self.function_name(middleware_ref)
        ctx.add_import(middleware_id, f"{package}.{normalize_filename(middleware_ref)}")
        return f"Depends({middleware_id})"

    def emit_middleware_apply(self, middleware_ref: str, ctx: EmitContext) -> str:
        ctx.add_import("Depends", "fastapi")
        return self._dependency(middleware_ref, "middleware", ctx)

    def emit_handler(self, handler, emitter, ctx: EmitContext) -> str:
        ctx.add_import("Request", "fastapi")
        params = ["request: Request"]
        for param in handler.params:
            for name in _type_refs(param.type_ir):
                ctx.add_import(name, f"schemas.{name.lower()}")
            params.append(f"{param.name}: {emitter.emit_type(param.type_ir)}")
        if handler.params:
            ctx.add_import("Any, Optional, Union", "typing")
        async_kw = "async " if handler.is_async else ""
        return f"{async_kw}def {handler.name}({', '.join(params)}):\n{emitter.emit_block(handler.body, ctx)}"

    def emit_middleware_def(self, middleware, emitter, ctx: EmitContext) -> str:
        ctx.add_import("Request", "fastapi")
        composes = []
        for ref in middleware.compose:
            ref_id = self.function_name(ref)
            ctx.add_import(ref_id, f"middleware.{normalize_filename(ref)}")
            composes.append(ref_id)
        handler = None
        if middleware.handler_ref and not composes:
            handler = self.function_name(middleware.handler_ref)
            ctx.add_import(handler, f"handlers.{normalize_filename(middleware.handler_ref)}")
        return self.template_engine.render_template("middleware.py.j2", {
            "name": middleware.name,
            "middleware_type": middleware.middleware_type,
            "composes": composes,
            "handler": handler,
        })

    def emit_entrypoint(self, project, emitter, ctx: EmitContext) -> str:
        global_middleware = self.emit_global_middleware(project.global_middleware, ctx)
        database = project.config.get("database") or {}
        return self.template_engine.render_template("main.py.j2", {
            "imports": emitter.emit_imports(ctx),
            "global_middleware": global_middleware,
            "model_modules": [f"models.{model.name.lower()}" for model in project.models],
            "db_url": database.get("url", "sqlite://db.sqlite3"),
            "port": self.port(project),
            "name": self.project_name(project),
        })

    def wrap_route_file(self, imports: str, route_blocks: str, ctx: EmitContext) -> str:
        return self.template_engine.render_template("routes.py.j2", {
            "imports": imports,
            "route_blocks": route_blocks,
        })

    def emit_domain_expr(self, expr, emitter, ctx: EmitContext) -> Optional[str]:
        if isinstance(expr, HttpRespond) and expr.headers:
            ctx.add_import("JSONResponse", "fastapi.responses")
            headers = emitter.object_literal(
                [(json.dumps(name), emitter.emit_expression(value, ctx)) for name, value in expr.headers]
            )
            body = emitter.emit_expression(expr.body, ctx) if expr.body is not None else "None"
            return f"JSONResponse(status_code={expr.status}, content={body}, headers={headers})"
        return None

    def emit_project_config(self, project) -> List[Tuple[str, str]]:
        context = {
            "name": self.project_name(project),
            "python_version": self.config.custom.get("python_version", ">=3.11"),
            "requirements": REQUIREMENTS,
        }
        return [
            ("pyproject.toml", self.template_engine.render_template("pyproject.toml.j2", context)),
            ("requirements.txt", self.template_engine.render_template("requirements.txt.j2", context)),
        ]
