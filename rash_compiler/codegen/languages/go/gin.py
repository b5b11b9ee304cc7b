"""
Gin adapter for Go.

Routes are registered on the engine in ``RegisterRoutes``, handlers take a
single ``*gin.Context`` and middleware are ``gin.HandlerFunc`` factories.
"""

import json
from pathlib import Path
from typing import List, Optional, Tuple

from ....ir.nodes import HttpRespond
from ....spec.types import Framework, Language
from ...core.adapter import CtxAccessPattern, FrameworkAdapter
from ...core.context import EmitContext
from ...core.naming import GO_RESERVED, NamingCase
from .emitter import package_path

GIN_IMPORT = "github.com/gin-gonic/gin"


class GinAdapter(FrameworkAdapter):
    """Adapter for gin applications."""

    reserved_words = GO_RESERVED
    function_case = NamingCase.PASCAL_CASE

    @property
    def framework(self) -> Framework:
        return Framework.GIN

    @property
    def compatible_language(self) -> Language:
        return Language.GO

    @property
    def ctx_access_pattern(self) -> CtxAccessPattern:
        return CtxAccessPattern.SINGLE_CONTEXT

    def get_template_directory(self) -> Optional[Path]:
        """Return the Go templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    def emit_route_registration(self, route, emitter, ctx: EmitContext) -> str:
        ctx.add_import("", GIN_IMPORT)
        ctx.add_import("", package_path(ctx, "handlers"))
        lines = []
        for method, endpoint in route.methods:
            chain = [json.dumps(route.path)]
            if endpoint.middleware:
                ctx.add_import("", package_path(ctx, "middleware"))
                chain.extend(f"middleware.{self.function_name(ref)}()" for ref in endpoint.middleware)
            chain.append(f"handlers.{emitter.identifier(endpoint.handler_ref)}")
            lines.append(f"router.{method.value}({', '.join(chain)})")
        return "\n".join(lines)

    def emit_middleware_apply(self, middleware_ref: str, ctx: EmitContext) -> str:
        ctx.add_import("", package_path(ctx, "middleware"))
        return f"r.Use(middleware.{self.function_name(middleware_ref)}())"

    def emit_handler(self, handler, emitter, ctx: EmitContext) -> str:
        ctx.add_import("", GIN_IMPORT)
        # parameters are read from the context
        lines = [f"func {handler.name}(c *gin.Context) {{"]
        if handler.body:
            lines.append(emitter.emit_block(handler.body, ctx))
        lines.append("}")
        return "\n".join(lines)

    def emit_middleware_def(self, middleware, emitter, ctx: EmitContext) -> str:
        ctx.add_import("", GIN_IMPORT)
        handler = None
        if middleware.handler_ref and not middleware.compose:
            ctx.add_import("", package_path(ctx, "handlers"))
            handler = emitter.identifier(middleware.handler_ref)
        return self.template_engine.render_template("middleware.go.j2", {
            "name": middleware.name,
            "middleware_type": middleware.middleware_type,
            "composes": [self.function_name(ref) for ref in middleware.compose],
            "handler": handler,
        })

    def emit_entrypoint(self, project, emitter, ctx: EmitContext) -> str:
        for path in ("fmt", "os", GIN_IMPORT):
            ctx.add_import("", path)
        if project.models:
            ctx.add_import("", package_path(ctx, "models"))
        ctx.add_import("", package_path(ctx, "routes"))
        global_middleware = self.emit_global_middleware(project.global_middleware, ctx)
        return self.template_engine.render_template("main.go.j2", {
            "imports": emitter.emit_imports(ctx),
            "has_models": bool(project.models),
            "global_middleware": global_middleware,
            "port": self.port(project),
            "name": self.project_name(project),
        })

    def wrap_route_file(self, imports: str, route_blocks: str, ctx: EmitContext) -> str:
        return self.template_engine.render_template("routes.go.j2", {
            "imports": imports,
            "route_lines": [line for line in route_blocks.splitlines() if line.strip()],
        })

    def emit_domain_expr(self, expr, emitter, ctx: EmitContext) -> Optional[str]:
        if isinstance(expr, HttpRespond) and expr.headers:
            calls = [f"c.Header({json.dumps(name)}, {emitter.emit_expression(value, ctx)})"
                     for name, value in expr.headers]
            if expr.body is not None:
                calls.append(f"c.JSON({expr.status}, {emitter.emit_expression(expr.body, ctx)})")
            else:
                calls.append(f"c.Status({expr.status})")
            return f"func() {{ {'; '.join(calls)} }}()"
        return None

    def emit_project_config(self, project) -> List[Tuple[str, str]]:
        files = [
            ("go.mod", self.template_engine.render_template("go.mod.j2", {
                "module": self.project_name(project),
                "go_version": self.config.custom.get("go_version", "1.22"),
            })),
        ]
        if project.models:
            database = project.config.get("database") or {}
            files.append(("src/models/db.go", self.template_engine.render_template("db.go.j2", {
                "dsn": database.get("url", "postgres://localhost:5432/app?sslmode=disable"),
                "models": [model.name for model in project.models],
            })))
        return files
