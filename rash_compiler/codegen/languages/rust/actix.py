"""
Actix-web adapter for Rust.

Routes are registered in a ``configure`` function, handlers take extractor
arguments and middleware is written with ``middleware::from_fn``.
"""

import json
from pathlib import Path
from typing import List, Optional, Tuple

from ....ir.nodes import HttpRespond
from ....ir.paths import colon_to_brace
from ....spec.types import Framework, Language
from ...core.adapter import CtxAccessPattern, FrameworkAdapter
from ...core.context import EmitContext
from ...core.naming import RUST_RESERVED, NamingCase, normalize_filename


class ActixAdapter(FrameworkAdapter):
    """Adapter for actix-web applications."""

    reserved_words = RUST_RESERVED
    function_case = NamingCase.SNAKE_CASE

    @property
    def framework(self) -> Framework:
        return Framework.ACTIX

    @property
    def compatible_language(self) -> Language:
        return Language.RUST

    @property
    def ctx_access_pattern(self) -> CtxAccessPattern:
        return CtxAccessPattern.EXTRACTORS

    def get_template_directory(self) -> Optional[Path]:
        """Return the Rust templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    def normalize_path(self, path: str) -> str:
        return colon_to_brace(path)

    def emit_route_registration(self, route, emitter, ctx: EmitContext) -> str:
        ctx.add_import("", "crate::handlers")
        path = json.dumps(route.path)
        lines = []
        for method, endpoint in route.methods:
            target = f"web::{method.value.lower()}().to(handlers::{emitter.identifier(endpoint.handler_ref)})"
            if not endpoint.middleware:
                lines.append(f".route({path}, {target})")
                continue
            # per-endpoint middleware needs its own resource
            ctx.add_import("", "crate::middleware")
            wraps = "".join(self.emit_middleware_apply(ref, ctx) for ref in endpoint.middleware)
            lines.append(f".service(web::resource({path}){wraps}.route({target}))")
        return "\n".join(lines)

    def emit_middleware_apply(self, middleware_ref: str, ctx: EmitContext) -> str:
        ctx.add_import("", "actix_web::middleware::from_fn")
        return f".wrap(from_fn(middleware::{self.function_name(middleware_ref)}))"

    def emit_handler(self, handler, emitter, ctx: EmitContext) -> str:
        ctx.add_import("", "actix_web::{HttpRequest, Responder}")
        params = ["req: HttpRequest"]
        params.extend(f"{param.name}: {emitter.emit_type(param.type_ir)}" for param in handler.params)
        # actix handlers are always async
        lines = [f"pub async fn {handler.name}({', '.join(params)}) -> impl Responder {{"]
        if handler.body:
            lines.append(emitter.emit_block(handler.body, ctx))
        lines.append("}")
        return "\n".join(lines)

    def emit_middleware_def(self, middleware, emitter, ctx: EmitContext) -> str:
        handler = None
        if middleware.handler_ref and not middleware.compose:
            handler = emitter.identifier(middleware.handler_ref)
        return self.template_engine.render_template("middleware.rs.j2", {
            "name": middleware.name,
            "middleware_type": middleware.middleware_type,
            "composes": [self.function_name(ref) for ref in middleware.compose],
            "handler": handler,
        })

    def emit_entrypoint(self, project, emitter, ctx: EmitContext) -> str:
        global_middleware = self.emit_global_middleware(project.global_middleware, ctx)
        return self.template_engine.render_template("main.rs.j2", {
            "imports": emitter.emit_imports(ctx),
            "modules": [section for section, _ in self._sections(project)],
            "global_middleware": global_middleware,
            "port": self.port(project),
            "name": self.project_name(project),
        })

    def wrap_route_file(self, imports: str, route_blocks: str, ctx: EmitContext) -> str:
        return self.template_engine.render_template("routes.rs.j2", {
            "imports": imports,
            "route_lines": [line for line in route_blocks.splitlines() if line.strip()],
        })

    def emit_domain_expr(self, expr, emitter, ctx: EmitContext) -> Optional[str]:
        if isinstance(expr, HttpRespond) and expr.headers:
            ctx.add_import("", "actix_web::HttpResponse")
            ctx.add_import("", "actix_web::http::StatusCode")
            builder = f"HttpResponse::build(StatusCode::from_u16({expr.status}).unwrap())"
            for name, value in expr.headers:
                builder += f".insert_header(({json.dumps(name)}, {emitter.emit_expression(value, ctx)}))"
            body = emitter.emit_expression(expr.body, ctx) if expr.body is not None else "()"
            return f"{builder}.json({body})"
        return None

    def _sections(self, project):
        """Source sections present in the project, with their module names."""
        sections = [
            ("handlers", [normalize_filename(h.name) for h in project.handlers]),
            ("middleware", [normalize_filename(m.name) for m in project.middleware]),
            ("models", [m.name.lower() for m in project.models]),
            ("schemas", [s.name.lower() for s in project.schemas]),
        ]
        return [(section, modules) for section, modules in sections if modules]

    def emit_project_config(self, project) -> List[Tuple[str, str]]:
        name = self.project_name(project)
        files = [
            ("Cargo.toml", self.template_engine.render_template("Cargo.toml.j2", {
                "name": name,
                "edition": self.config.custom.get("edition", "2021"),
            })),
        ]
        for section, modules in self._sections(project):
            files.append((
                f"src/{section}/mod.rs",
                self.template_engine.render_template("mod.rs.j2", {"modules": modules}),
            ))
        return files
