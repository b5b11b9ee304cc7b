"""
Express adapter for TypeScript.

Routes register on an express ``Router``, handlers receive
``(req, res, next)`` and models are persisted through Prisma.
"""

import json
from pathlib import Path
from typing import List, Optional, Tuple

from ....ir.nodes import HttpRespond
from ....logging_config import get_logger
from ....spec.types import Framework, Language
from ...core.adapter import CtxAccessPattern, FrameworkAdapter
from ...core.context import EmitContext
from ...core.naming import TYPESCRIPT_RESERVED, normalize_filename

logger = get_logger(__name__)

_PRISMA_TYPES = {
    "string": "String",
    "varchar": "String",
    "text": "String",
    "uuid": "String",
    "integer": "Int",
    "int": "Int",
    "bigint": "BigInt",
    "serial": "Int",
    "float": "Float",
    "double": "Float",
    "decimal": "Decimal",
    "numeric": "Decimal",
    "boolean": "Boolean",
    "bool": "Boolean",
    "datetime": "DateTime",
    "timestamp": "DateTime",
    "date": "DateTime",
    "json": "Json",
    "jsonb": "Json",
}

_PRISMA_DEFAULT_FUNCTIONS = {"autoincrement", "uuid", "cuid", "now"}

_PRISMA_PROVIDERS = {"postgres": "postgresql", "postgresql": "postgresql", "mysql": "mysql",
                     "sqlite": "sqlite", "mongodb": "mongodb", "sqlserver": "sqlserver"}


def _prisma_default(value) -> str:
    if isinstance(value, str) and value in _PRISMA_DEFAULT_FUNCTIONS:
        return f"@default({value}())"
    return f"@default({json.dumps(value)})"


def prisma_column(name: str, column: dict) -> str:
    """Render one model column as a Prisma field line."""
    col_type = column.get("type", "string")
    line = f"{name} {_PRISMA_TYPES.get(col_type, col_type)}"
    if column.get("nullable"):
        line += "?"
    if column.get("primaryKey"):
        line += " @id"
    if column.get("unique"):
        line += " @unique"
    if "default" in column:
        line += " " + _prisma_default(column["default"])
    if col_type == "uuid" and "default" not in column:
        line += " @db.Uuid"
    return line


def prisma_relation(name: str, relation: dict) -> str:
    target = relation.get("target", "Unknown")
    rel_type = relation.get("type")
    if rel_type == "hasOne":
        return f"{name} {target}?"
    if rel_type == "belongsTo":
        foreign_key = relation.get("foreignKey") or f"{name}Id"
        return f"{name} {target} @relation(fields: [{foreign_key}], references: [id])"
    # hasMany, manyToMany
    return f"{name} {target}[]"


def prisma_index(index: dict) -> str:
    fields = ", ".join(index.get("fields", []))
    return f"@@unique([{fields}])" if index.get("unique") else f"@@index([{fields}])"


class ExpressAdapter(FrameworkAdapter):
    """Adapter for Express applications."""

    reserved_words = TYPESCRIPT_RESERVED

    @property
    def framework(self) -> Framework:
        return Framework.EXPRESS

    @property
    def compatible_language(self) -> Language:
        return Language.TYPESCRIPT

    @property
    def ctx_access_pattern(self) -> CtxAccessPattern:
        return CtxAccessPattern.REQ_RES

    def get_template_directory(self) -> Optional[Path]:
        """Return the TypeScript templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    def emit_route_registration(self, route, emitter, ctx: EmitContext) -> str:
        lines = []
        for method, endpoint in route.methods:
            chain = []
            for middleware_ref in endpoint.middleware:
                middleware_id = emitter.identifier(middleware_ref)
                ctx.add_import(f"{{ {middleware_id} }}", f"../middleware/{normalize_filename(middleware_ref)}")
                chain.append(middleware_id)
            handler_id = emitter.identifier(endpoint.handler_ref)
            ctx.add_import(f"{{ {handler_id} }}", f"../handlers/{normalize_filename(endpoint.handler_ref)}")
            chain.append(handler_id)
            lines.append(f"router.{method.value.lower()}({json.dumps(route.path)}, {', '.join(chain)});")
        return "\n".join(lines)

    def emit_middleware_apply(self, middleware_ref: str, ctx: EmitContext) -> str:
        middleware_id = self.function_name(middleware_ref)
        ctx.add_import(f"{{ {middleware_id} }}", f"./middleware/{normalize_filename(middleware_ref)}")
        return f"app.use({middleware_id});"

    def emit_handler(self, handler, emitter, ctx: EmitContext) -> str:
        ctx.add_import("{ Request, Response, NextFunction }", "express")
        async_kw = "async " if handler.is_async else ""
        lines = [f"export {async_kw}function {handler.name}(req: Request, res: Response, next: NextFunction) {{"]
        if handler.body:
            lines.append(emitter.emit_block(handler.body, ctx))
        lines.append("}")
        return "\n".join(lines)

    def emit_middleware_def(self, middleware, emitter, ctx: EmitContext) -> str:
        if middleware.compose:
            chain = []
            for ref in middleware.compose:
                ref_id = emitter.identifier(ref)
                ctx.add_import(f"{{ {ref_id} }}", f"./{normalize_filename(ref)}")
                chain.append(ref_id)
            return f"export const {middleware.name} = [{', '.join(chain)}];"

        ctx.add_import("{ Request, Response, NextFunction }", "express")
        lines = [f"export async function {middleware.name}(req: Request, res: Response, next: NextFunction) {{"]
        if middleware.handler_ref:
            handler_id = emitter.identifier(middleware.handler_ref)
            ctx.add_import(f"{{ {handler_id} }}", f"../handlers/{normalize_filename(middleware.handler_ref)}")
            lines.append(f"  return {handler_id}(req, res, next);")
        else:
            lines.append(f"  // {middleware.middleware_type} middleware")
            lines.append("  next();")
        lines.append("}")
        return "\n".join(lines)

    def emit_entrypoint(self, project, emitter, ctx: EmitContext) -> str:
        global_middleware = self.emit_global_middleware(project.global_middleware, ctx)
        return self.template_engine.render_template("entrypoint.ts.j2", {
            "imports": emitter.emit_imports(ctx),
            "global_middleware": global_middleware,
            "port": self.port(project),
            "name": self.project_name(project),
        })

    def wrap_route_file(self, imports: str, route_blocks: str, ctx: EmitContext) -> str:
        return self.template_engine.render_template("routes.ts.j2", {
            "imports": imports,
            "route_blocks": route_blocks,
        })

    def emit_domain_expr(self, expr, emitter, ctx: EmitContext) -> Optional[str]:
        if isinstance(expr, HttpRespond) and expr.headers:
            headers = emitter.object_literal(
                [(name, emitter.emit_expression(value, ctx)) for name, value in expr.headers]
            )
            body = emitter.emit_expression(expr.body, ctx) if expr.body is not None else "undefined"
            return f"res.set({headers}).status({expr.status}).json({body})"
        return None

    def emit_project_config(self, project) -> List[Tuple[str, str]]:
        name = self.project_name(project)
        custom = self.config.custom
        package_json = {
            "name": name,
            "version": "0.1.0",
            "private": True,
            "type": custom.get("module_type", "commonjs"),
            "scripts": {
                "dev": "tsx watch src/index.ts",
                "build": "tsc",
                "start": "node dist/index.js",
                "db:generate": "prisma generate",
                "db:push": "prisma db push",
            },
            "dependencies": {
                "express": "^4.18.0",
                "zod": "^3.22.0",
                "@prisma/client": "^5.0.0",
                "bcrypt": "^5.1.0",
                "jsonwebtoken": "^9.0.0",
            },
            "devDependencies": {
                "typescript": "^5.3.0",
                "@types/express": "^4.17.0",
                "@types/node": custom.get("node_types_version", "^20.0.0"),
                "@types/bcrypt": "^5.0.0",
                "@types/jsonwebtoken": "^9.0.0",
                "tsx": "^4.0.0",
                "prisma": "^5.0.0",
            },
        }
        tsconfig = {
            "compilerOptions": {
                "target": "ES2022",
                "module": "NodeNext",
                "moduleResolution": "NodeNext",
                "outDir": "./dist",
                "rootDir": "./src",
                "strict": True,
                "esModuleInterop": True,
                "skipLibCheck": True,
                "forceConsistentCasingInFileNames": True,
                "resolveJsonModule": True,
                "sourceMap": True,
            },
            "include": ["src/**/*"],
            "exclude": ["node_modules", "dist"],
        }
        files = [
            ("package.json", json.dumps(package_json, indent=2) + "\n"),
            ("tsconfig.json", json.dumps(tsconfig, indent=2) + "\n"),
        ]
        if project.models:
            files.append(("prisma/schema.prisma", self._prisma_schema(project)))
            files.append(("src/prisma.ts", self.template_engine.render_template("prisma_client.ts.j2", {})))
        return files

    def _prisma_schema(self, project) -> str:
        database = project.config.get("database") or {}
        db_type = database.get("type", "postgresql")
        provider = _PRISMA_PROVIDERS.get(db_type)
        if provider is None:
            logger.warning("Unknown database type '%s', using postgresql", db_type)
            provider = "postgresql"
        models = [
            {
                "name": model.name,
                "fields": [prisma_column(n, c) for n, c in model.columns]
                + [prisma_relation(n, r) for n, r in model.relations],
                "indexes": [prisma_index(i) for i in model.indexes],
                "table_name": model.table_name,
            }
            for model in project.models
        ]
        return self.template_engine.render_template("schema.prisma.j2", {
            "provider": provider,
            "models": models,
        })
