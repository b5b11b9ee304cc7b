"""Every reference must resolve to a definition of the expected kind."""

from typing import Optional

from ...spec.errors import ValidationReport
from ...spec.model import ProjectModel, Ref
from ...spec.resolver import Resolver
from ...spec.types import SymbolKind

CONFIG_FILE = "rash.config.json"


def _check_ref(
    resolver: Resolver,
    report: ValidationReport,
    ref: Optional[Ref],
    kind: SymbolKind,
    file: str,
    path: str,
):
    # Empty handler refs are reported by the required-fields rule.
    if ref is None or not ref.ref.strip():
        return
    resolution = resolver.resolve_or_error(ref.ref, kind, file, path)
    if resolution.error is not None:
        report.push(resolution.error)


def check(project: ProjectModel, resolver: Resolver, report: ValidationReport):
    for file, route in project.routes:
        for method, endpoint in route.methods.items():
            base = f"$.methods.{method.value}"
            _check_ref(
                resolver, report, endpoint.handler, SymbolKind.HANDLER, file, f"{base}.handler.ref"
            )
            for i, mw_ref in enumerate(endpoint.middleware):
                _check_ref(
                    resolver,
                    report,
                    mw_ref,
                    SymbolKind.MIDDLEWARE,
                    file,
                    f"{base}.middleware[{i}].ref",
                )
            if endpoint.request is not None:
                _check_ref(
                    resolver,
                    report,
                    endpoint.request.query,
                    SymbolKind.SCHEMA,
                    file,
                    f"{base}.request.query.ref",
                )
                if endpoint.request.body is not None:
                    _check_ref(
                        resolver,
                        report,
                        endpoint.request.body.ref,
                        SymbolKind.SCHEMA,
                        file,
                        f"{base}.request.body.ref",
                    )
            for status, response in endpoint.response.items():
                _check_ref(
                    resolver,
                    report,
                    response.schema,
                    SymbolKind.SCHEMA,
                    file,
                    f"{base}.response.{status}.schema.ref",
                )

    for i, mw_ref in enumerate(project.config.global_middleware):
        _check_ref(
            resolver,
            report,
            mw_ref,
            SymbolKind.MIDDLEWARE,
            CONFIG_FILE,
            f"$.middleware.global[{i}].ref",
        )

    for file, middleware in project.middleware:
        _check_ref(resolver, report, middleware.handler, SymbolKind.HANDLER, file, "$.handler.ref")
        for i, composed in enumerate(middleware.compose):
            _check_ref(
                resolver, report, composed, SymbolKind.MIDDLEWARE, file, f"$.compose[{i}].ref"
            )

    for file, model in project.models:
        for rel_name, relation in model.relations.items():
            _check_ref(
                resolver,
                report,
                Ref(relation.target),
                SymbolKind.MODEL,
                file,
                f"$.relations.{rel_name}.target",
            )
