"""Presence checks for fields every definition must carry."""

from ...spec.errors import ErrorCode, ErrorEntry, ValidationReport
from ...spec.model import ProjectModel

CONFIG_FILE = "rash.config.json"


def _missing(message: str, file: str, path: str, suggestion: str) -> ErrorEntry:
    return ErrorEntry.error(ErrorCode.E_MISSING_FIELD, message, file, path).with_suggestion(
        suggestion
    )


def check(project: ProjectModel, report: ValidationReport):
    config = project.config
    if not config.name.strip():
        report.push(
            _missing(
                "Project name is required",
                CONFIG_FILE,
                "$.name",
                "Add a 'name' field to rash.config.json",
            )
        )
    if not config.version.strip():
        report.push(
            _missing(
                "Project version is required",
                CONFIG_FILE,
                "$.version",
                "Add a 'version' field (e.g., '1.0.0') to rash.config.json",
            )
        )

    for file, route in project.routes:
        if not route.path.strip():
            report.push(
                _missing(
                    "Route path is required",
                    file,
                    "$.path",
                    "Add a 'path' field (e.g., '/v1/users')",
                )
            )
        elif not route.path.strip().startswith("/"):
            report.push(
                ErrorEntry.error(
                    ErrorCode.E_INVALID_PATH,
                    f"Route path '{route.path}' must start with '/'",
                    file,
                    "$.path",
                ).with_suggestion(f"Use '/{route.path.strip()}'")
            )

        if not route.methods:
            report.push(
                _missing(
                    f"Route '{route.path}' has no methods",
                    file,
                    "$.methods",
                    "Add at least one method (GET, POST, etc.) to 'methods'",
                )
            )

        for method, endpoint in route.methods.items():
            if endpoint.handler is None or not endpoint.handler.ref.strip():
                report.push(
                    _missing(
                        f"Handler reference is required for {method.value} {route.path}",
                        file,
                        f"$.methods.{method.value}.handler",
                        'Add a handler reference (e.g., { "ref": "users.getUser" })',
                    )
                )

    for file, schema in project.schemas:
        if not schema.name.strip():
            report.push(
                _missing("Schema name is required", file, "$.name", "Add a 'name' field to the schema")
            )

    for file, model in project.models:
        if not model.name.strip():
            report.push(
                _missing("Model name is required", file, "$.name", "Add a 'name' field to the model")
            )
        if not model.columns:
            report.push(
                _missing(
                    f"Model '{model.name}' has no columns",
                    file,
                    "$.columns",
                    "Add at least one column definition",
                )
            )

    for file, middleware in project.middleware:
        if not middleware.name.strip():
            report.push(
                _missing(
                    "Middleware name is required",
                    file,
                    "$.name",
                    "Add a 'name' field to the middleware",
                )
            )

    for file, handler in project.handlers:
        if not handler.name.strip():
            report.push(
                _missing(
                    "Handler name is required",
                    file,
                    "$.name",
                    "Add a 'name' field to the handler",
                )
            )
