"""The configured target language and framework must be a supported pairing."""

from ...spec.errors import ErrorCode, ErrorEntry, ValidationReport
from ...spec.model import ProjectModel
from ...spec.types import compatible_frameworks, is_compatible


def check(project: ProjectModel, report: ValidationReport):
    target = project.config.target
    if is_compatible(target.language, target.framework):
        return

    allowed = sorted(fw.value for fw in compatible_frameworks(target.language))
    report.push(
        ErrorEntry.error(
            ErrorCode.E_INCOMPATIBLE_TARGET,
            f"Framework '{target.framework.value}' is not compatible with "
            f"language '{target.language.value}'",
            "rash.config.json",
            "$.target",
        ).with_suggestion(
            f"Choose a framework compatible with '{target.language.value}': "
            f"{', '.join(allowed)}"
        )
    )
