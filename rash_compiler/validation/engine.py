"""
Validation pass: runs every rule against a project and collects one report.
"""

from ..logging_config import get_logger
from ..spec.errors import ValidationReport
from ..spec.index import build_index
from ..spec.model import ProjectModel
from ..spec.resolver import Resolver
from .rules import cycle_detect, ref_integrity, required_fields, target_compat, version_check

logger = get_logger(__name__)


def validate(project: ProjectModel) -> ValidationReport:
    """
    Validate a loaded project.

    Rules run in a fixed order and none of them stops the pass, so a single
    call surfaces every problem. An ``ok=False`` report is information for
    the caller, not an exception.

    Args:
        project: Loaded project model

    Returns:
        ValidationReport with index diagnostics first, then the findings of
        required fields, reference integrity, target compatibility, cycle
        detection and version check
    """
    report = ValidationReport()

    index, index_errors = build_index(project)
    report.extend(index_errors)

    resolver = Resolver(index)

    logger.debug("Running rule: required fields")
    required_fields.check(project, report)
    logger.debug("Running rule: reference integrity")
    ref_integrity.check(project, resolver, report)
    logger.debug("Running rule: target compatibility")
    target_compat.check(project, report)
    logger.debug("Running rule: cycle detection")
    cycle_detect.check(project, index, report)
    logger.debug("Running rule: version check")
    version_check.check(project, report)

    logger.info(
        "Validation finished: %d errors, %d warnings",
        report.error_count,
        report.warning_count,
    )
    return report
