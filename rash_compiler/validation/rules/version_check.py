"""The project's spec version must be compatible with the supported one."""

from packaging.version import InvalidVersion, Version

from ...spec.errors import ErrorCode, ErrorEntry, ValidationReport
from ...spec.model import ProjectModel

SUPPORTED_VERSION = "1.0.0"


def _parse(version: str) -> Version:
    parsed = Version(version)
    # MAJOR.MINOR.PATCH, optionally with a pre-release suffix
    if len(parsed.release) != 3 or parsed.epoch or parsed.local:
        raise InvalidVersion(version)
    return parsed


def check(project: ProjectModel, report: ValidationReport):
    version = project.config.version.strip()
    # A missing version is reported by the required-fields rule.
    if not version:
        return

    try:
        parsed = _parse(version)
    except InvalidVersion:
        report.push(
            ErrorEntry.error(
                ErrorCode.E_VERSION_MISMATCH,
                f"Invalid semver version: '{version}'",
                "rash.config.json",
                "$.version",
            ).with_suggestion("Version must be valid semver (e.g., '1.0.0')")
        )
        return

    supported = Version(SUPPORTED_VERSION)
    if (parsed.major, parsed.minor) != (supported.major, supported.minor):
        report.push(
            ErrorEntry.error(
                ErrorCode.E_VERSION_MISMATCH,
                f"Unsupported spec version '{version}'. "
                f"Expected compatible with {SUPPORTED_VERSION}",
                "rash.config.json",
                "$.version",
            ).with_suggestion("Update the version field to a 1.0.x release")
        )
