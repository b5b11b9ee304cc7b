"""Utility functions for loading rash projects from disk.

A project is a directory holding ``rash.config.json`` plus any number of
spec files classified by suffix (``*.route.json``, ``*.schema.json``,
``*.model.json``, ``*.middleware.json``, ``*.handler.json``).
"""

import json
from pathlib import Path
from typing import Any

from .logging_config import get_logger
from .spec.errors import ErrorCode, ErrorEntry, ValidationReport
from .spec.model import ProjectModel, RashConfig, SpecParseError, detect_spec_kind

logger = get_logger(__name__)

CONFIG_FILE_NAME = "rash.config.json"
IGNORED_DIRS = {".rash", ".git", "node_modules"}


class SpecLoaderError(Exception):
    """Base exception for project loading errors."""

    pass


class ProjectNotFoundError(SpecLoaderError):
    """The project directory does not exist."""

    pass


class ConfigNotFoundError(SpecLoaderError):
    """The project directory has no rash.config.json."""

    pass


class ConfigParseError(SpecLoaderError):
    """rash.config.json is not valid JSON or has the wrong structure."""

    pass


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_config_file(project_dir: str | Path) -> RashConfig:
    """Load and parse ``rash.config.json``.

    Args:
        project_dir: Project root directory.

    Returns:
        Parsed project configuration.

    Raises:
        ProjectNotFoundError: If the directory does not exist.
        ConfigNotFoundError: If the config file is missing.
        ConfigParseError: If the config file cannot be read or parsed.
    """
    root = Path(project_dir)
    if not root.is_dir():
        logger.error("Project directory not found: %s", root)
        raise ProjectNotFoundError(f"Project directory not found: {root}")

    config_path = root / CONFIG_FILE_NAME
    if not config_path.is_file():
        logger.error("No %s in %s", CONFIG_FILE_NAME, root)
        raise ConfigNotFoundError(f"No {CONFIG_FILE_NAME} found in {root}")

    try:
        return RashConfig.from_dict(_read_json(config_path))
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in %s: %s", config_path, e)
        raise ConfigParseError(f"Invalid JSON in {config_path}: {e}") from e
    except SpecParseError as e:
        logger.error("Invalid project config %s: %s", config_path, e)
        raise ConfigParseError(f"Invalid project config {config_path}: {e}") from e
    except OSError as e:
        logger.error("Error reading %s: %s", config_path, e)
        raise ConfigParseError(f"Error reading {config_path}: {e}") from e


def iter_spec_files(root: Path):
    """Yield ``(relative path, kind)`` for every spec file, in sorted order."""
    for path in sorted(root.rglob("*.json")):
        rel_parts = path.relative_to(root).parts
        if any(part in IGNORED_DIRS for part in rel_parts[:-1]):
            continue
        rel_path = "/".join(rel_parts)
        kind = detect_spec_kind(rel_path)
        if kind is not None and path.is_file():
            yield rel_path, kind


def load_project(project_dir: str | Path) -> tuple[ProjectModel, ValidationReport]:
    """Load every spec file of a project.

    Unreadable or malformed spec files do not stop loading: each one is
    recorded as an ``E_PARSE_ERROR`` diagnostic and skipped.

    Args:
        project_dir: Project root directory.

    Returns:
        Tuple of (project model, report of load failures).

    Raises:
        SpecLoaderError: If the directory or its config file is unusable.
    """
    root = Path(project_dir)
    project = ProjectModel(config=load_config_file(root))
    report = ValidationReport()

    for rel_path, kind in iter_spec_files(root):
        try:
            project.add_document(kind, rel_path, _read_json(root / rel_path))
            logger.debug("Loaded %s spec %s", kind, rel_path)
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON in %s: %s", rel_path, e)
            report.push(ErrorEntry.error(ErrorCode.E_PARSE_ERROR, f"Invalid JSON: {e}", rel_path, "$"))
        except SpecParseError as e:
            logger.warning("Malformed %s spec %s: %s", kind, rel_path, e)
            report.push(ErrorEntry.error(ErrorCode.E_PARSE_ERROR, e.message, rel_path, e.path))
        except OSError as e:
            logger.warning("Error reading %s: %s", rel_path, e)
            report.push(ErrorEntry.error(ErrorCode.E_PARSE_ERROR, f"Cannot read file: {e}", rel_path, "$"))

    logger.info(
        "Loaded project %s: %d routes, %d schemas, %d models, %d middleware, %d handlers",
        project.config.name or root.name,
        len(project.routes),
        len(project.schemas),
        len(project.models),
        len(project.middleware),
        len(project.handlers),
    )
    return project, report
