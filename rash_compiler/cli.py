"""
Command-line interface for the rash compiler.

Subcommands: ``validate``, ``generate``, ``targets`` and ``affected``.
"""

import argparse
import json
import sys
from pathlib import Path

from rich import box
from rich.console import Console
from rich.table import Table

from . import __version__
from .codegen.core.config import ConfigError, get_config_manager, load_config
from .codegen.core.errors import CodegenError
from .codegen.generator import CodeGenerator
from .codegen.registry import get_registry
from .ir.convert import ConversionError, convert_project
from .ir.dep_graph import NodeId, build_dependency_graph
from .logging_config import configure_logging, get_logger
from .spec.errors import Severity, ValidationReport
from .spec.types import COMPATIBILITY_MATRIX, Language
from .utils import SpecLoaderError, load_project
from .validation.engine import validate

logger = get_logger(__name__)

console = Console()

SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def _load_and_validate(project_dir: str):
    """Load a project and run validation on top of the loader's diagnostics."""
    project, report = load_project(project_dir)
    report.merge(validate(project))
    return project, report


def _print_report(report: ValidationReport):
    if not report.errors:
        console.print("[green]✓ No problems found[/green]")
        return

    table = Table(title="Diagnostics", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Severity", no_wrap=True)
    table.add_column("Code", style="bold")
    table.add_column("File", style="dim")
    table.add_column("Path", style="blue")
    table.add_column("Message")

    for entry in report.errors:
        message = entry.message
        if entry.suggestion:
            message += f"\n[dim]{entry.suggestion}[/dim]"
        style = SEVERITY_STYLES[entry.severity]
        table.add_row(f"[{style}]{entry.severity.value}[/{style}]", entry.code, entry.file, entry.path, message)

    console.print(table)
    console.print(f"{report.error_count} error(s), {report.warning_count} warning(s)")


def _resolve_target(project, language, framework):
    """Fill in the language and framework left out on the command line.

    A language given without a framework falls back to the first
    implemented framework of that language when the project's own
    framework does not belong to it.
    """
    target = project.config.target
    language = (language or target.language.value).lower()
    if framework:
        return language, framework.lower()
    if language == target.language.value:
        return language, target.framework.value
    for pair_language, pair_framework in get_registry().implemented_pairs():
        if pair_language.value == language:
            return language, pair_framework.value
    raise CLIError(f"No implemented framework for language '{language}'")


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a project and print its diagnostics."""
    _, report = _load_and_validate(args.project_dir)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report)
    return 0 if report.ok else 1


def cmd_generate(args: argparse.Namespace) -> int:
    """Validate, convert and generate a project."""
    if args.skip_validation:
        project, report = load_project(args.project_dir)
    else:
        project, report = _load_and_validate(args.project_dir)
        if report.errors:
            _print_report(report)
    if not report.ok and args.strict:
        raise CLIError("Project has errors; fix them before generating")

    language, framework = _resolve_target(project, args.language, args.framework)

    config = load_config(framework, config_file=args.config)
    problems = get_config_manager().validate_config(config)
    if problems:
        raise CLIError("; ".join(problems))

    project_ir = convert_project(project)
    generator = CodeGenerator(language, framework, config)
    generated = generator.generate(project_ir)

    if args.dry_run:
        table = Table(title=f"Files for {language}/{framework}", box=box.SIMPLE, header_style="bold cyan")
        table.add_column("Path", style="green")
        table.add_column("Lines", justify="right")
        for path, content in generated.files.items():
            table.add_row(path, str(content.count("\n")))
        console.print(table)
        return 0

    output_dir = Path(args.output or project.config.codegen.out_dir)
    if not output_dir.is_absolute() and not args.output:
        output_dir = Path(args.project_dir) / output_dir
    generated.write_to_disk(output_dir)
    console.print(f"[green]✓ Generated {generated.file_count} files in {output_dir}[/green]")
    return 0


def cmd_targets(args: argparse.Namespace) -> int:
    """Print the compatibility matrix and the implemented pairs."""
    implemented = set(get_registry().implemented_pairs())

    table = Table(title="Targets", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Language", style="bold green", no_wrap=True)
    table.add_column("Framework", style="cyan")
    table.add_column("Implemented", justify="center")

    for language in Language:
        for framework in sorted(COMPATIBILITY_MATRIX[language], key=lambda fw: fw.value):
            mark = "[green]✓[/green]" if (language, framework) in implemented else "[dim]-[/dim]"
            table.add_row(language.value, framework.value, mark)

    console.print(table)
    return 0


def cmd_affected(args: argparse.Namespace) -> int:
    """Print the generated files touched by changes to spec elements."""
    try:
        changed = [NodeId.parse(item) for item in args.changes]
    except ValueError as e:
        raise CLIError(str(e)) from e

    project, report = load_project(args.project_dir)
    if not report.ok:
        _print_report(report)
        raise CLIError("Project could not be loaded cleanly")

    target = project.config.target
    generator = CodeGenerator(target.language, target.framework)
    project_ir = convert_project(project)
    config_files = [path for path, _ in generator.adapter.emit_project_config(project_ir)]
    graph = build_dependency_graph(project_ir, generator.file_extension, config_files)
    plan = graph.plan(changed)

    if plan.requires_full_regen:
        console.print("[yellow]⚠ Unknown element changed: full regeneration required[/yellow]")
    for node in plan.affected_specs:
        console.print(f"[blue]{node}[/blue]")
    for path in plan.affected_files:
        console.print(f"[green]{path}[/green]")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rash-compiler",
        description="Validate rash specifications and generate backend projects",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (default: RASH_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Validate a project")
    validate_parser.add_argument("project_dir", help="Directory containing rash.config.json")
    validate_parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    validate_parser.set_defaults(func=cmd_validate)

    generate_parser = subparsers.add_parser("generate", help="Generate a backend project")
    generate_parser.add_argument("project_dir", help="Directory containing rash.config.json")
    generate_parser.add_argument("--language", "-l", help="Target language (default: project target)")
    generate_parser.add_argument("--framework", "-f", help="Target framework (default: project target)")
    generate_parser.add_argument("--output", "-o", help="Output directory (default: codegen.outDir)")
    generate_parser.add_argument("--config", help="Generator configuration file (JSON)")
    generate_parser.add_argument("--dry-run", action="store_true", help="List files without writing them")
    generate_parser.add_argument("--skip-validation", action="store_true", help="Do not run validation")
    generate_parser.add_argument("--strict", action="store_true", help="Refuse to generate when validation fails")
    generate_parser.set_defaults(func=cmd_generate)

    targets_parser = subparsers.add_parser("targets", help="List supported targets")
    targets_parser.set_defaults(func=cmd_targets)

    affected_parser = subparsers.add_parser("affected", help="Show files affected by spec changes")
    affected_parser.add_argument("project_dir", help="Directory containing rash.config.json")
    affected_parser.add_argument("changes", nargs="+", metavar="KIND:NAME", help="Changed elements")
    affected_parser.set_defaults(func=cmd_affected)

    return parser


def main(argv=None) -> int:
    """Entry point of the ``rash-compiler`` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        return args.func(args)
    except (CLIError, SpecLoaderError, ConfigError, ConversionError, CodegenError) as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]✗ Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
