from __future__ import annotations

"""
Typer CLI entry point and orchestration of the checking pipeline.

`analyze`:
- Accepts a PHP file or directory path
- Finds .php files (traversal.find_source_files for directories)
- Builds a FileContext per file and a symbol table over all of them
- Runs the enabled rules from config.py on every file
- Prints findings (rich tables, or one grep-like line each with --plain)
- Exits 1 when any error-severity finding was reported

`infer` runs the factory-method return type extension over the same files,
and `rules` lists the registered rule ids.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import typer

from phpsniff.config import (
    RULE_REGISTRY,
    Config,
    UnknownRuleError,
    get_default_config,
    get_enabled_rules,
    select_rules,
)
from phpsniff.context import FileContext, load_contexts
from phpsniff.extensions.factory_method import (
    FactoryMethodReturnTypeExtension,
    Inference,
    infer_factory_calls,
)
from phpsniff.findings.models import Finding
from phpsniff.reporting.console import format_plain, print_findings, print_inferences
from phpsniff.rules.base import Rule
from phpsniff.symbols import build_symbol_table
from phpsniff.traversal import find_source_files, is_source_file

logger = logging.getLogger(__name__)

app = typer.Typer(help="phpsniff - coding standard checks for PHP source files.")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@app.callback()
def configure(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level: DEBUG, INFO, WARNING or ERROR.",
    ),
) -> None:
    """Configure logging for all commands."""
    level = log_level.upper()
    if level not in LOG_LEVELS:
        raise typer.BadParameter(f"Unknown log level {log_level!r}; use one of {', '.join(LOG_LEVELS)}")
    logging.basicConfig(level=getattr(logging, level), format="%(levelname)s %(name)s: %(message)s")


def _collect_php_files(target: Path, include_templates: bool = False) -> List[Path]:
    """
    Resolve a target path into a list of PHP files to analyze.

    - If target is a PHP file, return [target]
    - If target is a directory, use traversal.find_source_files()
    - Otherwise, exit with an error.
    """
    if target.is_file():
        if not is_source_file(target, include_templates=include_templates):
            raise typer.BadParameter(f"Target file must be a PHP source file, got: {target}")
        return [target]

    if target.is_dir():
        files = find_source_files(target, include_templates=include_templates)
        if not files:
            logger.warning("No PHP files found under %s", target)
        return files

    raise typer.BadParameter(f"Target path is neither a file nor a directory: {target}")


def _build_config(rule_ids: Optional[Sequence[str]]) -> Config:
    if not rule_ids:
        return get_default_config()
    try:
        return Config(rules=select_rules(rule_ids))
    except UnknownRuleError as exc:
        raise typer.BadParameter(str(exc), param_hint="--rule") from exc


def check_contexts(contexts: Sequence[FileContext], rules: Sequence[Rule], config: Config) -> List[Finding]:
    """Run every rule on every file; a rule that crashes is logged and skipped for that file."""
    findings: List[Finding] = []
    for ctx in contexts:
        for rule in rules:
            try:
                findings.extend(rule.run(ctx, config))
            except Exception as exc:  # pragma: no cover
                logger.exception("Rule %s failed on %s: %s", rule.id, ctx.path, exc)
                continue
    return findings


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="PHP file or directory to check.",
    ),
    rule: Optional[List[str]] = typer.Option(
        None,
        "--rule",
        "-r",
        help="Only run this rule id (repeatable). Defaults to all rules.",
    ),
    plain: bool = typer.Option(False, "--plain", help="One line per finding instead of tables."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show remediation hints."),
    templates: bool = typer.Option(False, "--templates", help="Also check .phtml and .inc files."),
) -> None:
    """
    Check a single PHP file or all PHP files under a directory.
    """
    config = _build_config(rule)
    files = _collect_php_files(target, include_templates=templates)

    rules = list(get_enabled_rules(config))
    if not rules:
        typer.echo("No rules are enabled in the current configuration.")
        raise typer.Exit(code=1)

    contexts = load_contexts(files)
    config.symbols = build_symbol_table(contexts)
    findings = check_contexts(contexts, rules, config)

    if plain:
        if not findings:
            typer.echo("No findings.")
        for finding in sorted(findings, key=lambda f: (str(f.location.path), f.location.line, f.location.column)):
            typer.echo(format_plain(finding))
    else:
        print_findings(findings, analyzed_files=[c.path for c in contexts], verbose=verbose)

    if any(f.severity == "error" for f in findings):
        raise typer.Exit(code=1)


@app.command("rules")
def list_rules() -> None:
    """List the registered rule ids."""
    for rule_id, cls in RULE_REGISTRY.items():
        typer.echo(f"{rule_id}\t{cls.name}")


@app.command()
def infer(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="PHP file or directory to scan for factory calls.",
    ),
    class_name: str = typer.Option(..., "--class", help="Factory class or interface name."),
    method: List[str] = typer.Option(..., "--method", "-m", help="Factory method name (repeatable)."),
    arg: int = typer.Option(0, "--arg", min=0, help="Zero-based index of the class-name argument."),
) -> None:
    """
    Show the return type of each factory method call, taken from its class-name argument.
    """
    extension = FactoryMethodReturnTypeExtension(class_name, method, arg)
    config = Config(extensions=[extension])

    inferences: List[Inference] = []
    for ctx in load_contexts(_collect_php_files(target)):
        for ext in config.extensions:
            inferences.extend(infer_factory_calls(ctx, ext))
    print_inferences(inferences)


def main() -> None:
    """Entry point for the `phpsniff` script and `python -m phpsniff.main`."""
    app()


if __name__ == "__main__":
    main()
