"""CLI tests for phpsniff.main using typer's CliRunner."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from phpsniff.config import Config, select_rules
from phpsniff.context import FileContext
from phpsniff.main import app, check_contexts

runner = CliRunner()

CLEAN = b"<?php\ndeclare(strict_types=1);\n\n$values = [1, 2];\n"
BAD = b"<?php\n\nif (null === $value) {\n    $values = [1, 2,];\n}\n"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "Clean.php").write_bytes(CLEAN)
    (tmp_path / "Bad.php").write_bytes(BAD)
    return tmp_path


def test_rules_lists_registry():
    result = runner.invoke(app, ["rules"])
    assert result.exit_code == 0
    assert "strict-declaration\tStrict type declaration" in result.output
    assert "forbidden-array-trailing-comma" in result.output


def test_analyze_clean_file(tmp_path):
    target = tmp_path / "Clean.php"
    target.write_bytes(CLEAN)
    result = runner.invoke(app, ["analyze", str(target), "--plain"])
    assert result.exit_code == 0
    assert "No findings." in result.output


def test_analyze_reports_findings_and_fails(project):
    result = runner.invoke(app, ["analyze", str(project), "--plain"])
    assert result.exit_code == 1
    lines = result.output.strip().splitlines()
    assert len(lines) == 3
    assert "Bad.php:1:1: ERROR [strict-declaration.MissingDeclaration]" in lines[0]
    assert "[yoda-condition.YodaCondition]" in lines[1]
    assert "Bad.php:4:20: ERROR [forbidden-array-trailing-comma.TrailingComma]" in lines[2]


def test_analyze_single_rule(project):
    result = runner.invoke(app, ["analyze", str(project / "Bad.php"), "--plain", "-r", "yoda-condition"])
    assert result.exit_code == 1
    assert "yoda-condition.YodaCondition" in result.output
    assert "strict-declaration" not in result.output


def test_analyze_unknown_rule(project):
    result = runner.invoke(app, ["analyze", str(project), "--rule", "no-such-rule"])
    assert result.exit_code == 2


def test_analyze_rejects_non_php_file(tmp_path):
    target = tmp_path / "notes.txt"
    target.write_text("hello")
    result = runner.invoke(app, ["analyze", str(target)])
    assert result.exit_code == 2


def test_analyze_missing_path(tmp_path):
    result = runner.invoke(app, ["analyze", str(tmp_path / "missing.php")])
    assert result.exit_code == 2


def test_analyze_rich_output(project):
    result = runner.invoke(app, ["analyze", str(project), "--verbose"])
    assert result.exit_code == 1
    assert "3 violations" in result.output
    assert "Files Summary" in result.output


def test_analyze_templates_flag(tmp_path):
    (tmp_path / "layout.phtml").write_bytes(b"<p>hi</p>\n<p><?= $title ?></p>\n")
    assert runner.invoke(app, ["analyze", str(tmp_path), "--plain"]).exit_code == 0
    result = runner.invoke(app, ["analyze", str(tmp_path), "--plain", "--templates"])
    assert result.exit_code == 0
    assert "No findings." in result.output


def test_bad_log_level(project):
    result = runner.invoke(app, ["--log-level", "chatty", "rules"])
    assert result.exit_code == 2


def test_infer(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "Service.php"
    target.write_bytes(
        rb"""<?php
declare(strict_types=1);

namespace App;

$invoice = $builder->build(Models\Invoice::class);
$other = $builder->make('Foo');
"""
    )
    result = runner.invoke(app, ["infer", str(target), "--class", "App\\Builder", "-m", "build"])
    assert result.exit_code == 0
    assert "App\\Models\\Invoice" in result.output
    assert "make" not in result.output


def test_check_contexts_runs_every_rule():
    contexts = [FileContext.from_source(BAD, Path("Bad.php"))]
    config = Config(rules=select_rules(["strict-declaration", "yoda-condition"]))
    findings = check_contexts(contexts, config.rules, config)
    assert [f.rule_id for f in findings] == ["strict-declaration", "yoda-condition"]
