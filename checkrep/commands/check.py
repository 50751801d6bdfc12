"""Commands for resolving rep specs and checking data documents against them."""

import json
import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..constraints import load_rep_spec
from ..constraints.predicates import BUILTIN_PREDICATES, MESSAGE_TEMPLATES
from ..constraints.schema import FLAG_KINDS, RepSpec
from ..errors import RuleResolutionError
from ..records import Record, RecordReport, check_records
from ..reporting import DEFAULT_LOGGER_NAME as VIOLATIONS_LOGGER
from ..reporting import diagnostics


def _load_records(data_path: Path) -> list[Any]:
    text = data_path.read_text(encoding="utf-8")
    if data_path.suffix.lower() in (".yaml", ".yml"):
        import yaml  # type: ignore

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML: {e}") from e
    else:
        data = json.loads(text)
    if data is None:
        return []
    return data if isinstance(data, list) else [data]


def _describe_rule(rule) -> str:
    if rule.kind == "with":
        return f"with {rule.predicate_name}"
    if rule.kind in FLAG_KINDS:
        return rule.kind
    return f"{rule.kind} {rule.param!r}"


def run_kinds() -> int:
    """Print the supported rule kinds and their message templates."""
    console = Console()
    table = Table(title="Rule kinds")
    table.add_column("Kind", style="cyan")
    table.add_column("Parameter")
    table.add_column("Message on failure")
    for kind, template in MESSAGE_TEMPLATES.items():
        if kind in FLAG_KINDS:
            param = "-"
        elif kind == "with":
            param = "predicate"
        else:
            param = "literal"
        table.add_row(kind, param, template)
    console.print(table)
    console.print(f"Built-in predicates: {', '.join(BUILTIN_PREDICATES)}", style="dim")
    return 0


def run_resolve(spec_path: Path) -> int:
    """Resolve a rep spec and print its types; exit 1 on resolution errors."""
    console = Console(stderr=True)
    try:
        spec = load_rep_spec(spec_path)
    except RuleResolutionError as e:
        console.print(f"Resolution failed: {e}", style="bold red")
        return 1

    out = Console()
    out.print(f"[bold]{spec.spec_id}[/] v{spec.version} (root: {spec.root})")
    for t in spec.types.values():
        table = Table(title=t.name, title_justify="left")
        table.add_column("Field", style="cyan")
        table.add_column("Rules")
        table.add_column("Check")
        for f in t.fields:
            table.add_row(f.name, ", ".join(_describe_rule(r) for r in f.rules) or "-", f.check_type or "-")
        for rel in t.relations:
            table.add_row(f"{rel.left} ~ {rel.right}", f"relation {rel.op}", "-")
        out.print(table)
    return 0


def _report_to_dict(report: RecordReport) -> dict:
    return {"index": report.index, "passed": report.passed, "errors": report.errors.to_list()}


def _log_violations(spec: RepSpec, records: list[Any]) -> int:
    logger = logging.getLogger(VIOLATIONS_LOGGER)
    saved_level = logger.level
    handler = RichHandler(show_path=False)
    logger.setLevel(logging.INFO)
    logger.addHandler(handler)

    failed = 0
    try:
        with diagnostics(logger):
            for i, data in enumerate(records):
                if not isinstance(data, dict):
                    logger.error("record %d: must be a table", i)
                    failed += 1
                    continue
                record = Record(spec, data)
                if not record.collect_rep_errors().is_empty():
                    failed += 1
                    logger.info("record %d", i)
                    record.check_rep()
    finally:
        logger.removeHandler(handler)
        logger.setLevel(saved_level)
    return 1 if failed else 0


def run_check(spec_path: Path, data_path: Path, output_json: bool = False, log: bool = False) -> int:
    """Check every record of a JSON/YAML document against a rep spec.

    Returns:
        Exit code (0 = all records pass, 1 = violations or resolution errors)
    """
    console = Console(stderr=True)
    try:
        spec = load_rep_spec(spec_path)
    except RuleResolutionError as e:
        console.print(f"Resolution failed: {e}", style="bold red")
        return 1

    try:
        records = _load_records(data_path)
    except (OSError, ValueError) as e:
        console.print(f"Cannot read {data_path}: {e}", style="bold red")
        return 1

    if log:
        return _log_violations(spec, records)

    reports = check_records(spec, records)
    failed = [r for r in reports if not r.passed]

    if output_json:
        print(json.dumps({"spec_id": spec.spec_id, "records": [_report_to_dict(r) for r in reports]}, indent=2))
        return 1 if failed else 0

    if not failed:
        console.print(f"✓ {len(reports)} record(s) satisfy {spec.root}", style="green")
        return 0

    table = Table(title=f"Violations ({spec.root})")
    table.add_column("Record", justify="right")
    table.add_column("Violation", style="red")
    for report in failed:
        for error in report.errors:
            table.add_row(str(report.index), error)
    Console().print(table)
    console.print(f"✗ {len(failed)} of {len(reports)} record(s) violate {spec.root}", style="bold red")
    return 1
