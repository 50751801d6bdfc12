"""Checked values backed by plain mappings, described by a RepSpec."""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from .constraints.predicates import check_field
from .constraints.schema import RelationSpec, RepSpec, TypeSpec
from .errors import RepErrors
from .protocol import CheckRep


_RELATIONS: dict[str, tuple[Callable[[Any, Any], bool], str]] = {
    "eq": (operator.eq, "equal"),
    "ne": (operator.ne, "not equal"),
    "gt": (operator.gt, "be >"),
    "lt": (operator.lt, "be <"),
    "ge": (operator.ge, "be >="),
    "le": (operator.le, "be <="),
}


class Record(CheckRep):
    """One mapping checked against one TypeSpec."""

    def __init__(self, spec: RepSpec, data: Mapping[str, Any], type_name: str | None = None):
        self.spec = spec
        self.type_spec: TypeSpec = spec.types[type_name or spec.root]
        self.data = data

    def check_indie_fields(self, errors: RepErrors) -> None:
        for f in self.type_spec.fields:
            if f.name not in self.data:
                errors.add(f"self.{f.name} is missing")
                continue
            check_field(self.data[f.name], f.rules, f.name, errors)

        for f in self.type_spec.fields:
            if f.check_type is None or f.name not in self.data:
                continue
            value = self.data[f.name]
            if not isinstance(value, Mapping):
                errors.add(f"self.{f.name} must be a {f.check_type} table")
                continue
            Record(self.spec, value, f.check_type).check_indie_fields(errors)

    def check_fields(self, errors: RepErrors) -> None:
        declared = {f.name for f in self.type_spec.fields}
        for rel in self.type_spec.relations:
            missing = [n for n in (rel.left, rel.right) if n not in self.data]
            for name in missing:
                # Declared fields already reported themselves.
                if name not in declared:
                    errors.add(f"self.{name} is missing")
            if missing:
                continue
            if not _relation_holds(rel, self.data[rel.left], self.data[rel.right]):
                errors.add(rel.message or _relation_message(rel))


def _relation_holds(rel: RelationSpec, left: Any, right: Any) -> bool:
    op, _ = _RELATIONS[rel.op]
    try:
        return bool(op(left, right))
    except TypeError:
        return False


def _relation_message(rel: RelationSpec) -> str:
    _, verb = _RELATIONS[rel.op]
    return f"self.{rel.left} must {verb} self.{rel.right}"


@dataclass
class RecordReport:
    index: int
    errors: RepErrors

    @property
    def passed(self) -> bool:
        return self.errors.is_empty()


def check_records(spec: RepSpec, records: Iterable[Mapping[str, Any]]) -> list[RecordReport]:
    """Collect violations for every record, without reporting them."""
    reports = []
    for i, data in enumerate(records):
        if not isinstance(data, Mapping):
            errors = RepErrors()
            errors.add(f"record must be a table, got {type(data).__name__}")
        else:
            errors = Record(spec, data).collect_rep_errors()
        reports.append(RecordReport(index=i, errors=errors))
    return reports
