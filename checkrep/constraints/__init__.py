"""Field constraints: rules as data, predicates as code."""

from .load import load_rep_spec, parse_rep_spec
from .predicates import BUILTIN_PREDICATES, PREDICATES, evaluate_rule
from .resolve import resolve_rule, resolve_rule_table
from .schema import ConstraintRule, FieldSpec, RelationSpec, RepSpec, TypeSpec

__all__ = [
    "BUILTIN_PREDICATES",
    "PREDICATES",
    "ConstraintRule",
    "FieldSpec",
    "RelationSpec",
    "RepSpec",
    "TypeSpec",
    "evaluate_rule",
    "load_rep_spec",
    "parse_rep_spec",
    "resolve_rule",
    "resolve_rule_table",
]
