from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal


RuleKind = Literal["default", "true", "false", "eq", "ne", "gt", "lt", "ge", "le", "with"]
RelationOp = Literal["eq", "ne", "gt", "lt", "ge", "le"]

# Kinds that take no parameter.
FLAG_KINDS: tuple[str, ...] = ("default", "true", "false")
# Kinds that take a literal of the field's type.
LITERAL_KINDS: tuple[str, ...] = ("eq", "ne", "gt", "lt", "ge", "le")
ORDERING_KINDS: tuple[str, ...] = ("gt", "lt", "ge", "le")
RULE_KINDS: tuple[str, ...] = (*FLAG_KINDS, *LITERAL_KINDS, "with")


@dataclass(frozen=True)
class ConstraintRule:
    """One predicate over one field.

    `param` is the literal for comparison kinds, the resolved callable for
    `with`, and the default of the field's type for `default`.
    """

    kind: RuleKind
    param: Any = None
    # Display name of a `with` predicate, used in messages.
    predicate_name: str | None = None


@dataclass(frozen=True)
class FieldSpec:
    name: str
    rules: tuple[ConstraintRule, ...] = ()
    recurse: bool = False
    # Type name to recurse into, for data-driven specs.
    check_type: str | None = None


@dataclass(frozen=True)
class RelationSpec:
    """A data-driven interrelated check comparing two fields."""

    left: str
    op: RelationOp
    right: str
    message: str | None = None


@dataclass(frozen=True)
class TypeSpec:
    name: str
    fields: tuple[FieldSpec, ...] = ()
    relations: tuple[RelationSpec, ...] = ()


@dataclass(frozen=True)
class RepSpec:
    spec_id: str
    version: int
    root: str
    description: str | None = None
    types: dict[str, TypeSpec] = field(default_factory=dict)


PredicateFn = Callable[[Any], bool]
