"""
The checking protocol.

A checked type opts into two independent capabilities:
- CheckIndieFields: per-field rules, plus recursion into owned sub-objects
- CheckFields: hand-written checks across several fields (default: none)

CheckRep composes both into check_rep(), the assertion entry point.
Field rules are declared with rep() on dataclass fields and resolved once
by the @checked class decorator.
"""

from __future__ import annotations

import builtins
import dataclasses
import logging
import typing
from typing import Any, Callable, ClassVar, Mapping, TypeVar, overload

from .constraints.predicates import check_field
from .constraints.resolve import MISSING, resolve_declarations
from .constraints.schema import ConstraintRule, FieldSpec, PredicateFn
from .errors import RepErrors, RuleResolutionError
from .reporting import report_violations


logger = logging.getLogger(__name__)

REP_METADATA_KEY = "checkrep"

T = TypeVar("T", bound=type)


class CheckIndieFields:
    """Checks each declared field in isolation."""

    __rep_fields__: ClassVar[tuple[FieldSpec, ...]] = ()

    def check_indie_fields(self, errors: RepErrors) -> None:
        for spec in type(self).__rep_fields__:
            value = getattr(self, spec.name)
            check_field(value, spec.rules, spec.name, errors)
        for spec in type(self).__rep_fields__:
            if spec.recurse:
                check_nested(getattr(self, spec.name), errors)


class CheckFields:
    """Checks over interrelated fields. Override to append violations."""

    def check_fields(self, errors: RepErrors) -> None:
        pass


class CheckRep(CheckIndieFields, CheckFields):
    def collect_rep_errors(self) -> RepErrors:
        """Run a full check pass and return the violations without reporting them."""
        errors = RepErrors()
        self.check_indie_fields(errors)
        self.check_fields(errors)
        return errors

    def check_rep(self) -> None:
        """Assert that self is correct.

        Returns normally when no rule is violated. Otherwise the violations
        are logged (diagnostic sink active) or raised as RepInvariantError.
        """
        errors = self.collect_rep_errors()
        if errors.is_empty():
            return
        report_violations(errors)


def check_nested(value: Any, errors: RepErrors) -> None:
    """Recurse into an owned sub-object, accumulating into the same ErrorSet.

    None stands for an absent optional sub-object and is not checked.
    """
    if value is None:
        return
    check = getattr(value, "check_indie_fields", None)
    if check is None:
        raise TypeError(f"{type(value).__name__} does not implement check_indie_fields")
    check(errors)


# ---------------------------------------------------------------------------
# Declaration
# ---------------------------------------------------------------------------


def rep(*rules: ConstraintRule, check: bool = False, **kwargs: Any) -> Any:
    """
    Declare representation rules on a dataclass field.

    Examples:
        x: int = rep(assert_eq=0, default=0)
        x1: int = rep(assert_with=is_gt_zero)
        start: Point = rep(check=True)

    Keywords starting with `assert_` are rules, in declaration order; the
    rest are passed to dataclasses.field().
    """
    declarations: list[Any] = list(rules)
    field_kwargs: dict[str, Any] = {}
    for key, value in kwargs.items():
        if key.startswith("assert_"):
            declarations.append((key, value))
        else:
            field_kwargs[key] = value

    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[REP_METADATA_KEY] = {"rules": tuple(declarations), "check": check}
    return dataclasses.field(metadata=metadata, **field_kwargs)


def _type_default(f: dataclasses.Field, hints: Mapping[str, Any]) -> Any:
    """The value a field's type builds with no arguments, e.g. int() -> 0."""
    tp = hints.get(f.name, f.type)
    if isinstance(tp, str):
        tp = getattr(builtins, tp.strip(), None)
    tp = typing.get_origin(tp) or tp
    if not isinstance(tp, type):
        return MISSING
    try:
        return tp()
    except (TypeError, ValueError):
        return MISSING


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Forward references to names local to a function do not resolve.
        return {}


def resolve_fields(cls: type, predicates: Mapping[str, PredicateFn] | None = None) -> tuple[FieldSpec, ...]:
    """Resolve rep() declarations of a dataclass into ordered FieldSpecs."""
    if not dataclasses.is_dataclass(cls):
        raise RuleResolutionError(f"{cls.__name__} must be a dataclass to declare field rules")

    hints = _type_hints(cls)
    specs: list[FieldSpec] = []
    for f in dataclasses.fields(cls):
        declared = f.metadata.get(REP_METADATA_KEY)
        if not declared:
            continue
        rules = resolve_declarations(
            declared["rules"],
            field=f.name,
            predicates=predicates,
            default=_type_default(f, hints),
        )
        specs.append(FieldSpec(name=f.name, rules=rules, recurse=bool(declared["check"])))
    return tuple(specs)


@overload
def checked(cls: T) -> T: ...


@overload
def checked(*, predicates: Mapping[str, PredicateFn] | None = None) -> Callable[[T], T]: ...


def checked(cls: Any = None, *, predicates: Mapping[str, PredicateFn] | None = None) -> Any:
    """
    Class decorator resolving field rules and adding check_rep().

    Apply above @dataclass. `predicates` names the functions that
    assert_with declarations may reference as strings.
    """

    def wrap(klass: T) -> T:
        specs = resolve_fields(klass, predicates)
        if not issubclass(klass, CheckRep):
            for name in ("check_indie_fields", "check_fields", "collect_rep_errors", "check_rep"):
                if not hasattr(klass, name):
                    setattr(klass, name, getattr(CheckRep, name))
        klass.__rep_fields__ = specs  # type: ignore[attr-defined]
        logger.debug("%s: %d checked field(s)", klass.__name__, len(specs))
        return klass

    if cls is None:
        return wrap
    return wrap(cls)
