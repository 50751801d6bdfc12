from __future__ import annotations

import math
import operator
from typing import Any, Callable

from ..errors import RepErrors
from .schema import ConstraintRule, PredicateFn


# value, rule, field name -> failure message, or None when the rule holds.
RuleCheckFn = Callable[[Any, ConstraintRule, str], "str | None"]


def _compare(op: Callable[[Any, Any], bool], value: Any, literal: Any) -> bool:
    try:
        return bool(op(value, literal))
    except TypeError:
        # Values that cannot be ordered against the literal do not satisfy it.
        return False


def check_default(value: Any, rule: ConstraintRule, name: str) -> str | None:
    if value == rule.param:
        return None
    return f"self.{name} must be default, not {value}"


def check_true(value: Any, rule: ConstraintRule, name: str) -> str | None:
    if value is True:
        return None
    return f"self.{name} must be true"


def check_false(value: Any, rule: ConstraintRule, name: str) -> str | None:
    if value is False:
        return None
    return f"self.{name} must be false"


def check_eq(value: Any, rule: ConstraintRule, name: str) -> str | None:
    if value == rule.param:
        return None
    return f"self.{name} must be {rule.param}, not {value}"


def check_ne(value: Any, rule: ConstraintRule, name: str) -> str | None:
    if value != rule.param:
        return None
    return f"self.{name} must not be {rule.param}"


def _ordering(symbol: str, op: Callable[[Any, Any], bool]) -> RuleCheckFn:
    def check(value: Any, rule: ConstraintRule, name: str) -> str | None:
        if _compare(op, value, rule.param):
            return None
        return f"self.{name} must be {symbol} {rule.param}, not {value}"

    check.__name__ = f"check_{op.__name__}"
    return check


check_gt = _ordering(">", operator.gt)
check_lt = _ordering("<", operator.lt)
check_ge = _ordering(">=", operator.ge)
check_le = _ordering("<=", operator.le)


def check_with(value: Any, rule: ConstraintRule, name: str) -> str | None:
    fn: PredicateFn = rule.param
    if fn(value):
        return None
    fn_name = rule.predicate_name or getattr(fn, "__name__", repr(fn))
    return f"{fn_name}(self.{name}) must be true when self.{name} == {value}"


PREDICATES: dict[str, RuleCheckFn] = {
    "default": check_default,
    "true": check_true,
    "false": check_false,
    "eq": check_eq,
    "ne": check_ne,
    "gt": check_gt,
    "lt": check_lt,
    "ge": check_ge,
    "le": check_le,
    "with": check_with,
}

# Message templates, for documentation and the CLI.
MESSAGE_TEMPLATES: dict[str, str] = {
    "default": "self.{field} must be default, not {value}",
    "true": "self.{field} must be true",
    "false": "self.{field} must be false",
    "eq": "self.{field} must be {lit}, not {value}",
    "ne": "self.{field} must not be {lit}",
    "gt": "self.{field} must be > {lit}, not {value}",
    "lt": "self.{field} must be < {lit}, not {value}",
    "ge": "self.{field} must be >= {lit}, not {value}",
    "le": "self.{field} must be <= {lit}, not {value}",
    "with": "{fn}(self.{field}) must be true when self.{field} == {value}",
}


def evaluate_rule(value: Any, rule: ConstraintRule, name: str) -> tuple[bool, str | None]:
    """Evaluate one resolved rule against the current value of field `name`."""
    message = PREDICATES[rule.kind](value, rule, name)
    return message is None, message


def check_field(value: Any, rules: tuple[ConstraintRule, ...], name: str, errors: RepErrors) -> None:
    """Run every rule of one field in declaration order, appending failures."""
    for rule in rules:
        passed, message = evaluate_rule(value, rule, name)
        if not passed:
            errors.add(message)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Named predicates available to `with` rules in rep spec files
# ---------------------------------------------------------------------------


def is_positive(value: Any) -> bool:
    return _compare(operator.gt, value, 0)


def is_negative(value: Any) -> bool:
    return _compare(operator.lt, value, 0)


def is_non_negative(value: Any) -> bool:
    return _compare(operator.ge, value, 0)


def is_nonempty(value: Any) -> bool:
    try:
        return len(value) > 0
    except TypeError:
        return False


def is_finite(value: Any) -> bool:
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


BUILTIN_PREDICATES: dict[str, PredicateFn] = {
    "is_positive": is_positive,
    "is_negative": is_negative,
    "is_non_negative": is_non_negative,
    "is_nonempty": is_nonempty,
    "is_finite": is_finite,
    "is_integer": is_integer,
}
