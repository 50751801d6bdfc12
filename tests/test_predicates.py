import math

import pytest

from checkrep.constraints.predicates import BUILTIN_PREDICATES, PREDICATES, check_field, evaluate_rule
from checkrep.constraints.schema import RULE_KINDS, ConstraintRule
from checkrep.errors import RepErrors


def is_gt_zero(num: int) -> bool:
    return num > 0


def test_every_kind_has_a_predicate() -> None:
    assert set(PREDICATES) == set(RULE_KINDS)


@pytest.mark.parametrize(
    "rule, value, message",
    [
        (ConstraintRule("default", 0), 3, "self.f must be default, not 3"),
        (ConstraintRule("true"), False, "self.f must be true"),
        (ConstraintRule("false"), True, "self.f must be false"),
        (ConstraintRule("eq", 0), 5, "self.f must be 0, not 5"),
        (ConstraintRule("ne", "---"), "---", "self.f must not be ---"),
        (ConstraintRule("gt", 0.0), -1.5, "self.f must be > 0.0, not -1.5"),
        (ConstraintRule("lt", 100), 100, "self.f must be < 100, not 100"),
        (ConstraintRule("ge", 20), 19, "self.f must be >= 20, not 19"),
        (ConstraintRule("le", 40), 41, "self.f must be <= 40, not 41"),
        (
            ConstraintRule("with", is_gt_zero, predicate_name="is_gt_zero"),
            -20,
            "is_gt_zero(self.f) must be true when self.f == -20",
        ),
    ],
)
def test_failing_rule_messages(rule: ConstraintRule, value, message: str) -> None:
    assert evaluate_rule(value, rule, "f") == (False, message)


@pytest.mark.parametrize(
    "rule, value",
    [
        (ConstraintRule("default", ""), ""),
        (ConstraintRule("true"), True),
        (ConstraintRule("false"), False),
        (ConstraintRule("eq", "hello"), "hello"),
        (ConstraintRule("ne", 0), 1),
        (ConstraintRule("gt", 0), 1),
        (ConstraintRule("lt", 10.0), 9.5),
        (ConstraintRule("ge", 20), 20),
        (ConstraintRule("le", 40), 40),
        (ConstraintRule("with", is_gt_zero), 7),
    ],
)
def test_passing_rules(rule: ConstraintRule, value) -> None:
    assert evaluate_rule(value, rule, "f") == (True, None)


def test_ordering_against_incompatible_value_fails_instead_of_raising() -> None:
    passed, message = evaluate_rule(None, ConstraintRule("gt", 0), "f")
    assert not passed
    assert message == "self.f must be > 0, not None"


def test_with_uses_function_name_when_no_display_name() -> None:
    _, message = evaluate_rule(0, ConstraintRule("with", is_gt_zero), "x1")
    assert message == "is_gt_zero(self.x1) must be true when self.x1 == 0"


def test_rules_are_evaluated_at_check_time() -> None:
    rule = ConstraintRule("eq", 0)
    assert evaluate_rule(0, rule, "x")[0]
    assert not evaluate_rule(1, rule, "x")[0]
    assert evaluate_rule(0, rule, "x")[0]


def test_check_field_appends_in_rule_order() -> None:
    errors = RepErrors()
    rules = (ConstraintRule("ge", 10), ConstraintRule("ne", 3), ConstraintRule("le", 100))
    check_field(3, rules, "n", errors)
    assert errors == ["self.n must be >= 10, not 3", "self.n must not be 3"]


def test_builtin_predicates() -> None:
    p = BUILTIN_PREDICATES
    assert p["is_positive"](1) and not p["is_positive"](0)
    assert p["is_negative"](-1) and not p["is_negative"](None)
    assert p["is_non_negative"](0)
    assert p["is_nonempty"]("a") and not p["is_nonempty"]([]) and not p["is_nonempty"](3)
    assert p["is_finite"](1.0) and not p["is_finite"](math.inf) and not p["is_finite"]("x")
    assert p["is_integer"](3) and not p["is_integer"](True) and not p["is_integer"](3.0)


@pytest.mark.parametrize("value", ["yes", 1, [0], 1.0])
def test_true_requires_the_bool_true(value) -> None:
    assert evaluate_rule(value, ConstraintRule("true"), "f") == (False, "self.f must be true")


@pytest.mark.parametrize("value", ["", 0, None, []])
def test_false_requires_the_bool_false(value) -> None:
    assert evaluate_rule(value, ConstraintRule("false"), "f") == (False, "self.f must be false")
