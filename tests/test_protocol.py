from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pytest

from checkrep import CheckFields, CheckIndieFields, CheckRep, checked, diagnostics, rep
from checkrep.constraints.schema import ConstraintRule, FieldSpec
from checkrep.errors import RepErrors, RepInvariantError, RuleResolutionError


def is_gt_zero(num: int) -> bool:
    return num > 0


@checked
@dataclass
class Point:
    x: int = rep(assert_eq=0)
    y: int = 0


@checked
@dataclass
class Line(CheckRep):
    start: Point
    x1: int = rep(assert_with=is_gt_zero)
    y1: int = 0
    x2: int = 0
    y2: int = 0

    def check_fields(self, errors: RepErrors) -> None:
        if self.x2 != self.y2:
            errors.add("self.x2 must equal self.y2")


@checked
@dataclass
class Segment(CheckRep):
    start: Point = rep(check=True)
    end: Point = rep(check=True)
    label: str = rep(assert_ne="bad", default="")


def test_valid_object_passes_silently(caplog: pytest.LogCaptureFixture) -> None:
    line = Line(start=Point(0, 0), x1=1)
    line.check_rep()
    assert line.collect_rep_errors().is_empty()
    assert caplog.records == []


def test_point_eq_rule() -> None:
    Point(x=0).check_rep()
    with pytest.raises(RepInvariantError, match=r"self\.x must be 0, not 5"):
        Point(x=5).check_rep()


def test_independent_then_interrelated_in_one_error_set() -> None:
    line = Line(start=Point(50, 50), x1=-20, y1=0, x2=5, y2=10)

    with pytest.raises(RepInvariantError) as exc:
        line.check_rep()

    assert list(exc.value.errors) == [
        "is_gt_zero(self.x1) must be true when self.x1 == -20",
        "self.x2 must equal self.y2",
    ]
    assert str(exc.value) == (
        "representation invariant violated: RepErrors(["
        "'is_gt_zero(self.x1) must be true when self.x1 == -20', "
        "'self.x2 must equal self.y2'])"
    )


def test_check_is_idempotent() -> None:
    line = Line(start=Point(0, 0), x1=0, x2=1, y2=2)
    first = line.collect_rep_errors()
    second = line.collect_rep_errors()
    assert first == second
    assert len(first) == 2


def test_recursion_accumulates_into_same_error_set() -> None:
    segment = Segment(start=Point(1, 0), end=Point(2, 0), label="bad")

    errors = segment.collect_rep_errors()

    assert errors == [
        "self.label must not be bad",
        "self.x must be 0, not 1",
        "self.x must be 0, not 2",
    ]


def test_recursion_keeps_duplicate_messages() -> None:
    segment = Segment(start=Point(3, 0), end=Point(3, 0))
    assert segment.collect_rep_errors() == ["self.x must be 0, not 3", "self.x must be 0, not 3"]


def test_recursion_into_value_without_protocol_is_an_error() -> None:
    segment = Segment(start=Point(0, 0), end=(0, 0))  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="check_indie_fields"):
        segment.collect_rep_errors()


def test_recursion_skips_absent_optional_sub_object() -> None:
    @checked
    @dataclass
    class Track:
        head: Point | None = rep(check=True, default=None)
        name: str = rep(assert_ne="", default="t")

    assert Track().collect_rep_errors().is_empty()
    assert Track(head=Point(4, 0), name="").collect_rep_errors() == [
        "self.name must not be ",
        "self.x must be 0, not 4",
    ]



def test_diagnostic_mode_logs_each_violation(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.rep")
    line = Line(start=Point(0, 0), x1=-20, x2=5, y2=10)

    with caplog.at_level(logging.ERROR, logger="tests.rep"), diagnostics(logger):
        line.check_rep()

    records = [r for r in caplog.records if r.name == "tests.rep"]
    assert [r.levelno for r in records] == [logging.ERROR, logging.ERROR]
    assert [r.getMessage() for r in records] == [
        "representation invariant violated: 'is_gt_zero(self.x1) must be true when self.x1 == -20'",
        "representation invariant violated: 'self.x2 must equal self.y2'",
    ]


def test_sink_disabled_for_errors_falls_back_to_abort() -> None:
    logger = logging.getLogger("tests.rep.quiet")
    logger.setLevel(logging.CRITICAL)
    try:
        with diagnostics(logger), pytest.raises(RepInvariantError):
            Point(x=1).check_rep()
    finally:
        logger.setLevel(logging.NOTSET)


def test_checked_plain_dataclass_gains_protocol() -> None:
    @checked
    @dataclass
    class Flags:
        enabled: bool = rep(assert_true=True, default=True)
        legacy: bool = rep(assert_false=True, default=False)
        count: int = rep(assert_default=True, default=0)
        tags: list = field(default_factory=list)

    flags = Flags()
    flags.check_rep()
    assert isinstance(flags, Flags)
    assert [s.name for s in Flags.__rep_fields__] == ["enabled", "legacy", "count"]

    flags.enabled = False
    flags.legacy = True
    flags.count = 3
    assert flags.collect_rep_errors() == [
        "self.enabled must be true",
        "self.legacy must be false",
        "self.count must be default, not 3",
    ]


def test_assert_default_builds_generic_origin() -> None:
    @checked
    @dataclass
    class Bag:
        items: list[int] = rep(assert_default=True, default_factory=lambda: [1])

    assert Bag.__rep_fields__[0].rules == (ConstraintRule("default", []),)
    assert Bag().collect_rep_errors() == ["self.items must be default, not [1]"]
    assert Bag(items=[]).collect_rep_errors().is_empty()


def test_assert_default_compares_with_the_type_default() -> None:
    @checked
    @dataclass
    class Counter:
        n: int = rep(assert_default=True, default=5)
        label: str = rep(assert_default=True, default="")

    assert Counter.__rep_fields__[0].rules == (ConstraintRule("default", 0),)
    assert Counter().collect_rep_errors() == ["self.n must be default, not 5"]
    assert Counter(n=0).collect_rep_errors().is_empty()


def test_assert_default_without_declared_default() -> None:
    @checked
    @dataclass
    class Tally:
        n: int = rep(assert_default=True)

    Tally(n=0).check_rep()
    with pytest.raises(RepInvariantError, match=r"self\.n must be default, not 2"):
        Tally(n=2).check_rep()



def test_multiple_rules_on_one_field_in_declaration_order() -> None:
    @checked
    @dataclass
    class Percent:
        value: float = rep(assert_ge=0.0, assert_le=100.0, assert_ne=50.0)

    assert Percent(value=150.0).collect_rep_errors() == ["self.value must be <= 100.0, not 150.0"]
    assert Percent(value=50.0).collect_rep_errors() == ["self.value must not be 50.0"]


def test_with_by_name_uses_predicate_table() -> None:
    @checked(predicates={"is_gt_zero": is_gt_zero})
    @dataclass
    class Positive:
        n: int = rep(assert_with="is_gt_zero")

    assert Positive(n=0).collect_rep_errors() == ["is_gt_zero(self.n) must be true when self.n == 0"]


def test_resolution_errors_surface_at_decoration() -> None:
    with pytest.raises(RuleResolutionError, match="unknown predicate"):

        @checked
        @dataclass
        class Bad:
            n: int = rep(assert_with="nope")

    with pytest.raises(RuleResolutionError, match="orderable"):

        @checked
        @dataclass
        class AlsoBad:
            n: int = rep(assert_gt=None)

    with pytest.raises(RuleResolutionError, match="built with no arguments"):

        @checked
        @dataclass
        class NoDefault:
            span: range = rep(assert_default=True)


def test_built_rules_are_validated_at_decoration() -> None:
    with pytest.raises(RuleResolutionError, match="unknown predicate"):

        @checked
        @dataclass
        class BadName:
            n: int = rep(ConstraintRule("with", "nope"))

    with pytest.raises(RuleResolutionError, match="orderable"):

        @checked
        @dataclass
        class BadLiteral:
            n: int = rep(ConstraintRule("gt", None))

    with pytest.raises(RuleResolutionError, match="unsupported"):

        @checked
        @dataclass
        class BadKind:
            n: int = rep(ConstraintRule("between", 3))  # type: ignore[arg-type]


def test_built_with_rule_by_name_resolves_to_the_function() -> None:
    @checked(predicates={"is_gt_zero": is_gt_zero})
    @dataclass
    class Positive:
        n: int = rep(ConstraintRule("with", "is_gt_zero"))

    assert Positive.__rep_fields__[0].rules == (ConstraintRule("with", is_gt_zero, predicate_name="is_gt_zero"),)
    assert Positive(n=-1).collect_rep_errors() == ["is_gt_zero(self.n) must be true when self.n == -1"]



def test_checked_requires_dataclass() -> None:
    with pytest.raises(RuleResolutionError, match="must be a dataclass"):

        @checked
        class NotData:
            pass


def test_hand_written_protocol_without_decorator() -> None:
    class Manual(CheckIndieFields, CheckFields):
        __rep_fields__ = (FieldSpec("n", (ConstraintRule("lt", 10),)),)

        def __init__(self, n: int):
            self.n = n

    errors = RepErrors()
    Manual(12).check_indie_fields(errors)
    Manual(12).check_fields(errors)
    assert errors == ["self.n must be < 10, not 12"]
