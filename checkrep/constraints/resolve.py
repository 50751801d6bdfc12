"""
Rule resolution: raw declarations in, ConstraintRules out.

This is the only place malformed declarations are detected. Everything
downstream receives resolved rules and never re-validates them.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import replace
from typing import Any, Iterable, Mapping

from ..errors import RuleResolutionError
from .predicates import BUILTIN_PREDICATES
from .schema import FLAG_KINDS, LITERAL_KINDS, ORDERING_KINDS, RULE_KINDS, ConstraintRule, PredicateFn


logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def normalize_kind(raw: str, *, field: str | None = None) -> str:
    """Map `assert_eq` / `EQ` / `eq` onto the canonical kind name."""
    kind = str(raw).strip().lower()
    if kind.startswith("assert_"):
        kind = kind[len("assert_"):]
    if kind not in RULE_KINDS:
        raise RuleResolutionError(f"unsupported representation invariant {raw!r}", field=field, kind=str(raw))
    return kind


def import_predicate(path: str) -> PredicateFn:
    """Import a predicate given as `package.module:function`."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise RuleResolutionError(f"predicate path must look like 'module:function', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise RuleResolutionError(f"cannot import predicate module {module_name!r}: {e}") from e
    fn = module
    for part in attr.split("."):
        fn = getattr(fn, part, None)
        if fn is None:
            raise RuleResolutionError(f"module {module_name!r} has no attribute {attr!r}")
    if not callable(fn):
        raise RuleResolutionError(f"predicate {path!r} is not callable")
    return fn  # type: ignore[return-value]


def resolve_predicate(
    ref: Any,
    *,
    field: str | None = None,
    predicates: Mapping[str, PredicateFn] | None = None,
) -> tuple[PredicateFn, str]:
    """Resolve a `with` reference to (callable, display name).

    Names are looked up in `predicates` first, then in the built-in table,
    then imported when they contain a colon.
    """
    if callable(ref):
        return ref, getattr(ref, "__name__", repr(ref))

    if not isinstance(ref, str) or not ref.strip():
        raise RuleResolutionError(
            "assert_with can only be used with a function or the name of a function to call",
            field=field,
            kind="with",
        )

    name = ref.strip()
    table = predicates or {}
    if name in table:
        fn = table[name]
    elif name in BUILTIN_PREDICATES:
        fn = BUILTIN_PREDICATES[name]
    elif ":" in name:
        try:
            fn = import_predicate(name)
        except RuleResolutionError as e:
            raise RuleResolutionError(str(e), field=field, kind="with") from e
        name = name.rpartition(":")[2]
    else:
        raise RuleResolutionError(f"unknown predicate {name!r}", field=field, kind="with")

    if not callable(fn):
        raise RuleResolutionError(f"predicate {name!r} is not callable", field=field, kind="with")
    return fn, name


def _supports_ordering(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        value < value  # noqa: B015
    except TypeError:
        return False
    return True


def resolve_rule(
    kind: str,
    param: Any = MISSING,
    *,
    field: str | None = None,
    predicates: Mapping[str, PredicateFn] | None = None,
    default: Any = MISSING,
) -> ConstraintRule:
    """
    Resolve one declaration into a ConstraintRule.

    Args:
        kind: Rule kind, with or without the `assert_` prefix
        param: Literal or predicate reference; omitted (or True) for flag kinds
        field: Field name, for error messages
        predicates: Explicit name -> callable table for `with` rules
        default: The default value of the field's type, required by `default` rules

    Raises:
        RuleResolutionError: the declaration cannot be resolved
    """
    kind = normalize_kind(kind, field=field)

    if kind in FLAG_KINDS:
        if param is not MISSING and param is not True:
            raise RuleResolutionError(f"assert_{kind} takes no value", field=field, kind=kind)
        if kind == "default":
            if default is MISSING:
                raise RuleResolutionError(
                    "assert_default requires a field type that can be built with no arguments",
                    field=field,
                    kind=kind,
                )
            return ConstraintRule(kind="default", param=default)
        return ConstraintRule(kind=kind)  # type: ignore[arg-type]

    if param is MISSING:
        raise RuleResolutionError(f"assert_{kind} requires a value", field=field, kind=kind)

    if kind in LITERAL_KINDS:
        if kind in ORDERING_KINDS and not _supports_ordering(param):
            raise RuleResolutionError(
                f"assert_{kind} requires an orderable literal, got {param!r}",
                field=field,
                kind=kind,
            )
        return ConstraintRule(kind=kind, param=param)  # type: ignore[arg-type]

    fn, name = resolve_predicate(param, field=field, predicates=predicates)
    return ConstraintRule(kind="with", param=fn, predicate_name=name)


def resolve_rule_table(
    raw: Mapping[str, Any],
    *,
    field: str | None = None,
    predicates: Mapping[str, PredicateFn] | None = None,
) -> ConstraintRule:
    """Resolve the table form `{kind = "eq", value = 0}` / `{kind = "with", predicate = "..."}`."""
    if not isinstance(raw, Mapping):
        raise RuleResolutionError(f"rule must be a table, got {raw!r}", field=field)
    kind_raw = raw.get("kind")
    if not isinstance(kind_raw, str):
        raise RuleResolutionError("rule is missing 'kind'", field=field)
    kind = normalize_kind(kind_raw, field=field)

    if kind == "with":
        param = raw.get("predicate", MISSING)
    else:
        param = raw.get("value", MISSING)
    return resolve_rule(kind, param, field=field, predicates=predicates, default=raw.get("default", MISSING))


def _resolve_built(
    rule: ConstraintRule,
    *,
    field: str,
    predicates: Mapping[str, PredicateFn] | None,
    default: Any,
) -> ConstraintRule:
    kind = normalize_kind(rule.kind, field=field)
    if kind == "default" and rule.param is not None and rule.param is not True:
        # An explicit default value on a built rule stands for itself.
        return ConstraintRule(kind="default", param=rule.param)
    param = MISSING if kind in FLAG_KINDS and rule.param is None else rule.param
    resolved = resolve_rule(kind, param, field=field, predicates=predicates, default=default)
    if kind == "with" and rule.predicate_name:
        return replace(resolved, predicate_name=rule.predicate_name)
    return resolved


def resolve_declarations(
    declarations: Iterable[ConstraintRule | tuple[str, Any]],
    *,
    field: str,
    predicates: Mapping[str, PredicateFn] | None = None,
    default: Any = MISSING,
) -> tuple[ConstraintRule, ...]:
    """Resolve an ordered list of declarations for one field.

    Items are either already-built ConstraintRules or (kind, param) pairs.
    Built rules go through the same validation as pairs.
    """
    rules: list[ConstraintRule] = []
    for decl in declarations:
        if isinstance(decl, ConstraintRule):
            rules.append(_resolve_built(decl, field=field, predicates=predicates, default=default))
            continue
        kind, param = decl
        rules.append(resolve_rule(kind, param, field=field, predicates=predicates, default=default))
    logger.debug("resolved %d rule(s) for field %s", len(rules), field)
    return tuple(rules)
