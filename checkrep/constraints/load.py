from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from ..errors import RuleResolutionError
from .resolve import resolve_rule_table
from .schema import FieldSpec, PredicateFn, RelationSpec, RepSpec, TypeSpec


RELATION_OPS = ("eq", "ne", "gt", "lt", "ge", "le")


def _coerce_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _load_field(raw: Any, type_name: str, predicates: Mapping[str, PredicateFn] | None) -> FieldSpec:
    if not isinstance(raw, dict):
        raise RuleResolutionError(f"type {type_name!r}: field entries must be tables")
    name = str(raw.get("name", "")).strip()
    if not name:
        raise RuleResolutionError(f"type {type_name!r}: field is missing 'name'")

    label = f"{type_name}.{name}"
    rules = tuple(resolve_rule_table(r, field=label, predicates=predicates) for r in _coerce_list(raw.get("rules")))

    check = raw.get("check")
    check_type = str(check).strip() if isinstance(check, str) and check.strip() else None
    return FieldSpec(name=name, rules=rules, recurse=check_type is not None, check_type=check_type)


def _load_relation(raw: Any, type_name: str) -> RelationSpec:
    if not isinstance(raw, dict):
        raise RuleResolutionError(f"type {type_name!r}: relation entries must be tables")
    left = str(raw.get("left", "")).strip()
    right = str(raw.get("right", "")).strip()
    op = str(raw.get("op", "eq")).strip().lower()
    if not left or not right:
        raise RuleResolutionError(f"type {type_name!r}: relation needs 'left' and 'right'")
    if op not in RELATION_OPS:
        raise RuleResolutionError(f"type {type_name!r}: unsupported relation op {op!r}")
    message = raw.get("message")
    return RelationSpec(
        left=left,
        op=op,  # type: ignore[arg-type]
        right=right,
        message=str(message) if isinstance(message, str) else None,
    )


def parse_rep_spec(data: Mapping[str, Any], *, predicates: Mapping[str, PredicateFn] | None = None) -> RepSpec:
    """
    Build a RepSpec from already-parsed TOML data.

    Every rule is resolved here; a spec that loads is a spec that can be
    checked without further validation.
    """
    spec_id = str(data.get("spec_id", "")).strip()
    if not spec_id:
        raise RuleResolutionError("spec_id is required")

    try:
        version = int(data.get("version", 0))
    except (TypeError, ValueError):
        version = 0
    if version <= 0:
        raise RuleResolutionError("version must be a positive integer")

    types: dict[str, TypeSpec] = {}
    for raw in _coerce_list(data.get("types")):
        if not isinstance(raw, dict):
            continue
        name = str(raw.get("name", "")).strip()
        if not name:
            raise RuleResolutionError("type is missing 'name'")
        if name in types:
            raise RuleResolutionError(f"type {name!r} declared twice")
        types[name] = TypeSpec(
            name=name,
            fields=tuple(_load_field(f, name, predicates) for f in _coerce_list(raw.get("fields"))),
            relations=tuple(_load_relation(r, name) for r in _coerce_list(raw.get("relations"))),
        )

    if not types:
        raise RuleResolutionError("at least one [[types]] entry is required")

    for t in types.values():
        for f in t.fields:
            if f.check_type is not None and f.check_type not in types:
                raise RuleResolutionError(f"check refers to unknown type {f.check_type!r}", field=f"{t.name}.{f.name}")

    root = str(data.get("root", "")).strip() or next(iter(types))
    if root not in types:
        raise RuleResolutionError(f"root type {root!r} is not declared")

    description = data.get("description")
    return RepSpec(
        spec_id=spec_id,
        version=version,
        root=root,
        description=str(description) if isinstance(description, str) else None,
        types=types,
    )


def load_rep_spec(path: Path, *, predicates: Mapping[str, PredicateFn] | None = None) -> RepSpec:
    """Load and resolve a rep spec from TOML."""
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise RuleResolutionError(f"{path.name}: invalid TOML: {e}") from e
    return parse_rep_spec(data, predicates=predicates)
