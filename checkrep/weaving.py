"""
Attaching enforcement to methods and classes.

Classifies each method's OperationShape from its signature and wraps it
through checkrep.enforcement. Decorators:

- enforce_rep: check before and after, and check constructed results
- require_rep: check before only
- ensure_rep: check after, and check constructed results

Each accepts a single method (function, staticmethod, classmethod or
property) or a whole class. On a class, public methods and __init__ are
considered; other underscore names are left alone.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, TypeVar

from .enforcement import AFTER, BEFORE, BOTH, EnforcementMode, OperationShape, ReceiverAccess, enforce, is_wrapped


logger = logging.getLogger(__name__)

T = TypeVar("T")

ACCESS_ATTR = "__rep_access__"
_SELF_NAMES = {"Self", "typing.Self", "typing_extensions.Self"}

# The checks themselves are never wrapped.
PROTOCOL_METHODS = frozenset({"check_rep", "check_indie_fields", "check_fields", "collect_rep_errors"})


def mutates(func: T) -> T:
    """Mark a method as taking exclusive access to its receiver."""
    setattr(func, ACCESS_ATTR, "exclusive")
    return func


def readonly(func: T) -> T:
    """Mark a method as only reading its receiver; it is never wrapped."""
    setattr(func, ACCESS_ATTR, "shared")
    return func


def _owner_name_from_qualname(func: Callable[..., Any]) -> str | None:
    parts = getattr(func, "__qualname__", "").split(".")
    if len(parts) < 2 or parts[-2] == "<locals>":
        return None
    return parts[-2]


def _returns_owner(func: Callable[..., Any], owner: type | None, owner_name: str | None) -> bool:
    annotations = getattr(func, "__annotations__", None) or {}
    if "return" not in annotations:
        return False
    ann = annotations["return"]
    if isinstance(ann, str):
        name = ann.strip().strip("'\"")
        return name in _SELF_NAMES or (owner_name is not None and name == owner_name)
    if owner is not None and ann is owner:
        return True
    if repr(ann) in _SELF_NAMES:
        return True
    return owner_name is not None and isinstance(ann, type) and ann.__name__ == owner_name


def _has_self_parameter(func: Callable[..., Any]) -> bool:
    # signature() follows __wrapped__, so functools.wraps decorators are seen through.
    try:
        params = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return False
    if not params or params[0].kind not in (params[0].POSITIONAL_ONLY, params[0].POSITIONAL_OR_KEYWORD):
        return False
    return params[0].name == "self"


def classify_operation(
    func: Callable[..., Any],
    owner: type | None = None,
    *,
    receiver: ReceiverAccess | None = None,
) -> OperationShape:
    """
    Derive the OperationShape of a plain function defined on `owner`.

    Explicit @mutates/@readonly markers win; otherwise an instance method
    (first parameter `self`) is taken to have exclusive access.
    """
    owner_name = owner.__name__ if owner is not None else _owner_name_from_qualname(func)
    access: ReceiverAccess
    if receiver is not None:
        access = receiver
    elif hasattr(func, ACCESS_ATTR):
        access = getattr(func, ACCESS_ATTR)
    elif _has_self_parameter(func):
        access = "exclusive"
    else:
        access = "none"
    return OperationShape(
        receiver_access=access,
        produces_owner_instance=_returns_owner(func, owner, owner_name),
    )


def _init_mode(requested: EnforcementMode) -> EnforcementMode:
    # The receiver of __init__ has no state to check beforehand.
    return EnforcementMode(check_after=requested.check_result)


def _wrap_member(member: Any, requested: EnforcementMode, owner: type | None, name: str | None = None) -> Any:
    if isinstance(member, staticmethod):
        func = member.__func__
        if is_wrapped(func):
            return member
        return staticmethod(enforce(func, requested, classify_operation(func, owner, receiver="none")))

    if isinstance(member, classmethod):
        func = member.__func__
        if is_wrapped(func):
            return member
        return classmethod(enforce(func, requested, classify_operation(func, owner, receiver="none")))

    if isinstance(member, property):
        fset = member.fset
        fdel = member.fdel
        if fset is not None and not is_wrapped(fset):
            fset = enforce(fset, requested, classify_operation(fset, owner, receiver="exclusive"))
        if fdel is not None and not is_wrapped(fdel):
            fdel = enforce(fdel, requested, classify_operation(fdel, owner, receiver="exclusive"))
        return property(member.fget, fset, fdel, member.__doc__)

    if callable(member):
        if is_wrapped(member):
            return member
        if (name or getattr(member, "__name__", "")) == "__init__":
            return enforce(member, _init_mode(requested), OperationShape(receiver_access="exclusive"))
        return enforce(member, requested, classify_operation(member, owner))

    raise TypeError(f"cannot enforce representation checks on {type(member).__name__}")


def _wrap_class(cls: type, requested: EnforcementMode) -> type:
    for name, member in list(vars(cls).items()):
        if name.startswith("_") and name != "__init__":
            continue
        if name in PROTOCOL_METHODS:
            continue
        if not (inspect.isfunction(member) or isinstance(member, (staticmethod, classmethod, property))):
            continue
        setattr(cls, name, _wrap_member(member, requested, cls, name))
    logger.debug("%s: enforcement attached (%s)", cls.__name__, requested.describe())
    return cls


def _decorator(requested: EnforcementMode) -> Callable[[T], T]:
    def decorate(target: T) -> T:
        if isinstance(target, type):
            return _wrap_class(target, requested)  # type: ignore[return-value]
        return _wrap_member(target, requested, None)

    return decorate


enforce_rep = _decorator(BOTH)
enforce_rep.__name__ = "enforce_rep"
enforce_rep.__doc__ = "Check the receiver before and after mutating methods, and constructed results."

require_rep = _decorator(BEFORE)
require_rep.__name__ = "require_rep"
require_rep.__doc__ = "Check the receiver before mutating methods."

ensure_rep = _decorator(AFTER)
ensure_rep.__name__ = "ensure_rep"
ensure_rep.__doc__ = "Check the receiver after mutating methods, and constructed results."


def enforce_with(requested: EnforcementMode) -> Callable[[T], T]:
    """Decorator for a custom EnforcementMode."""
    return _decorator(requested)
