"""
Enforcement policy: when an operation gets invariant checks around it.

The decision is made once per operation definition:

    OperationShape + requested EnforcementMode -> effective EnforcementMode

and the effective mode is baked into a wrapper. Call order is fixed:
before-check on the receiver, body, after-check on the receiver, check of
a freshly produced owner instance, return of the untouched result.
"""

from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal, TypeVar


logger = logging.getLogger(__name__)

ReceiverAccess = Literal["none", "shared", "exclusive"]

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class OperationShape:
    """What an operation's signature says about its receiver and result."""

    receiver_access: ReceiverAccess = "none"
    produces_owner_instance: bool = False


@dataclass(frozen=True)
class EnforcementMode:
    check_before: bool = False
    check_after: bool = False
    # Check the returned value when it is a new instance of the owner type.
    check_result: bool = False

    @property
    def is_noop(self) -> bool:
        return not (self.check_before or self.check_after or self.check_result)

    def describe(self) -> str:
        parts = [
            name
            for name, on in (
                ("before", self.check_before),
                ("after", self.check_after),
                ("result", self.check_result),
            )
            if on
        ]
        return "+".join(parts) or "unwrapped"


BEFORE = EnforcementMode(check_before=True)
AFTER = EnforcementMode(check_after=True, check_result=True)
BOTH = EnforcementMode(check_before=True, check_after=True, check_result=True)
UNWRAPPED = EnforcementMode()


def effective_mode(shape: OperationShape, requested: EnforcementMode) -> EnforcementMode:
    """
    Compute the checks an operation actually gets.

    Receiver checks only apply to exclusive receivers: an operation that
    cannot mutate its receiver cannot have broken it. The result check
    applies to any operation producing an owner instance.
    """
    produces = shape.produces_owner_instance and requested.check_result
    if shape.receiver_access != "exclusive":
        return EnforcementMode(check_result=produces)
    return EnforcementMode(
        check_before=requested.check_before,
        check_after=requested.check_after or produces,
        check_result=produces,
    )


def wrap_operation(operation: F, mode: EnforcementMode) -> F:
    """
    Wrap `operation` with the checks of an effective `mode`.

    The receiver is the first positional argument. A no-op mode returns the
    operation itself.
    """
    if mode.is_noop:
        return operation

    if inspect.iscoroutinefunction(operation):

        @functools.wraps(operation)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            if mode.check_before:
                args[0].check_rep()
            result = await operation(*args, **kwargs)
            _after(mode, args, result)
            return result

        wrapper: Any = async_wrapper
    else:

        @functools.wraps(operation)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            if mode.check_before:
                args[0].check_rep()
            result = operation(*args, **kwargs)
            _after(mode, args, result)
            return result

        wrapper = sync_wrapper

    wrapper.__rep_mode__ = mode
    return wrapper  # type: ignore[return-value]


def _after(mode: EnforcementMode, args: tuple[Any, ...], result: Any) -> None:
    if mode.check_after:
        args[0].check_rep()
    if mode.check_result and result is not None:
        result.check_rep()


def enforce(operation: F, requested: EnforcementMode, shape: OperationShape) -> F:
    """Resolve the effective mode for `shape` and wrap `operation` with it."""
    mode = effective_mode(shape, requested)
    logger.debug(
        "%s: %s receiver, owner result=%s -> %s",
        getattr(operation, "__qualname__", operation),
        shape.receiver_access,
        shape.produces_owner_instance,
        mode.describe(),
    )
    return wrap_operation(operation, mode)


def is_wrapped(operation: Any) -> bool:
    return hasattr(operation, "__rep_mode__")
