"""checkrep - representation invariant checking for Python objects."""

__version__ = "0.1.0"

from .constraints.schema import ConstraintRule, FieldSpec
from .enforcement import (
    AFTER,
    BEFORE,
    BOTH,
    EnforcementMode,
    OperationShape,
    effective_mode,
    enforce,
    wrap_operation,
)
from .errors import RepErrors, RepInvariantError, RuleResolutionError
from .protocol import CheckFields, CheckIndieFields, CheckRep, checked, rep
from .reporting import configure_from_env, diagnostics, disable_diagnostics, enable_diagnostics
from .weaving import enforce_rep, enforce_with, ensure_rep, mutates, readonly, require_rep

configure_from_env()

__all__ = [
    "AFTER",
    "BEFORE",
    "BOTH",
    "CheckFields",
    "CheckIndieFields",
    "CheckRep",
    "ConstraintRule",
    "EnforcementMode",
    "FieldSpec",
    "OperationShape",
    "RepErrors",
    "RepInvariantError",
    "RuleResolutionError",
    "checked",
    "configure_from_env",
    "diagnostics",
    "disable_diagnostics",
    "effective_mode",
    "enable_diagnostics",
    "enforce",
    "enforce_rep",
    "enforce_with",
    "ensure_rep",
    "mutates",
    "readonly",
    "rep",
    "require_rep",
    "wrap_operation",
]
