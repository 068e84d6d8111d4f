"""Validation and sanity checks for ledger and bank state."""

from .sanity_checks import (
    SanityChecker,
    SystemInvariantError,
    ValidationWarning,
    assert_invariants,
    validate_system,
)

__all__ = [
    "SanityChecker",
    "SystemInvariantError",
    "ValidationWarning",
    "assert_invariants",
    "validate_system",
]
