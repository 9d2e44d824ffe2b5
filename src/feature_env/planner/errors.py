"""Planner error types."""

from __future__ import annotations

from typing import Literal, TypeAlias

ValidationReason: TypeAlias = Literal[
    "invalid-name",
    "missing-reference",
    "invalid-config",
    "dangling-reference",
    "duplicate-name",
    "dependency-cycle",
]


class PlannerError(Exception):
    """Base exception for planner errors."""


class ValidationError(PlannerError):
    """Plan inputs were rejected before any plan was produced.

    ``reason`` identifies the failure class; ``errors`` carries one message per
    offending input. Every error the builder raises is a ``ValidationError``.
    """

    def __init__(self, reason: ValidationReason, errors: list[str]) -> None:
        self.reason = reason
        self.errors = errors
        msg = f"Validation failed ({reason}):\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(msg)


class DuplicateLogicalNameError(ValidationError):
    """Raised when two planned resources share a logical name."""

    def __init__(self, logical_name: str) -> None:
        super().__init__("duplicate-name", [f"duplicate logical name: {logical_name}"])
        self.logical_name = logical_name


class DependencyCycleError(ValidationError):
    """Raised when dependencies contain a cycle."""

    def __init__(self, names: list[str]) -> None:
        detail = "dependency cycle detected"
        if names:
            detail += f": {', '.join(names)}"
        super().__init__("dependency-cycle", [detail])
        self.names = names
