"""Ordered environment-variable sets and their merge contract."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from feature_env.resources.base import AttributeRef  # noqa: TC001


class EnvironmentVariable(BaseModel):
    """A single ``name`` → value entry; the value is either literal or a secret reference."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    value: str | AttributeRef | None = None
    secret_ref: str | None = None

    @model_validator(mode="after")
    def _exactly_one_source(self) -> EnvironmentVariable:
        if (self.value is None) == (self.secret_ref is None):
            raise ValueError(f"{self.name}: set exactly one of 'value' or 'secret_ref'")
        return self

    def to_property(self) -> dict[str, Any]:
        """Container-runtime shape (``{name, value}`` or ``{name, secretRef}``)."""
        if self.secret_ref is not None:
            return {"name": self.name, "secretRef": self.secret_ref}
        return {"name": self.name, "value": self.value}


class EnvironmentVariableSet(BaseModel):
    """Immutable ordered sequence of environment variables."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    entries: tuple[EnvironmentVariable, ...] = ()

    @classmethod
    def of(cls, *pairs: tuple[str, str | AttributeRef]) -> EnvironmentVariableSet:
        return cls(entries=tuple(EnvironmentVariable(name=n, value=v) for n, v in pairs))

    @classmethod
    def merge(cls, *layers: EnvironmentVariableSet) -> EnvironmentVariableSet:
        """Concatenate *layers* in order.

        A later entry with an already-seen name replaces the earlier value but
        keeps the earlier position.
        """
        merged: dict[str, EnvironmentVariable] = {}
        for layer in layers:
            for entry in layer.entries:
                merged[entry.name] = entry
        return cls(entries=tuple(merged.values()))

    def __len__(self) -> int:
        return len(self.entries)

    def names(self) -> list[str]:
        return [e.name for e in self.entries]

    def get(self, name: str) -> EnvironmentVariable | None:
        return next((e for e in self.entries if e.name == name), None)

    def to_property(self) -> list[dict[str, Any]]:
        return [e.to_property() for e in self.entries]
