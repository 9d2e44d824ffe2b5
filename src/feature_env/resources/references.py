"""External references: shared infrastructure a plan reads but never owns."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from feature_env.resources.base import AttributeRef
from feature_env.resources.frozen import FrozenDict

EXTERNAL_PREFIX = "existing:"


class ReferenceRole(str, Enum):
    HOSTING_ENVIRONMENT = "hosting-environment"
    EDGE_PROFILE = "edge-profile"
    TELEMETRY_WORKSPACE = "telemetry-workspace"
    IDENTITY = "identity"
    DNS_ZONE = "dns-zone"


class ExternalReference(BaseModel):
    """A named pointer to pre-existing shared infrastructure.

    ``attributes`` is an optional snapshot of live values (e.g. an identity's
    ``clientId``). Attributes missing from the snapshot are emitted as
    :class:`AttributeRef` placeholders for the provisioning engine.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    role: ReferenceRole
    name: str = Field(min_length=1)
    resource_group: str | None = None
    resource_id: str | None = None
    attributes: dict[str, str] = Field(default_factory=FrozenDict)

    @field_validator("attributes")
    @classmethod
    def _freeze_attributes(cls, v: dict[str, str]) -> dict[str, str]:
        return FrozenDict(v)

    @property
    def address(self) -> str:
        return f"{EXTERNAL_PREFIX}{self.role.value}"

    def attribute(self, name: str) -> str | AttributeRef:
        if name in self.attributes:
            return self.attributes[name]
        return AttributeRef(target=self.address, attribute=name)

    def id_ref(self) -> str | AttributeRef:
        """Resource identifier, from the snapshot when known."""
        if self.resource_id:
            return self.resource_id
        return self.attribute("id")


class ExternalReferenceSet(BaseModel):
    """The shared infrastructure a feature environment is deployed into."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    hosting_environment: ExternalReference | None = None
    edge_profile: ExternalReference | None = None
    telemetry_workspace: ExternalReference | None = None
    identity: ExternalReference | None = None
    dns_zone: ExternalReference | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_roles(cls, data: Any) -> Any:
        """Let config files omit ``role`` inside a slot; the slot name implies it."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for role in ReferenceRole:
            key = role.value.replace("-", "_")
            entry = data.get(key)
            if isinstance(entry, dict) and "role" not in entry:
                data[key] = {**entry, "role": role.value}
        return data

    def get(self, role: ReferenceRole) -> ExternalReference | None:
        return getattr(self, role.value.replace("-", "_"))

    def missing(self) -> list[ReferenceRole]:
        """Roles with no reference, in declaration order."""
        return [role for role in ReferenceRole if self.get(role) is None]

    def mismatched(self) -> list[str]:
        """Slots holding a reference declared for a different role."""
        errors: list[str] = []
        for role in ReferenceRole:
            ref = self.get(role)
            if ref is not None and ref.role != role:
                errors.append(
                    f"{role.value} slot holds a '{ref.role.value}' reference ({ref.name})"
                )
        return errors

    def present(self) -> dict[str, ExternalReference]:
        """Declared references keyed by address, sorted for stable output."""
        refs = [ref for role in ReferenceRole if (ref := self.get(role)) is not None]
        return {ref.address: ref for ref in sorted(refs, key=lambda r: r.address)}
