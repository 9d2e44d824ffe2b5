"""Planned resource model."""

from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from feature_env.resources.frozen import FrozenDict, freeze


class _KindTraits(NamedTuple):
    priority: int
    azure_type: str


class ResourceKind(str, Enum):
    """Closed set of resource types a feature environment is made of."""

    COMPUTE_SERVICE = "compute-service"
    ROUTING_RULE = "routing-rule"
    STORAGE_ACCOUNT = "storage-account"
    FILE_SHARE = "file-share"
    STORAGE_MOUNT = "storage-mount"
    TELEMETRY_COMPONENT = "telemetry-component"
    EDGE_ENDPOINT = "edge-endpoint"
    EDGE_ORIGIN_GROUP = "edge-origin-group"
    EDGE_ORIGIN = "edge-origin"
    EDGE_CUSTOM_DOMAIN = "edge-custom-domain"
    EDGE_ROUTE = "edge-route"
    EDGE_SECURITY_POLICY = "edge-security-policy"

    @property
    def plan_priority(self) -> int:
        """Tie-break used when ordering resources with no edge between them."""
        return _KIND_TRAITS[self].priority

    @property
    def azure_type(self) -> str:
        return _KIND_TRAITS[self].azure_type


_KIND_TRAITS: dict[ResourceKind, _KindTraits] = {
    ResourceKind.TELEMETRY_COMPONENT: _KindTraits(0, "Microsoft.Insights/components"),
    ResourceKind.STORAGE_ACCOUNT: _KindTraits(10, "Microsoft.Storage/storageAccounts"),
    ResourceKind.FILE_SHARE: _KindTraits(
        20, "Microsoft.Storage/storageAccounts/fileServices/shares"
    ),
    ResourceKind.STORAGE_MOUNT: _KindTraits(30, "Microsoft.App/managedEnvironments/storages"),
    ResourceKind.COMPUTE_SERVICE: _KindTraits(40, "Microsoft.App/containerApps"),
    ResourceKind.ROUTING_RULE: _KindTraits(
        50, "Microsoft.App/managedEnvironments/httpRouteConfigs"
    ),
    ResourceKind.EDGE_ENDPOINT: _KindTraits(60, "Microsoft.Cdn/profiles/afdEndpoints"),
    ResourceKind.EDGE_ORIGIN_GROUP: _KindTraits(60, "Microsoft.Cdn/profiles/originGroups"),
    ResourceKind.EDGE_ORIGIN: _KindTraits(70, "Microsoft.Cdn/profiles/originGroups/origins"),
    ResourceKind.EDGE_CUSTOM_DOMAIN: _KindTraits(70, "Microsoft.Cdn/profiles/customDomains"),
    ResourceKind.EDGE_ROUTE: _KindTraits(80, "Microsoft.Cdn/profiles/afdEndpoints/routes"),
    ResourceKind.EDGE_SECURITY_POLICY: _KindTraits(90, "Microsoft.Cdn/profiles/securityPolicies"),
}


class AttributeRef(BaseModel):
    """A live attribute the provisioning engine resolves at apply time.

    ``target`` is either a logical name in the same plan or an external
    reference address (``existing:<role>``).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    target: str = Field(min_length=1)
    attribute: str = Field(min_length=1)

    def __str__(self) -> str:
        return f"${{{self.target}.{self.attribute}}}"


def _to_plain(value: Any) -> Any:
    """Normalize nested models and tuples to JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, dict):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


class ResourceSpec(BaseModel):
    """One planned cloud resource.

    Resources are pure data: the provisioning engine realizes them in the
    order given by ``depends_on``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ResourceKind
    logical_name: str = Field(min_length=1)
    physical_name: str = Field(min_length=1)
    properties: dict[str, Any] = Field(default_factory=FrozenDict)
    depends_on: frozenset[str] = frozenset()

    @field_validator("properties", mode="before")
    @classmethod
    def _normalize_properties(cls, v: Any) -> Any:
        return _to_plain(v) if isinstance(v, dict) else v

    @field_validator("properties")
    @classmethod
    def _freeze_properties(cls, v: dict[str, Any]) -> dict[str, Any]:
        return freeze(v)

    @field_serializer("depends_on")
    def _serialize_depends_on(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    @property
    def address(self) -> str:
        """Unique address for this resource (e.g., 'storage-mount.feature-1-hangfire')."""
        return f"{self.kind.value}.{self.logical_name}"
