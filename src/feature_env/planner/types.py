"""Plan types (environment plan, outputs)."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from feature_env import __version__
from feature_env.planner.graph import DependencyGraph
from feature_env.resources.base import AttributeRef, ResourceKind, ResourceSpec
from feature_env.resources.frozen import FrozenDict
from feature_env.resources.references import ExternalReference  # noqa: TC001


class ComputeServiceOutput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    workload: str
    internal_url: str


class PlanOutputs(BaseModel):
    """Values handed to calling collaborators (CI pipeline, DNS step, teardown)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    feature_url: str
    custom_domain_hostname: str
    endpoint_hostname: AttributeRef
    domain_validation_token: AttributeRef
    compute_services: tuple[ComputeServiceOutput, ...]


class EnvironmentPlan(BaseModel):
    """Immutable DAG of resource specifications for one feature environment.

    ``resources`` is stored in creation order: every resource appears after
    everything it depends on.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    feature: str
    label: str
    resources: tuple[ResourceSpec, ...]
    external_references: dict[str, ExternalReference]
    outputs: PlanOutputs
    planner_version: str = __version__

    @field_validator("external_references")
    @classmethod
    def _freeze_references(cls, v: dict[str, ExternalReference]) -> dict[str, ExternalReference]:
        return FrozenDict(v)

    def get(self, logical_name: str) -> ResourceSpec:
        for r in self.resources:
            if r.logical_name == logical_name:
                return r
        raise KeyError(logical_name)

    def of_kind(self, kind: ResourceKind) -> list[ResourceSpec]:
        return [r for r in self.resources if r.kind == kind]

    def logical_names(self) -> list[str]:
        return [r.logical_name for r in self.resources]

    def dependencies(self) -> dict[str, list[str]]:
        return {r.logical_name: sorted(r.depends_on) for r in self.resources}

    def graph(self) -> DependencyGraph:
        return DependencyGraph(
            nodes=self.logical_names(),
            dependencies=self.dependencies(),
            priorities={r.logical_name: r.kind.plan_priority for r in self.resources},
        )

    def stages(self) -> list[list[str]]:
        """Creation stages; resources within one stage may be created in parallel."""
        return self.graph().layers()

    def summary(self) -> dict[str, int]:
        counts = Counter(r.kind.value for r in self.resources)
        return {k.value: counts.get(k.value, 0) for k in ResourceKind}

    def to_json(self) -> str:
        """Canonical JSON; identical inputs produce identical bytes."""
        data = self.model_dump(mode="json", exclude_none=True)
        return json.dumps(data, indent=2, sort_keys=True) + "\n"

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> EnvironmentPlan:
        path = Path(path)
        return cls.model_validate_json(path.read_text(encoding="utf-8"))
