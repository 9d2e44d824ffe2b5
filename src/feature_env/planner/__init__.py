"""Environment plan builder for per-pull-request feature environments."""

from feature_env.planner.builder import build, order_resources
from feature_env.planner.errors import (
    DependencyCycleError,
    DuplicateLogicalNameError,
    PlannerError,
    ValidationError,
)
from feature_env.planner.graph import DependencyGraph
from feature_env.planner.inputs import DeploymentConfig, FeatureFlags, ImageRef
from feature_env.planner.naming import FeatureIdentity, ResourceNames
from feature_env.planner.types import ComputeServiceOutput, EnvironmentPlan, PlanOutputs

__all__ = [
    "ComputeServiceOutput",
    "DependencyCycleError",
    "DependencyGraph",
    "DeploymentConfig",
    "DuplicateLogicalNameError",
    "EnvironmentPlan",
    "FeatureFlags",
    "FeatureIdentity",
    "ImageRef",
    "PlanOutputs",
    "PlannerError",
    "ResourceNames",
    "ValidationError",
    "build",
    "order_resources",
]
