"""Plan output rendering (Terraform-style)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import typer

if TYPE_CHECKING:
    from collections.abc import Callable

    from feature_env.planner.types import EnvironmentPlan
    from feature_env.resources.base import ResourceSpec

_CREATE_COLOR = "green"
_SYMBOL = "+"


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _align_values(items: dict[str, str]) -> list[tuple[str, str]]:
    """Right-pad keys so ``=`` signs align."""
    if not items:
        return []
    max_key = max(len(k) for k in items)
    return [(k.ljust(max_key), v) for k, v in items.items()]


def _is_attribute_ref(value: Any) -> bool:
    return isinstance(value, dict) and set(value) == {"target", "attribute"}


def _plain(value: Any) -> Any:
    """Collapse attribute references to ``${target.attribute}`` for display."""
    if _is_attribute_ref(value):
        return f"${{{value['target']}.{value['attribute']}}}"
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def _format_value(value: Any) -> str:
    """Format a value for display in a plan block."""
    value = _plain(value)
    if isinstance(value, str):
        return f'"{value}"'
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, separators=(", ", ": "))
    return str(value)


# ---------------------------------------------------------------------------
# Plan rendering
# ---------------------------------------------------------------------------


def _resource_attrs(spec: ResourceSpec) -> dict[str, str]:
    attrs = {"name": _format_value(spec.physical_name)}
    attrs.update({k: _format_value(v) for k, v in spec.properties.items()})
    if spec.depends_on:
        attrs["depends_on"] = _format_value(sorted(spec.depends_on))
    return attrs


def format_resource(spec: ResourceSpec, *, color: bool = True) -> str:
    """Render a single ResourceSpec as a Terraform-style block."""
    style = styler(color)
    sc = {"fg": _CREATE_COLOR}
    lines = [
        style(f"  # {spec.address} will be created", bold=True, **sc),
        style(f'  {_SYMBOL} resource "{spec.kind.azure_type}" "{spec.logical_name}" {{', **sc),
        *[
            style(f"      {_SYMBOL} {k} = {v}", **sc)
            for k, v in _align_values(_resource_attrs(spec))
        ],
        style("    }", **sc),
    ]
    return "\n".join(lines)


def format_plan(plan: EnvironmentPlan, *, color: bool = True) -> str:
    """Render every planned resource in creation order."""
    if not plan.resources:
        return "No resources planned."
    return "\n\n".join(format_resource(r, color=color) for r in plan.resources)


def format_plan_summary(summary: dict[str, int], *, color: bool = True) -> str:
    """Render ``Plan: 13 to create.``"""
    style = styler(color)
    total = sum(summary.values())
    text = f"{total} to create"
    if total and color:
        text = style(text, fg=_CREATE_COLOR)
    return f"Plan: {text}."


def format_stages(stages: list[list[str]]) -> str:
    """Render creation stages, one numbered line per stage."""
    width = len(str(len(stages)))
    return "\n".join(
        f"  {str(i).rjust(width)}. {', '.join(stage)}" for i, stage in enumerate(stages, start=1)
    )


def outputs_dict(plan: EnvironmentPlan) -> dict[str, Any]:
    """Plan outputs as display-ready data (attribute references collapsed)."""
    return _plain(plan.outputs.model_dump(mode="json"))
