"""CLI command implementations."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from feature_env.cli import app
from feature_env.cli.errors import handle_error

if TYPE_CHECKING:
    from feature_env.planner.types import EnvironmentPlan

ConfigPath = Annotated[
    Path,
    typer.Option("--config", "-c", help="Path to the configuration file."),
]

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output."),
]

_DEFAULT_CONFIG = Path("feature-env.yaml")


def _use_color(no_color: bool) -> bool:
    """Determine whether to use color output."""
    return not (no_color or os.environ.get("NO_COLOR"))


def _build_from(config: Path, *, color: bool) -> EnvironmentPlan:
    """Load *config* and build its plan, exiting with code 1 on any error."""
    from feature_env.config import load
    from feature_env.config import plan as plan_fn

    try:
        return plan_fn(load(config))
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc


def _print_outputs_table(plan_obj: EnvironmentPlan, *, color: bool) -> None:
    from rich.console import Console
    from rich.table import Table

    from feature_env.cli.formatting import outputs_dict

    outputs = outputs_dict(plan_obj)
    console = Console(no_color=not color, highlight=False)

    table = Table(title=f"Feature {plan_obj.feature}", show_header=False)
    table.add_column("Output", style="bold")
    table.add_column("Value")
    table.add_row("Feature URL", outputs["feature_url"])
    table.add_row("Custom domain", outputs["custom_domain_hostname"])
    table.add_row("Endpoint hostname", outputs["endpoint_hostname"])
    table.add_row("Domain validation token", outputs["domain_validation_token"])
    for service in outputs["compute_services"]:
        table.add_row(
            f"Service {service['workload']}",
            f"{service['name']} ({service['internal_url']})",
        )
    console.print(table)


@app.command()
def plan(
    config: ConfigPath = _DEFAULT_CONFIG,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Save plan to file."),
    ] = None,
    no_color: NoColor = False,
) -> None:
    """Show the resources the configuration would create."""
    from feature_env.cli.formatting import format_plan, format_plan_summary

    color = _use_color(no_color)
    plan_obj = _build_from(config, color=color)

    typer.echo(format_plan(plan_obj, color=color))
    typer.echo()
    typer.echo(format_plan_summary(plan_obj.summary(), color=color))

    if out is not None:
        plan_obj.save(out)
        typer.echo(f"\nPlan saved to {out}")


@app.command()
def validate(
    config: ConfigPath = _DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Validate the configuration file."""
    from feature_env.cli.formatting import styler

    color = _use_color(no_color)
    _build_from(config, color=color)
    typer.echo(styler(color)("Configuration is valid.", fg="green"))


@app.command()
def outputs(
    config: ConfigPath = _DEFAULT_CONFIG,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print outputs as JSON."),
    ] = False,
    no_color: NoColor = False,
) -> None:
    """Show the values handed to the CI pipeline (URL, endpoint host, services)."""
    from feature_env.cli.formatting import outputs_dict

    color = _use_color(no_color)
    plan_obj = _build_from(config, color=color)

    if as_json:
        typer.echo(json.dumps(outputs_dict(plan_obj), indent=2, sort_keys=True))
        return
    _print_outputs_table(plan_obj, color=color)


@app.command()
def order(
    config: ConfigPath = _DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Show creation stages; resources in one stage can be created in parallel."""
    from feature_env.cli.formatting import format_stages

    color = _use_color(no_color)
    plan_obj = _build_from(config, color=color)

    try:
        stages = plan_obj.stages()
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(f"Creation order for {plan_obj.feature}:")
    typer.echo(format_stages(stages))
