"""Resource materializer CLI actor implemented with Typer."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import sys
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from packages.pipeline_shared.config import PipelineSettings, load_settings
from packages.pipeline_shared.http import AsyncHttpClient
from packages.pipeline_shared.logging import configure_logging
from services.stage.resource_materializer import (
    DryRunConfig,
    HttpNotificationSink,
    MaterializeOutcome,
    PlanError,
    ResourceMap,
    TransportOrTransformError,
    build_resource_materializer,
    drain_notifications,
    resolve_resource_materializer_settings,
)
from services.stage.resource_materializer.validation import (
    build_spec,
    load_plan,
    parse_resource_map,
)

SUCCESS_EXIT_CODE = 0
INPUT_ERROR_EXIT_CODE = 3
MATERIALIZE_ERROR_EXIT_CODE = 4

_VALUE_PREVIEW_LIMIT = 60


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options propagated to commands."""

    settings: PipelineSettings
    as_json: bool


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, Decimal, Path)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _serialize(
            {field.name: getattr(value, field.name) for field in dataclasses.fields(value)}
        )
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="python"))
    if hasattr(value, "items"):
        return {str(key): _serialize(item) for key, item in value.items()}
    return str(value)


def _emit_outcome(outcome: MaterializeOutcome, as_json: bool) -> None:
    """Render a materializer outcome in the requested format."""

    data = _serialize(outcome)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    typer.echo(_render_outcome(data))


def _emit_error(exc: Exception, as_json: bool) -> None:
    """Render mapped errors to stderr."""

    if as_json:
        typer.echo(json.dumps({"error": str(exc)}), err=True)
        return
    typer.echo(f"error: {exc}", err=True)


def _render_outcome(data: dict[str, Any]) -> str:
    """Render outcome data for human scanning."""
    lines = [str(data.get("note", ""))]
    resources = data.get("resource_map")
    if not isinstance(resources, dict):
        return "\n".join(lines)
    processed = set(data.get("processed_keys", []))
    for key in resources:
        entry = resources[key] if isinstance(resources[key], dict) else {}
        path = str(entry.get("path", "<unknown>"))
        if key not in processed:
            lines.append(f"- {key}: {path} (skipped)")
            continue
        lines.append(f"- {key}: {path} -> {_preview(entry.get('value'))}")
    return "\n".join(lines)


def _preview(value: Any) -> str:
    """Return a one-line, length-limited preview of a materialized value."""
    text = json.dumps(value, default=str) if not isinstance(value, str) else value
    text = " ".join(text.split())
    if len(text) > _VALUE_PREVIEW_LIMIT:
        return f"{text[: _VALUE_PREVIEW_LIMIT - 3]}..."
    return text


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


def _read_resource_map(path: Path) -> ResourceMap:
    """Load a JSON resource map file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise PlanError(f"Cannot read resource map {path}: {exc}") from exc
    return parse_resource_map(data)


def _resolve_dry_run(
    base: DryRunConfig,
    *,
    dry_run: bool,
    simulate_delay_ms: int | None,
    no_notify: bool,
) -> DryRunConfig:
    """Overlay command flags on the configured dry-run defaults."""
    update: dict[str, Any] = {}
    if dry_run:
        update["simulate"] = True
    if simulate_delay_ms is not None:
        update["simulate_delay_ms"] = simulate_delay_ms
    if no_notify:
        update["suppress_notification"] = True
    if not update:
        return base
    return DryRunConfig.model_validate({**base.model_dump(), **update})


async def _materialize(
    cfg: CliConfig,
    *,
    plan_path: Path,
    resource_map: ResourceMap,
    dry_run: DryRunConfig,
    notify_endpoint: str | None,
    drain_timeout: float,
) -> MaterializeOutcome:
    """Build the materializer, run it once, and let notifications settle."""
    service_settings = resolve_resource_materializer_settings(cfg.settings)
    plan = load_plan(plan_path)
    async with AsyncHttpClient(
        timeout_seconds=service_settings.http.timeout_seconds,
        follow_redirects=service_settings.http.follow_redirects,
    ) as client:
        spec = build_spec(
            plan,
            http_client=client,
            timeout_seconds=service_settings.http.timeout_seconds,
        )
        sink = None
        if notify_endpoint is not None:
            sink = HttpNotificationSink(
                notify_endpoint,
                timeout_seconds=service_settings.notification.timeout_seconds,
            )
        materializer = build_resource_materializer(
            spec=spec,
            settings=cfg.settings,
            notification_sink=sink,
        )
        outcome = await materializer.process(resource_map, dry_run)
    await drain_notifications(drain_timeout)
    return outcome


app = typer.Typer(no_args_is_help=True, help="Resource materializer command-line interface")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        envvar="PIPELINE_CONFIG_PATH",
        help="Path to pipeline YAML config",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
    log_level: str | None = typer.Option(None, help="Override logging level"),
) -> None:
    """Load settings and logging for all commands."""

    cli_params: dict[str, Any] = {}
    if log_level is not None:
        cli_params["logging"] = {"level": log_level.upper()}
    try:
        settings = load_settings(cli_params=cli_params, config_path=config)
    except ValueError as exc:
        _emit_error(exc, as_json)
        raise typer.Exit(code=INPUT_ERROR_EXIT_CODE) from exc

    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
        stream=sys.stderr,
    )
    ctx.obj = CliConfig(settings=settings, as_json=as_json)


@app.command("run")
def run_command(
    ctx: typer.Context,
    resources: Path = typer.Argument(..., help="JSON resource map file"),
    plan: Path = typer.Argument(..., help="YAML unit plan file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate instead of fetching"),
    simulate_delay_ms: int | None = typer.Option(
        None, min=0, help="Simulated delay in milliseconds"
    ),
    no_notify: bool = typer.Option(False, "--no-notify", help="Suppress stage notification"),
    notify_endpoint: str | None = typer.Option(None, help="Notification endpoint override"),
    drain_timeout: float = typer.Option(
        2.0, min=0, help="Seconds to wait for pending notifications"
    ),
) -> None:
    """Materialize every planned resource in RESOURCES."""
    cfg = _require_config(ctx)
    try:
        service_settings = resolve_resource_materializer_settings(cfg.settings)
        dry = _resolve_dry_run(
            service_settings.dry_run,
            dry_run=dry_run,
            simulate_delay_ms=simulate_delay_ms,
            no_notify=no_notify,
        )
        resource_map = _read_resource_map(resources)
        outcome = asyncio.run(
            _materialize(
                cfg,
                plan_path=plan,
                resource_map=resource_map,
                dry_run=dry,
                notify_endpoint=notify_endpoint,
                drain_timeout=drain_timeout,
            )
        )
    except (PlanError, ValidationError) as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=INPUT_ERROR_EXIT_CODE) from exc
    except TransportOrTransformError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=MATERIALIZE_ERROR_EXIT_CODE) from exc

    _emit_outcome(outcome, cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


@app.command("validate")
def validate_command(
    ctx: typer.Context,
    plan: Path = typer.Argument(..., help="YAML unit plan file"),
) -> None:
    """Validate a unit plan and list its keys."""
    cfg = _require_config(ctx)
    try:
        parsed = load_plan(plan)
        build_spec(parsed)
    except PlanError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=INPUT_ERROR_EXIT_CODE) from exc

    if cfg.as_json:
        typer.echo(json.dumps(_serialize(parsed), sort_keys=True, separators=(",", ":")))
    else:
        for unit in parsed.units:
            typer.echo(f"- {unit.key} ({unit.transport} -> {unit.transform})")
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def run() -> None:
    """Run the Typer application."""
    app()


if __name__ == "__main__":
    run()
