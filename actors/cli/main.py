"""Ark operator CLI implemented with Typer."""

from __future__ import annotations

import dataclasses
import json
import signal
import sys
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

import typer

from packages.ark_shared.config import ArkSettings, load_settings
from packages.ark_shared.logging import configure_logging, get_logger
from services.state.log_authority.implementation import DefaultLogAuthorityService
from services.state.log_reconciler import (
    ReconcileVerdict,
    ReconciliationReport,
    resolve_log_reconciler_settings,
)
from services.state.log_reconciler.engine import ReconciliationEngine

SUCCESS_EXIT_CODE = 0
FAILURE_EXIT_CODE = 1
DEGRADED_EXIT_CODE = 2

_LOGGER = get_logger(__name__)


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return _serialize(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, Path)):
        return str(value)
    if dataclasses.is_dataclass(value):
        return _serialize(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(_serialize(key)): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="json"))
    return str(value)


def _emit_output(result: Any, as_json: bool) -> None:
    """Render command output in requested format."""

    data = _serialize(result)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    rendered = _render_human(data)
    if rendered is not None:
        typer.echo(rendered)
        return
    typer.echo(str(data))


def _emit_error(exc: Exception, as_json: bool) -> None:
    """Render a failed command to stderr."""

    if as_json:
        typer.echo(
            json.dumps({"error": str(exc), "error_type": type(exc).__name__}),
            err=True,
        )
        return
    typer.echo(f"error: {exc}", err=True)


def _render_human(data: Any) -> str | None:
    """Return human-oriented rendering for recognized response shapes."""
    if isinstance(data, dict):
        if _looks_like_report(data):
            return _render_report(data)
        if _looks_like_health(data):
            return _render_health(data)
        return json.dumps(data, indent=2, sort_keys=True)
    return None


def _looks_like_report(value: dict[str, Any]) -> bool:
    """Return True for reconciliation report payloads."""
    return "verdict" in value and isinstance(value.get("stores"), dict)


def _looks_like_health(value: dict[str, Any]) -> bool:
    """Return True for Log Authority health payloads."""
    return isinstance(value.get("service_ready"), bool) and isinstance(
        value.get("stores"), dict
    )


def _render_report(data: dict[str, Any]) -> str:
    """Render one reconciliation report for human scanning."""
    verdict = str(data.get("verdict", ""))
    healthy = verdict != ReconcileVerdict.DEGRADED.value
    lines = [f"Reconcile: {_status_icon(healthy)} {verdict}"]
    environment = data.get("environment") or "all environments"
    lines.append(
        f"Window: {data.get('window_start')} -> {data.get('window_end')} "
        f"({environment})"
    )
    lines.append(f"Analyzed: {data.get('analyzed', 0)} entries")
    stores = data.get("stores", {})
    for key in sorted(stores.keys()):
        item = stores[key]
        if not isinstance(item, dict):
            continue
        missing = item.get("missing", [])
        lines.append(
            f"  {_humanize_store_name(key)}: expected {item.get('expected', 0)}, "
            f"missing {len(missing)}, backfilled {item.get('backfilled', 0)}, "
            f"failed {item.get('failed', 0)}"
        )
    if data.get("dry_run"):
        lines.append("Dry run: no stores were written.")
    if data.get("cancelled"):
        lines.append("Cancelled: remaining backfills were abandoned.")
    return "\n".join(lines)


def _render_health(data: dict[str, Any]) -> str:
    """Render store readiness rows."""
    ready = bool(data.get("service_ready", False))
    lines = [f"Log Authority: {_status_icon(ready)} {_status_label(ready)}"]
    stores = data.get("stores", {})
    for key in sorted(stores.keys()):
        store_ready = bool(stores[key])
        lines.append(
            f"  {_humanize_store_name(key)}: {_status_icon(store_ready)} "
            f"{_status_label(store_ready)}"
        )
    detail = data.get("detail", "")
    if isinstance(detail, str) and detail.strip() not in ("", "ok"):
        lines.append(f"Detail: {detail}")
    return "\n".join(lines)


def _status_icon(ready: bool) -> str:
    """Return status icon for one readiness value."""
    return "✅" if ready else "⚠️"


def _status_label(ready: bool) -> str:
    """Return status label for one readiness value."""
    return "healthy" if ready else "degraded"


def _humanize_store_name(name: str) -> str:
    """Convert store ids into user-facing names."""
    if name == "kv":
        return "KV"
    return name.strip().replace("_", " ").title()


def _load(config: Path | None, *, verbose: bool) -> ArkSettings:
    """Load settings and route logs to stderr so stdout stays parseable."""
    settings = load_settings(config_path=config)
    configure_logging(
        level="DEBUG" if verbose else settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
        stream=sys.stderr,
    )
    return settings


def _build_engine(settings: ArkSettings) -> ReconciliationEngine:
    """Return one reconciliation engine wired to the configured stores."""
    return ReconciliationEngine.from_settings(settings)


def _build_service(settings: ArkSettings) -> DefaultLogAuthorityService:
    """Return one Log Authority wired to the configured stores."""
    return DefaultLogAuthorityService.from_settings(settings)


def _exit_code_for(report: ReconciliationReport) -> int:
    """Map a report verdict onto process exit semantics."""
    if report.verdict is ReconcileVerdict.DEGRADED:
        return DEGRADED_EXIT_CODE
    return SUCCESS_EXIT_CODE


def _run_with_interrupt(
    engine: ReconciliationEngine, **kwargs: Any
) -> ReconciliationReport:
    """Run the engine, turning SIGINT into a graceful cancel."""

    def _cancel(signum: int, frame: Any) -> None:
        _LOGGER.warning("Reconcile interrupted: signal=%s", signum)
        engine.cancel()

    previous = signal.signal(signal.SIGINT, _cancel)
    try:
        return engine.run(**kwargs)
    finally:
        signal.signal(signal.SIGINT, previous)


app = typer.Typer(no_args_is_help=True, help="Ark log store command-line interface")

_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    envvar="ARK_CONFIG_PATH",
    help="Path to an ark.yaml settings file",
)
_JSON_OPTION = typer.Option(False, "--json", help="Emit JSON output")
_VERBOSE_OPTION = typer.Option(
    False, "--verbose", "-v", help="Enable debug logging on stderr"
)


@app.callback()
def main() -> None:
    """Operate the multi-store log writer."""


@app.command("reconcile")
def reconcile_command(
    window: int | None = typer.Option(
        None,
        "--window",
        min=1,
        help="Trailing window to reconcile, in hours [default: 24]",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Report missing entries without backfilling"
    ),
    env: str | None = typer.Option(
        None, "--env", help="Environment to reconcile [default: production]"
    ),
    verbose: bool = _VERBOSE_OPTION,
    as_json: bool = _JSON_OPTION,
    config: Path | None = _CONFIG_OPTION,
) -> None:
    """Backfill entries missing from secondary stores."""
    try:
        settings = _load(config, verbose=verbose)
        defaults = resolve_log_reconciler_settings(settings)
        engine = _build_engine(settings)
        report = _run_with_interrupt(
            engine,
            window_hours=defaults.window_hours if window is None else window,
            dry_run=dry_run,
            environment=defaults.environment if env is None else env,
        )
    except Exception as exc:  # noqa: BLE001
        _LOGGER.error(
            "Reconcile failed: exception_type=%s", type(exc).__name__, exc_info=exc
        )
        _emit_error(exc, as_json)
        raise typer.Exit(code=FAILURE_EXIT_CODE) from exc

    _emit_output(report, as_json)
    raise typer.Exit(code=_exit_code_for(report))


@app.command("health")
def health_command(
    verbose: bool = _VERBOSE_OPTION,
    as_json: bool = _JSON_OPTION,
    config: Path | None = _CONFIG_OPTION,
) -> None:
    """Report readiness of every backing store."""
    try:
        settings = _load(config, verbose=verbose)
        service = _build_service(settings)
        try:
            status = service.health()
        finally:
            service.close()
    except Exception as exc:  # noqa: BLE001
        _emit_error(exc, as_json)
        raise typer.Exit(code=FAILURE_EXIT_CODE) from exc

    _emit_output(status, as_json)
    raise typer.Exit(
        code=SUCCESS_EXIT_CODE if status.service_ready else DEGRADED_EXIT_CODE
    )


if __name__ == "__main__":
    app()
