"""CLI tests for the Ark Typer commands."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from actors.cli import main as cli_main
from services.state.log_authority.domain import LogEntry
from services.state.log_reconciler.engine import ReconciliationEngine

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
_LOG_ID = "01JGZ7J0000000000000000001"


@pytest.fixture
def cli(monkeypatch: Any, fakes, tmp_path: Path) -> dict[str, Any]:
    """Wire the CLI to fake stores and record how it was configured."""
    recorded: dict[str, Any] = {"logging": [], "engines": []}
    service = fakes.service()

    def _configure_logging(**kwargs: Any) -> None:
        recorded["logging"].append(kwargs)

    def _build_engine(settings: Any) -> ReconciliationEngine:
        engine = ReconciliationEngine(
            repository=service.repository,
            stores=service.stores,
            breakers=service.breakers,
            metrics=service.metrics,
            clock=lambda: _NOW,
        )
        recorded["engines"].append((settings, engine))
        return engine

    monkeypatch.setattr(cli_main, "configure_logging", _configure_logging)
    monkeypatch.setattr(cli_main, "_build_engine", _build_engine)
    monkeypatch.setattr(cli_main, "_build_service", lambda settings: service)
    recorded["config"] = tmp_path / "ark.yaml"
    recorded["service"] = service
    return recorded


def _seed(fakes, *, environment: str = "production") -> None:
    fakes.repository.insert_entry(
        LogEntry(
            id=_LOG_ID,
            timestamp=_NOW - timedelta(hours=1),
            canonical_operation="logDataOrEvent",
            environment=environment,
        )
    )


def _invoke(cli: dict[str, Any], *args: str):
    return CliRunner().invoke(
        cli_main.app, [*args, "--config", str(cli["config"])]
    )


def test_reconcile_restores_missing_entries_and_exits_zero(cli, fakes) -> None:
    """A repaired window should exit 0 and print a readable summary."""
    _seed(fakes)

    result = _invoke(cli, "reconcile")

    assert result.exit_code == 0
    assert "Reconcile: ✅ restored" in result.output
    assert "KV: expected 1, missing 1, backfilled 1, failed 0" in result.output
    assert f"log_{_LOG_ID}" in fakes.kv.values


def test_reconcile_json_output_is_machine_readable(cli, fakes) -> None:
    """``--json`` should print exactly one JSON report."""
    _seed(fakes)

    result = _invoke(cli, "reconcile", "--json")

    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert result.exit_code == 0
    assert payload["verdict"] == "restored"
    assert payload["analyzed"] == 1
    assert payload["environment"] == "production"
    assert payload["stores"]["kv"]["missing"] == [_LOG_ID]


def test_reconcile_dry_run_exits_degraded(cli, fakes) -> None:
    """Dry runs that find gaps should exit 2 without writing."""
    _seed(fakes)

    result = _invoke(cli, "reconcile", "--dry-run")

    assert result.exit_code == 2
    assert "degraded" in result.output
    assert "Dry run: no stores were written." in result.output
    assert fakes.kv.values == {}


def test_reconcile_consistent_window_is_perfect(cli) -> None:
    """An empty window should exit 0 with a perfect verdict."""
    result = _invoke(cli, "reconcile", "--json")

    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert result.exit_code == 0
    assert payload["verdict"] == "perfect"


def test_reconcile_window_and_env_options_reach_engine(cli, fakes) -> None:
    """Explicit options should shape the scanned window and environment."""
    _seed(fakes, environment="staging")

    result = _invoke(cli, "reconcile", "--window", "6", "--env", "staging", "--json")

    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert result.exit_code == 0
    assert payload["environment"] == "staging"
    assert payload["analyzed"] == 1
    assert payload["window_start"].startswith("2026-03-01T06:00:00")


def test_reconcile_rejects_non_positive_window(cli) -> None:
    """Typer should reject windows below one hour as usage errors."""
    result = _invoke(cli, "reconcile", "--window", "0")

    assert result.exit_code == 2
    assert cli["engines"] == []


def test_reconcile_verbose_enables_debug_logging(cli) -> None:
    """``--verbose`` should raise log verbosity and keep logs off stdout."""
    _invoke(cli, "reconcile", "--verbose")

    assert cli["logging"][-1]["level"] == "DEBUG"
    assert cli["logging"][-1]["stream"] is not None


def test_reconcile_reads_defaults_from_config_file(cli, fakes) -> None:
    """Reconciler defaults should come from the settings file when set."""
    cli["config"].write_text(
        "components:\n"
        "  service:\n"
        "    log_reconciler:\n"
        "      environment: staging\n"
        "      window_hours: 2\n",
        encoding="utf-8",
    )
    _seed(fakes, environment="staging")

    result = _invoke(cli, "reconcile", "--json")

    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert payload["environment"] == "staging"
    assert payload["window_start"].startswith("2026-03-01T10:00:00")


def test_reconcile_primary_failure_exits_one(cli, fakes) -> None:
    """Failures reading the primary store should exit 1 with an error."""
    fakes.repository.raise_on_list = ConnectionError("postgres down")

    result = _invoke(cli, "reconcile")

    assert result.exit_code == 1
    assert "error: postgres down" in result.output


def test_health_reports_store_readiness(cli, fakes) -> None:
    """Health should list each store and exit 2 when one is unready."""
    fakes.kv.ready = False

    result = _invoke(cli, "health")

    assert result.exit_code == 2
    assert "Log Authority: ⚠️ degraded" in result.output
    assert "KV: ⚠️ degraded" in result.output
    assert "Primary: ✅ healthy" in result.output


def test_health_json_output(cli) -> None:
    """Healthy stores should exit 0 and emit a JSON status."""
    result = _invoke(cli, "health", "--json")

    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert result.exit_code == 0
    assert payload["service_ready"] is True
    assert payload["stores"]["vector"] is True
