"""Command-line interface for Mealmerge."""

from __future__ import annotations

import json
from typing import Optional

import typer

from mealmerge.config import get_settings
from mealmerge.db.daily_summaries import list_daily_summaries
from mealmerge.db.meal_logs import list_meal_logs
from mealmerge.db.owned_records import MEAL_LOGS, STORES, get_store
from mealmerge.errors import FatalMergeError
from mealmerge.gateway.audit import AuditLogger
from mealmerge.gateway.merge import MERGE_PLAN, RECOVERY_PLAN, MergeExecutor
from mealmerge.logging_utils import configure_logging
from mealmerge.models.records import OwnershipReport

app = typer.Typer(help="Mealmerge identity merge commands.")

CLI_CLIENT_KEY = "cli"


def _echo_json(payload: dict, pretty: bool) -> None:
    typer.echo(json.dumps(payload, indent=2 if pretty else None, sort_keys=pretty, default=str))


@app.command()
def merge(
    source_id: str = typer.Argument(..., help="Guest (or legacy) user id that currently owns the data."),
    target_id: str = typer.Argument(..., help="Authenticated user id receiving the data."),
    recover: bool = typer.Option(
        False,
        "--recover",
        help="Use the legacy recovery plan (includes daily summaries).",
    ),
    pretty: bool = typer.Option(True, "--pretty/--no-pretty", help="Pretty-print output JSON."),
) -> None:
    """
    Move records between owners with service privilege, bypassing token checks.
    """

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, [settings.admin_password or ""])
    if source_id == target_id:
        _echo_json({"success": True, "skipped": True}, pretty)
        return

    plan = RECOVERY_PLAN if recover else MERGE_PLAN
    executor = MergeExecutor(plan, development=settings.is_development)
    audit = AuditLogger(development=settings.is_development)
    try:
        result = executor.execute(source_id, target_id)
    except FatalMergeError as exc:
        audit.record(
            action=plan.name,
            client_key=CLI_CLIENT_KEY,
            outcome="failed",
            auth_method="admin",
            source_id=source_id,
            target_id=target_id,
        )
        typer.secho(f"Error: {exc.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    audit.record(
        action=plan.name,
        client_key=CLI_CLIENT_KEY,
        outcome="success",
        auth_method="admin",
        counts=result.transferred,
        source_id=source_id,
        target_id=target_id,
        warnings=[str(warning) for warning in result.warnings],
    )
    for warning in result.warnings:
        typer.secho(f"Warning: {warning}", fg=typer.colors.YELLOW, err=True)
    _echo_json({"success": True, "plan": plan.name, "transferred": result.transferred}, pretty)


@app.command()
def records(
    user_id: str = typer.Argument(..., help="Owner id to inspect."),
    store: Optional[str] = typer.Option(None, "--store", help="Only count rows in this store."),
    rows: bool = typer.Option(False, "--rows", help="Include meal log and daily summary rows."),
    pretty: bool = typer.Option(True, "--pretty/--no-pretty", help="Pretty-print output JSON."),
) -> None:
    """Show how many rows each store holds for a user and their latest meal activity."""

    try:
        stores = [get_store(store)] if store else list(STORES.values())
    except ValueError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    report = OwnershipReport(
        user_id=user_id,
        counts={entry.name: entry.count(user_id) for entry in stores},
        latest_activity=MEAL_LOGS.latest_activity(user_id),
        meal_logs=list_meal_logs(user_id) if rows else [],
        daily_summaries=list_daily_summaries(user_id) if rows else [],
    )
    _echo_json(report.model_dump(mode="json"), pretty)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    """Run the HTTP API with uvicorn."""

    from mealmerge.server.run import serve as run_server

    run_server(host, port, reload=reload)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the ``mealmerge`` console script."""
    app(prog_name="mealmerge", args=argv)


if __name__ == "__main__":
    main()
