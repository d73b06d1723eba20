"""
Famops - CLI Entry Point.

Usage:
    famops toggle ROUTINE_ID INDEX     Check (or --uncheck) a routine task
    famops generate-week FAMILY_ID     Generate meals + grocery list for a week
    famops packing FAMILY_ID           Generate a packing list for a trip
    famops recompute-streak ROUTINE_ID Rebuild a routine's streak from its logs
    famops migrate-task-logs           Move legacy per-task logs
    famops demo                        Run the whole flow against an in-memory store
    famops serve                       Start the HTTP API
    famops health                      Check configuration
"""

import asyncio
import json
import logging
import sys

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from famops.errors import FamopsError

app = typer.Typer(
    name="famops",
    help="Famops - household routines, meal plans and lists.",
    add_completion=False,
)
console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def _fail(e: Exception) -> None:
    console.print(f"\n[red]Error: {e}[/red]")
    raise typer.Exit(1)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    setup_logging(verbose)


@app.command()
def toggle(
    routine_id: str = typer.Argument(..., help="Routine id"),
    task_index: int = typer.Argument(..., help="0-based task index"),
    uncheck: bool = typer.Option(False, "--uncheck", help="Uncheck instead of check"),
    date: str = typer.Option(None, "--date", "-d", help="YYYY-MM-DD (default: today)"),
) -> None:
    """Toggle a routine task through the toggle endpoint, or locally if it is unavailable."""
    from famops.config import settings
    from famops.db import get_store
    from famops.routines import RoutineToggleClient

    client = RoutineToggleClient(get_store(), url=settings.routine_toggle_url, timezone=settings.app_timezone)
    try:
        result = asyncio.run(client.toggle(routine_id, task_index, not uncheck, date))
    except FamopsError as e:
        _fail(e)

    if result is None:
        console.print("[yellow]Toggle already in progress, skipped[/yellow]")
        return
    console.print(f"[green]{result.completed}/{result.total}[/green] tasks complete, streak [bold]{result.streak}[/bold]")


@app.command("generate-week")
def generate_week(
    family_id: str = typer.Argument(..., help="Family id"),
    week_start: str = typer.Option(None, "--week", "-w", help="Any day of the week (default: this week)"),
    preferences: str = typer.Option("{}", "--prefs", help="Preferences as JSON"),
    user_id: str = typer.Option(None, "--user", help="Acting user id"),
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log all LLM prompts to prompt_logs/"),
) -> None:
    """Generate a week of meals and a fresh grocery list."""
    from famops.config import settings
    from famops.dates import today_iso
    from famops.db import get_store
    from famops.generation.orchestrator import build_orchestrator
    from famops.llm.prompt_logger import enable_prompt_logging

    if log_prompts:
        enable_prompt_logging(True)

    orchestrator = build_orchestrator(get_store())
    try:
        result = asyncio.run(
            orchestrator.generate_week(
                family_id, week_start or today_iso(settings.app_timezone), json.loads(preferences), user_id=user_id
            )
        )
    except (FamopsError, json.JSONDecodeError) as e:
        _fail(e)

    console.print(
        Panel.fit(
            f"Week of {result.week_start} ([dim]{result.source}[/dim])\n"
            f"Meals: {result.meals_created} created, {result.meals_updated} updated\n"
            f"Grocery list {result.list_id}: {result.items_created} items",
            title="Meal plan",
            border_style="green",
        )
    )


@app.command()
def packing(
    family_id: str = typer.Argument(..., help="Family id"),
    destination: str = typer.Option(None, "--destination", help="Where to"),
    start_date: str = typer.Option(None, "--start", help="YYYY-MM-DD"),
    end_date: str = typer.Option(None, "--end", help="YYYY-MM-DD"),
    travelers: int = typer.Option(2, "--travelers", help="Number of travelers"),
    purpose: str = typer.Option("vacation", "--purpose", help="Trip type"),
    user_id: str = typer.Option(None, "--user", help="Acting user id"),
) -> None:
    """Generate a packing list for a trip."""
    from famops.db import get_store
    from famops.generation.orchestrator import build_orchestrator

    trip = {
        "destination": destination,
        "startDate": start_date,
        "endDate": end_date,
        "travelers": travelers,
        "purpose": purpose,
    }
    orchestrator = build_orchestrator(get_store())
    try:
        result = asyncio.run(orchestrator.create_packing_from_trip(family_id, trip, user_id=user_id))
    except FamopsError as e:
        _fail(e)

    console.print(f"[green]Packing list {result.list_id}[/green]: {result.items_created} items ({result.source})")


@app.command("recompute-streak")
def recompute_streak(routine_id: str = typer.Argument(..., help="Routine id")) -> None:
    """Rebuild completion events and the streak counter from task logs."""
    from famops.db import get_store
    from famops.routines import RoutineEngine

    try:
        repair = asyncio.run(RoutineEngine(get_store()).recompute_streak(routine_id))
    except FamopsError as e:
        _fail(e)

    console.print(
        f"Streak {repair.previous} -> [bold]{repair.streak}[/bold] "
        f"({repair.events_created} events created, {repair.events_deleted} deleted)"
    )


@app.command("migrate-task-logs")
def migrate_task_logs() -> None:
    """Move legacy per-task rows out of routine_logs."""
    from famops.db import get_store
    from famops.routines import migrate_task_logs as migrate

    result = asyncio.run(migrate(get_store()))
    console.print(
        f"[green]Migrated[/green]: {result.created} created, {result.updated} updated, "
        f"{result.deleted} deleted, {result.skipped} skipped"
    )


@app.command()
def demo() -> None:
    """Seed an in-memory household and run toggles, generation and merges."""
    from famops.db import MemoryStore

    store = MemoryStore()
    try:
        asyncio.run(_run_demo(store))
    except FamopsError as e:
        _fail(e)


async def _run_demo(store) -> None:
    from famops.config import settings
    from famops.dates import today_iso
    from famops.generation.access import AccessConfig, AccessGate
    from famops.generation.orchestrator import GenerationOrchestrator
    from famops.reconcile import add_ingredients, list_items
    from famops.routines import RoutineEngine, RoutineService

    access = AccessGate(store, AccessConfig(qa_bypass=True, force_pro=True, demo_user_id="demo-owner"))
    store.seed("children", [{"id": "child_demo", "family_id": "family_demo", "name": "Sam"}])

    routine = await RoutineService(store, access).create(
        "child_demo", "Morning", {"type": "daily", "time": "07:30", "tasks": ["Brush teeth", "Dress", "Breakfast", "Pack bag"]}
    )
    engine = RoutineEngine(store)
    day = today_iso(settings.app_timezone)
    for index in range(4):
        result = await engine.toggle_task(routine["id"], index, True, day)
    console.print(f"Routine '{routine['title']}': {result.completed}/{result.total}, streak {result.streak}")

    orchestrator = GenerationOrchestrator(store, None, access, timezone=settings.app_timezone)
    week = await orchestrator.generate_week("family_demo", day, {"familySize": 4})
    merged = await add_ingredients(store, week.list_id, ["Milk", "milk", "Eggs"])
    console.print(
        f"Week of {week.week_start} ({week.source}): {week.meals_created} meals, "
        f"merge added {merged.added_count}, merged {merged.merged_count}"
    )

    table = Table(title="Grocery list")
    table.add_column("#", justify="right")
    table.add_column("Item")
    table.add_column("Qty")
    table.add_column("Category")
    for item in await list_items(store, week.list_id):
        table.add_row(str(item["position"]), item["name"], item["quantity"], item.get("category") or "")
    console.print(table)


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the HTTP API."""
    import os

    import uvicorn

    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]Famops API[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run("famops.web.app:app", host="0.0.0.0", port=actual_port, reload=reload)


@app.command()
def health() -> None:
    """Check configuration."""
    from famops.config import get_settings

    console.print("\n[bold]Famops Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("[green]OK[/green] Configuration loaded")
        console.print(f"   Environment: {settings.famops_env}")
        console.print(f"   Store backend: {settings.store_backend}")

        if settings.openai_api_key:
            console.print("[green]OK[/green] OpenAI API key configured")
        else:
            console.print("[yellow]--[/yellow] No OpenAI API key, generation will use fallbacks")

        if settings.store_backend == "supabase":
            if settings.supabase_url and settings.supabase_url.startswith("https://"):
                console.print("[green]OK[/green] Supabase URL configured")
            else:
                console.print("[red]FAIL[/red] Supabase URL missing or invalid")
                raise typer.Exit(1)

        if settings.qa_auth_bypass or settings.features_force_pro:
            console.print("[yellow]--[/yellow] Authorization overrides active")

        console.print("\n[green]All checks passed![/green]")

    except ValueError as e:
        console.print(f"\n[red]FAIL Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from famops import __version__

    console.print(f"Famops version {__version__}")


if __name__ == "__main__":
    app()
