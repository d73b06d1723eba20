"""Basic health check tests."""

from typer.testing import CliRunner

from famops.main import app

runner = CliRunner()


def test_import_famops():
    """Test that famops package can be imported."""
    import famops
    assert famops.__version__ == "1.0.0"


def test_import_modules():
    """Test that the public entry points can be imported."""
    from famops.generation.orchestrator import GenerationOrchestrator
    from famops.routines import RoutineEngine, RoutineToggleClient
    from famops.web.app import app as web_app

    assert GenerationOrchestrator and RoutineEngine and RoutineToggleClient
    assert web_app.title == "Famops"


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output


def test_demo_command():
    """The demo runs the full flow against an in-memory store."""
    result = runner.invoke(app, ["demo"])
    assert result.exit_code == 0, result.output
    assert "4/4, streak 1" in result.output
    assert "fallback" in result.output
    assert "Grocery list" in result.output


def test_recompute_unknown_routine_fails():
    from famops.db import MemoryStore, set_store

    set_store(MemoryStore())
    try:
        result = runner.invoke(app, ["recompute-streak", "ghost"])
    finally:
        set_store(None)
    assert result.exit_code == 1
    assert "Routine not found" in result.output
