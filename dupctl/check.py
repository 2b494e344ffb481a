"""Integrity check across every configured storage."""

from dupctl.errors import EngineFailure
from dupctl.log import write_log


def run_check(engine, console, echo=None):
    """Check each storage in turn. Returns {storage: "ok" | "failed"}.

    A failing storage is reported and the loop moves on; only a failure to
    enumerate the storages (StorageUnavailable) propagates.
    """
    results = {}
    for name in engine.storages():
        console.rule(f"[bold]Checking storage {name}[/bold]")
        try:
            engine.check(name, callback=echo)
            results[name] = "ok"
        except EngineFailure as e:
            console.print(f"[red]Check of {name} failed: {e}[/red]")
            results[name] = "failed"
        write_log({"event": "check", "storage": name, "result": results[name]})
    return results
