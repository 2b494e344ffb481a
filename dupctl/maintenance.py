"""Backup and periodic maintenance (prune / fossil collection)."""

from dupctl.config import keep_policies, maintenance_disabled
from dupctl.errors import EngineFailure
from dupctl.log import write_log


def run_backup(engine, storage_id, echo=None):
    entry = {"event": "backup", "storage": storage_id, "limit_rate": getattr(engine, "limit_rate", None)}
    try:
        engine.backup(storage_id, callback=echo)
    except EngineFailure:
        write_log({**entry, "result": "failed"})
        raise
    write_log({**entry, "result": "ok"})


def run_maintenance(engine, settings, storage_id, echo=None):
    """Prune with the KEEP policies unless DISABLE_MAINTENANCE is set.

    Returns False when maintenance is disabled and nothing ran.
    """
    if maintenance_disabled(settings):
        write_log({"event": "maintain", "storage": storage_id, "result": "disabled"})
        return False

    keep = keep_policies(settings)
    entry = {"event": "maintain", "storage": storage_id, "keep": keep}
    try:
        engine.prune(storage_id, keep, callback=echo)
    except EngineFailure:
        write_log({**entry, "result": "failed"})
        raise
    write_log({**entry, "result": "ok"})
    return True
