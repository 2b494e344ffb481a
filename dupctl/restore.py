"""Point-in-time restore workflow.

validate → translate paths → list snapshots → resolve revision → hand the
transfer to the engine, tee'ing its output into a restore log.

Nothing is rolled back if the engine fails or the process is interrupted:
the destination may be left partially populated.
"""

from collections import namedtuple
from datetime import datetime
from pathlib import Path

from dupctl.config import PREFERENCES_DIR
from dupctl.errors import EngineFailure, InvalidInput
from dupctl.filters import translate_all
from dupctl.log import write_log
from dupctl.resolver import now, resolve, validate_timestamp

DEFAULT_STORAGE = "default"
RESTORE_LOG = "restore.log"

RestoreRequest = namedtuple(
    "RestoreRequest",
    ["paths", "desired_time", "storage_id", "destination"],
    defaults=(None, DEFAULT_STORAGE, ""),
)

RestoreResult = namedtuple("RestoreResult", ["snapshot", "filters", "log_path"])


def check_destination(destination):
    """Reject a destination that exists and isn't an empty directory.

    Checked once, before anything is written. Returns the Path, or None for
    an in-place restore.
    """
    if not destination:
        return None
    dest = Path(destination)
    if dest.exists():
        if not dest.is_dir():
            raise InvalidInput(f"Destination {dest} exists and is not a directory")
        if any(dest.iterdir()):
            raise InvalidInput(f"Destination {dest} is not empty")
    return dest


def list_timestamps(engine, storage_id=DEFAULT_STORAGE):
    """Timestamps of every snapshot in listing order (newest last)."""
    return [s.timestamp for s in engine.list_snapshots(storage_id)]


def _log_path(engine, dest):
    if dest is not None:
        return dest / RESTORE_LOG
    logs_dir = engine.preferences_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir / f"restore-{datetime.now().strftime('%Y%m%d-%H%M%S')}.log"


def run_restore(request, engine, guess_root="/", echo=None):
    """Restore request.paths as they were at request.desired_time.

    echo receives every line of engine output (for the terminal); the same
    lines go to the restore log. Returns a RestoreResult.
    """
    desired_time = validate_timestamp(request.desired_time or now())
    storage_id = request.storage_id or DEFAULT_STORAGE
    dest = check_destination(request.destination)
    if not request.paths:
        raise InvalidInput("Nothing to restore: give at least one path or filter")

    filters = translate_all(request.paths, guess_root)
    snapshot = resolve(engine.list_snapshots(storage_id), desired_time, storage_id)

    marker = None
    if dest is not None:
        dest.mkdir(parents=True, exist_ok=True)
        # The engine looks for its preferences in cwd; point it at the repository's.
        marker = dest / PREFERENCES_DIR
        marker.write_text(str(engine.preferences_dir.resolve()) + "\n")
    cwd = dest if dest is not None else engine.repository
    log_path = _log_path(engine, dest)

    entry = {
        "event": "restore",
        "storage": storage_id,
        "revision": snapshot.revision_id,
        "time": desired_time,
        "destination": str(dest) if dest is not None else "",
        "filters": filters,
    }
    try:
        with open(log_path, "w") as log_file:
            def tee(line):
                log_file.write(line)
                if echo:
                    echo(line)

            engine.restore(snapshot.revision_id, storage_id, filters, cwd, callback=tee)
    except EngineFailure:
        write_log({**entry, "result": "failed"})
        raise
    finally:
        if marker is not None:
            marker.unlink(missing_ok=True)

    write_log({**entry, "result": "restored"})
    return RestoreResult(snapshot, filters, log_path)
