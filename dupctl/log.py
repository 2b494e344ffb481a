"""Operation audit logging.

Appends structured JSON entries to ~/.dupctl/logs.jsonl.
Each entry records one operation (restore, check, backup, maintain) with
timestamp, storage, revision and result.
"""

import json
from datetime import datetime

from dupctl.config import DUPCTL_DIR

LOGS_FILE = DUPCTL_DIR / "logs.jsonl"


def write_log(entry):
    """Append an audit log entry."""
    LOGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    entry["timestamp"] = datetime.now().isoformat()
    with open(LOGS_FILE, "a") as f:
        f.write(json.dumps(entry) + "\n")


def read_logs():
    """Return every parseable entry, oldest first."""
    if not LOGS_FILE.exists():
        return []
    entries = []
    for line in LOGS_FILE.read_text().splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    return entries
