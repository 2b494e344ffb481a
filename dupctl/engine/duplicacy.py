"""Adapter for the duplicacy command-line engine.

Every operation shells out to the duplicacy binary with the repository (or a
restore destination carrying a .duplicacy marker file) as working directory.
Nothing is retried: transient failures are left to the user to re-run.
"""

import json
import re
import subprocess

from dupctl.engine.base import Engine, Snapshot
from dupctl.errors import EngineFailure, StorageUnavailable

# "Snapshot host revision 12 created at 2018-06-01 13:45 -hash"
_SNAPSHOT_LINE = re.compile(
    r"^Snapshot \S+ revision (\d+) created at (-?\d{4,}-\d{2}-\d{2}) (\d{2}:\d{2})"
)


def parse_snapshot_list(output):
    """Extract Snapshot records from `duplicacy list` output, in order."""
    snapshots = []
    for line in output.splitlines():
        match = _SNAPSHOT_LINE.match(line.strip())
        if match:
            revision, day, minute = match.groups()
            snapshots.append(Snapshot(int(revision), f"{day}T{minute}"))
    return snapshots


class DuplicacyEngine(Engine):

    def __init__(self, binary="duplicacy", repository=".", limit_rate=None):
        super().__init__(repository)
        self.binary = binary
        self.limit_rate = limit_rate

    def list_snapshots(self, storage_id="default"):
        cmd = [self.binary, "list", "-storage", storage_id]
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repository,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise StorageUnavailable(f"Can't run {self.binary}: {e}") from e
        if result.returncode != 0:
            output = (result.stdout + result.stderr).strip()
            raise StorageUnavailable(
                output or f"Listing storage {storage_id!r} failed with exit code {result.returncode}"
            )
        return parse_snapshot_list(result.stdout)

    def storages(self):
        prefs_file = self.preferences_dir / "preferences"
        try:
            prefs = json.loads(prefs_file.read_text())
        except OSError as e:
            raise StorageUnavailable(f"Can't read {prefs_file}: {e}") from e
        except json.JSONDecodeError as e:
            raise StorageUnavailable(f"Invalid JSON in {prefs_file}: {e}") from e
        return [p["name"] for p in prefs if p.get("name")]

    def restore(self, revision_id, storage_id, filters, cwd, callback=None):
        cmd = [self.binary, "restore", "-r", str(revision_id), "-storage", storage_id, "-stats"]
        cmd += self._rate_args()
        cmd += ["--"] + list(filters)
        return self._run_stream(cmd, cwd, callback)

    def check(self, storage_id, callback=None):
        cmd = [self.binary, "check", "-storage", storage_id, "-fossils", "-resurrect", "-tabular"]
        return self._run_stream(cmd, self.repository, callback)

    def backup(self, storage_id, callback=None):
        cmd = [self.binary, "backup", "-storage", storage_id, "-stats"] + self._rate_args()
        return self._run_stream(cmd, self.repository, callback)

    def prune(self, storage_id, keep, callback=None):
        cmd = [self.binary, "prune", "-storage", storage_id]
        for policy in keep:
            cmd += ["-keep", policy]
        return self._run_stream(cmd, self.repository, callback)

    def _rate_args(self):
        return ["-limit-rate", str(self.limit_rate)] if self.limit_rate else []

    def _run_stream(self, cmd, cwd, callback=None):
        """Run cmd, streaming merged stdout/stderr line-by-line through callback.

        Returns the accumulated output; raises EngineFailure on non-zero exit.
        """
        command = " ".join(cmd[:2])
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            raise EngineFailure(command, 127, str(e)) from e
        lines = []
        try:
            for line in proc.stdout:
                lines.append(line)
                if callback:
                    callback(line)
        except KeyboardInterrupt:
            proc.terminate()
            raise
        proc.wait()
        output = "".join(lines)
        if proc.returncode != 0:
            raise EngineFailure(command, proc.returncode, output)
        return output
